"""Declarative keyword tables for heuristic query analysis.

Each rule lists trigger phrases per language partition: French, Arabic
(including Moroccan Darija in Arabic script), Darija in Latin
transliteration, and English. Phrases are written naturally and normalized
(case, accents, Arabic variants) before matching. How a phrase anchors
depends on its script and partition:

- Arabic script: word start, after an optional attached article or clitic
  ("المحرك", "والمضخة", "للمحرك" all hit "محرك"), open-ended so stems match.
- Darija Latin and mixed tables: word start after an optional "l"/"el"
  article ("lpompe"), open-ended.
- French: word start, open-ended, so "install" covers "installation".
- English: whole word plus a regular inflection, so "leak" covers "leaking"
  but "down" never fires inside "downstream".

The matching engine in ``query_analyzer`` is one generic loop over these
tables, so adding a language or a phrase never touches code.
"""

import re
from dataclasses import dataclass, field

from techassist.domain.entities import QueryIntent, QueryUrgency
from techassist.domain.text_normalization import normalize_text

FRENCH = "fr"
ARABIC = "ar"
DARIJA_LATIN = "darija"
ENGLISH = "en"
MIXED = "any"

_WORD_START = r"(?<!\w)"
_ARABIC_CLITICS = r"(?:[وفبك]?ال|[وف]?لل|[وفبلك])?"
_LATIN_ARTICLE = r"(?:el|l)?"
_ENGLISH_INFLECTION = r"(?:s|es|d|ed|ing)?(?!\w)"
_ARABIC_SCRIPT_RE = re.compile(r"[\u0600-\u06ff]")


def compile_trigger(normalized: str, partition: str) -> re.Pattern:
    """Regex for one normalized trigger phrase in the given language partition."""
    body = re.escape(normalized)
    if _ARABIC_SCRIPT_RE.match(normalized):
        return re.compile(_WORD_START + _ARABIC_CLITICS + body)
    if partition == ENGLISH:
        return re.compile(_WORD_START + body + _ENGLISH_INFLECTION)
    if partition in (DARIJA_LATIN, MIXED):
        return re.compile(_WORD_START + _LATIN_ARTICLE + body)
    return re.compile(_WORD_START + body)


@dataclass(frozen=True)
class KeywordRule:
    """A label triggered by any of its phrases, in any language partition."""

    label: str
    triggers: dict[str, tuple[str, ...]]
    _patterns: tuple[tuple[str, re.Pattern], ...] = field(
        init=False, repr=False, compare=False, default=()
    )

    def __post_init__(self) -> None:
        compiled = []
        for partition, phrases in self.triggers.items():
            for phrase in phrases:
                normalized = normalize_text(phrase)
                if normalized:
                    compiled.append((phrase, compile_trigger(normalized, partition)))
        object.__setattr__(self, "_patterns", tuple(compiled))

    def matches(self, normalized_text: str) -> list[str]:
        """Trigger phrases (as written in the table) found in already-normalized text."""
        return [phrase for phrase, pattern in self._patterns if pattern.search(normalized_text)]


# ── Intent ───────────────────────────────────────────────────────────
# Order matters: on equal hit counts the earlier rule wins.

INTENT_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(QueryIntent.TROUBLESHOOTING.value, {
        FRENCH: (
            "problème", "panne", "erreur", "ne marche", "ne fonctionne", "ne démarre",
            "ne tourne", "diagnostic", "défaut", "alarme", "dépannage", "bloqué",
            "fuite", "surchauffe", "bruit anormal", "disjoncte", "déclenche",
        ),
        ARABIC: ("عطل", "عطب", "مشكل", "خلل", "لا يعمل", "ماخدامش", "واقف", "خاسر"),
        DARIJA_LATIN: ("mochkil", "mouchkil", "ma khdamch", "makhdamch", "wa9ef", "khasser", "mkhasser"),
        ENGLISH: (
            "problem", "issue", "fault", "error", "troubleshoot", "not working",
            "won't start", "broken", "failure", "alarm", "leak", "overheat",
        ),
    }),
    KeywordRule(QueryIntent.MAINTENANCE.value, {
        FRENCH: (
            "maintenance", "entretien", "vidange", "graissage", "préventif", "périodique",
            "lubrification", "révision", "nettoyage",
        ),
        ARABIC: ("صيانة", "تشحيم", "تنظيف"),
        DARIJA_LATIN: ("syana", "siyana", "ntretien"),
        ENGLISH: ("servicing", "lubricate", "lubrication", "grease", "greasing", "preventive", "inspection"),
    }),
    KeywordRule(QueryIntent.INSTALLATION.value, {
        FRENCH: (
            "installer", "installation", "mise en service", "configurer", "brancher",
            "raccordement", "montage", "démarrage", "paramétrage",
        ),
        ARABIC: ("تركيب", "تثبيت"),
        DARIJA_LATIN: ("nrakkeb", "rekkeb", "tarkib"),
        ENGLISH: ("install", "installation", "setup", "commissioning", "configure", "configuration", "wiring"),
    }),
    KeywordRule(QueryIntent.PARTS.value, {
        FRENCH: ("pièce", "référence", "rechange", "commander", "code article", "catalogue"),
        ARABIC: ("قطع الغيار", "قطعة", "مرجع"),
        DARIJA_LATIN: ("pyessa", "lpyessa", "tbdil"),
        ENGLISH: ("spare part", "part number", "replacement part", "parts", "spare"),
    }),
    KeywordRule(QueryIntent.SPECS.value, {
        FRENCH: (
            "caractéristique", "spécification", "dimension", "puissance", "capacité",
            "poids", "tension", "débit", "fiche technique",
        ),
        ARABIC: ("مواصفات", "قدرة", "أبعاد"),
        DARIJA_LATIN: ("ch7al", "chhal"),
        ENGLISH: ("specification", "specs", "rating", "capacity", "weight", "voltage"),
    }),
    KeywordRule(QueryIntent.PROCEDURE.value, {
        FRENCH: ("comment", "procédure", "étapes", "méthode", "faire", "démonter", "remplacer"),
        ARABIC: ("كيف", "طريقة", "خطوات", "كيفاش"),
        DARIJA_LATIN: ("kifach", "kifash", "kifech", "kif ndir"),
        ENGLISH: ("how to", "how do", "procedure", "steps", "method"),
    }),
)


# ── Urgency ──────────────────────────────────────────────────────────

EMERGENCY_RULE = KeywordRule(QueryUrgency.EMERGENCY.value, {
    FRENCH: (
        "ne marche pas", "ne fonctionne pas", "ne démarre pas", "ne tourne pas",
        "arrêté", "panne", "bloqué", "urgent", "erreur", "alarme", "défaut",
        "problème", "cassé", "fuite", "fumée", "court-circuit",
    ),
    ARABIC: (
        "عطل", "عطب", "خلل", "مشكل", "لا يعمل", "واقف", "ماخدامش", "خاسر",
        "مستعجل", "حريق", "دخان",
    ),
    DARIJA_LATIN: (
        "ma khdamch", "makhdamch", "wa9ef", "mochkil", "mouchkil", "khasser", "mkhasser",
        "khsara", "darori",
    ),
    ENGLISH: (
        "broken", "down", "stopped", "not working", "won't start", "problem", "fault", "error",
        "failure", "alarm", "leak", "urgent", "smoke", "fire",
    ),
})

PLANNING_RULE = KeywordRule(QueryUrgency.PLANNING.value, {
    FRENCH: ("planifier", "planning", "prochaine", "programmer", "calendrier", "prévoir", "intervalle"),
    ARABIC: ("تخطيط", "برنامج", "جدول"),
    DARIJA_LATIN: ("nkhatet", "mnin"),
    ENGLISH: ("schedule", "scheduling", "plan", "planning", "next", "interval", "upcoming"),
})


# ── Components ───────────────────────────────────────────────────────
# Canonical noun → spellings across languages. The canonical noun is what the
# analysis reports.

COMPONENT_TERMS: dict[str, tuple[str, ...]] = {
    "moteur": ("moteur", "motor", "محرك", "موتور"),
    "pompe": ("pompe", "pump", "مضخة", "pompa"),
    "vanne": ("vanne", "valve", "صمام"),
    "capteur": ("capteur", "sensor", "حساس", "كابتور"),
    "relais": ("relais", "relay"),
    "contacteur": ("contacteur", "contactor"),
    "fusible": ("fusible", "fuse"),
    "courroie": ("courroie", "belt", "سير"),
    "roulement": ("roulement", "bearing", "رولمان"),
    "joint": ("joint", "seal", "gasket"),
    "filtre": ("filtre", "filter", "فلتر", "فيلتر"),
    "vérin": ("vérin", "cylinder", "verin"),
    "compresseur": ("compresseur", "compressor", "كمبريصور", "كومبريسور"),
    "variateur": ("variateur", "vfd", "drive"),
    "automate": ("automate", "plc"),
    "disjoncteur": ("disjoncteur", "circuit breaker", "breaker"),
    "transformateur": ("transformateur", "transformer"),
    "résistance": ("résistance", "resistor", "heater"),
    "condensateur": ("condensateur", "capacitor"),
}

COMPONENT_RULES: tuple[KeywordRule, ...] = tuple(
    KeywordRule(canonical, {MIXED: spellings}) for canonical, spellings in COMPONENT_TERMS.items()
)


# ── Symptoms ─────────────────────────────────────────────────────────

SYMPTOM_PHRASES: tuple[str, ...] = (
    "ne démarre pas",
    "ne fonctionne pas",
    "ne marche pas",
    "ne tourne pas",
    "bruit anormal",
    "vibration",
    "surchauffe",
    "fuite",
    "fumée",
    "odeur de brûlé",
    "perte de pression",
    "déclenche",
    "bloqué",
    "ma khdamch",
    "wa9ef",
    "won't start",
    "overheating",
    "leak",
    "noise",
    "tripping",
)

SYMPTOM_RULE = KeywordRule("symptom", {MIXED: SYMPTOM_PHRASES})


# ── Error codes ──────────────────────────────────────────────────────
# 1–3 letters, optional separator, 1–4 digits: E01, F23, ERR-001, AL_12.

ERROR_CODE_PATTERN = re.compile(r"\b[A-Z]{1,3}[-_]?\d{1,4}\b", re.IGNORECASE)
