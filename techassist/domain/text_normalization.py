"""Text normalization shared by alias matching and keyword detection.

Normalizes case, Latin diacritics, Arabic-script variants (hamza carriers,
alef maqsura, ta marbuta, tatweel, harakat, Maghrebi letters), Arabic-Indic
digits and punctuation, so that "Réf. Pièce", "ref piece" and the Arabic
spellings of one nickname collapse to a single comparable form.
"""

import re
import unicodedata

_ARABIC_LETTER_MAP = str.maketrans({
    "ى": "ي",  # alef maqsura → ya
    "ة": "ه",  # ta marbuta → ha
    "ڭ": "ك",  # Maghrebi gaf
    "گ": "ك",
    "ڤ": "ف",
    "پ": "ب",
    "ـ": "",   # tatweel
    **{chr(0x0660 + i): str(i) for i in range(10)},  # Arabic-Indic digits
    **{chr(0x06F0 + i): str(i) for i in range(10)},  # Extended Arabic-Indic digits
})

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_text(text: str | None) -> str:
    """Return a lowercase, accent-free, punctuation-free form of ``text``."""
    if not text:
        return ""

    decomposed = unicodedata.normalize("NFKD", text.casefold())
    chars: list[str] = []
    for ch in decomposed:
        category = unicodedata.category(ch)
        if category == "Mn":
            continue  # combining accents, harakat, hamza above/below
        if category[0] in ("P", "S"):
            chars.append(" ")
            continue
        chars.append(ch)

    stripped = "".join(chars).translate(_ARABIC_LETTER_MAP)
    return _WHITESPACE_RE.sub(" ", stripped).strip()


def character_bigrams(text: str) -> set[str]:
    return {text[i : i + 2] for i in range(len(text) - 1)}


def bigram_similarity(first: str, second: str) -> float:
    """Jaccard similarity of the two strings' character-bigram sets."""
    if first == second:
        return 1.0
    if not first or not second:
        return 0.0

    bigrams_a = character_bigrams(first)
    bigrams_b = character_bigrams(second)
    if not bigrams_a or not bigrams_b:
        return 0.0

    overlap = len(bigrams_a & bigrams_b)
    union = len(bigrams_a) + len(bigrams_b) - overlap
    return overlap / union
