"""Alias resolver — maps colloquial / multilingual equipment nicknames to canonical equipment.

Matching runs over normalized text:
  1. Normalized alias contained in the normalized query → confidence 1.0
  2. Otherwise bigram Jaccard similarity, kept when ≥ the threshold (0.6)
  3. One entry per equipment, keeping the highest confidence

Resolution is best-effort enrichment: an unavailable alias table yields an
empty list, never an exception.
"""

import logging
import re

from techassist.application.interfaces.alias_repository import AliasRepository
from techassist.domain.entities import (
    AliasResolution,
    EquipmentAlias,
    ResolvedEquipmentAlias,
)
from techassist.domain.text_normalization import bigram_similarity, normalize_text

logger = logging.getLogger(__name__)

_DEFAULT_SIMILARITY_THRESHOLD = 0.6


def match_aliases(
    query: str,
    aliases: list[EquipmentAlias],
    *,
    similarity_threshold: float = _DEFAULT_SIMILARITY_THRESHOLD,
) -> list[ResolvedEquipmentAlias]:
    """Pure matching step: deduplicated, confidence-sorted matches for ``query``."""
    normalized_query = normalize_text(query)
    if not normalized_query:
        return []

    best: dict[str, ResolvedEquipmentAlias] = {}
    for alias in aliases:
        normalized_alias = normalize_text(alias.alias_text) or normalize_text(alias.alias_normalized)
        if not normalized_alias:
            continue

        if normalized_alias in normalized_query:
            confidence = 1.0
        else:
            confidence = bigram_similarity(normalized_query, normalized_alias)
            if confidence < similarity_threshold:
                continue

        current = best.get(alias.equipment_id)
        if current is None or confidence > current.confidence:
            best[alias.equipment_id] = ResolvedEquipmentAlias(
                equipment_id=alias.equipment_id,
                canonical_name=alias.canonical_name,
                matched_alias_text=alias.alias_text,
                confidence=confidence,
            )

    return sorted(best.values(), key=lambda r: r.confidence, reverse=True)


# Word characters plus the combining marks (accents, harakat) that break \w runs.
_WORD_RE = re.compile(r"[\w\u0300-\u036f\u0610-\u061a\u064b-\u065f\u0670]+")


def _normalized_words(query: str) -> list[tuple[str, int, int]]:
    """Normalized tokens of ``query`` with the raw span each one comes from."""
    words = []
    for match in _WORD_RE.finditer(query):
        for token in normalize_text(match.group(0)).split():
            words.append((token, match.start(), match.end()))
    return words


def rewrite_query(query: str, resolved: list[ResolvedEquipmentAlias]) -> str:
    """Replace every matched alias occurrence with the canonical equipment name.

    Occurrences are found on normalized words, so case, accent, hamza and ta
    marbuta variants of an alias are rewritten too. Fuzzy (bigram) matches
    have no exact span in the query and leave it unchanged.
    """
    canonical_by_tokens: dict[tuple[str, ...], str] = {}
    for match in resolved:
        tokens = tuple(normalize_text(match.matched_alias_text).split())
        if tokens:
            canonical_by_tokens.setdefault(tokens, match.canonical_name)
    if not canonical_by_tokens:
        return query

    # Single pass, longest aliases first: a short alias never splits a longer
    # one, and inserted canonical names are never rewritten again.
    candidates = sorted(canonical_by_tokens, key=len, reverse=True)
    words = _normalized_words(query)
    tokens = [token for token, _, _ in words]

    pieces: list[str] = []
    cursor = 0
    i = 0
    while i < len(words):
        for alias in candidates:
            if tuple(tokens[i : i + len(alias)]) == alias and words[i][1] >= cursor:
                start, end = words[i][1], words[i + len(alias) - 1][2]
                pieces.append(query[cursor:start])
                pieces.append(canonical_by_tokens[alias])
                cursor = end
                i += len(alias)
                break
        else:
            i += 1
    pieces.append(query[cursor:])
    return "".join(pieces)



def build_equipment_context(resolved: list[ResolvedEquipmentAlias]) -> str:
    """Render the referenced-equipment block appended to the system prompt."""
    if not resolved:
        return ""
    lines = [
        f'Equipment: {r.canonical_name} (also known as "{r.matched_alias_text}")'
        for r in resolved
    ]
    return "\n\nReferenced Equipment:\n" + "\n".join(lines)


class AliasResolver:
    """Application service wrapping the alias table and the matching algorithm."""

    def __init__(
        self,
        alias_repo: AliasRepository | None,
        *,
        similarity_threshold: float = _DEFAULT_SIMILARITY_THRESHOLD,
    ):
        self._alias_repo = alias_repo
        self._threshold = similarity_threshold

    async def resolve(self, query: str) -> list[ResolvedEquipmentAlias]:
        """Return the equipment referenced by nickname in ``query``."""
        if self._alias_repo is None:
            return []

        try:
            aliases = await self._alias_repo.list_aliases()
        except Exception as exc:
            logger.warning("Alias table unavailable, skipping alias resolution: %s", exc)
            return []

        if not aliases:
            return []

        resolved = match_aliases(query, aliases, similarity_threshold=self._threshold)
        logger.debug("Alias matching: %d aliases scanned, %d resolved", len(aliases), len(resolved))
        return resolved

    async def preprocess(self, query: str) -> AliasResolution:
        """Resolve aliases and produce the rewritten query used for analysis and embedding."""
        resolved = await self.resolve(query)
        if not resolved:
            return AliasResolution(original_query=query, modified_query=query)

        modified = rewrite_query(query, resolved)
        logger.info(
            "Alias resolution: %s | original=%r modified=%r",
            [f"{r.matched_alias_text} → {r.canonical_name} ({r.confidence:.0%})" for r in resolved],
            query,
            modified,
        )
        return AliasResolution(original_query=query, modified_query=modified, resolved=resolved)
