"""Multi-source retriever — routes one question to the knowledge sources its analysis asks for.

Sources, fanned out concurrently and merged once all have finished or failed:
  1. document text   — vector search over the equipment's document chunks
  2. schematics      — structured schematic records, matched on component refs
  3. dependencies    — process-flow summary + upstream equipment documentation
  4. hierarchy       — descendants grouped by level, for site/line/subsystem targets

Every source is isolated: a failure (or a timeout) is logged and the source
contributes nothing. Retrieval only fails when the document-text path failed
and no other source produced anything.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from techassist.application.interfaces.chunk_repository import ChunkRepository
from techassist.application.interfaces.embedding_provider import EmbeddingProvider
from techassist.application.interfaces.schematic_repository import SchematicRepository
from techassist.application.services.dependency_context_builder import DependencyContextBuilder
from techassist.application.services.hierarchy_context_builder import HierarchyContextBuilder
from techassist.application.services.retrieval_config import RetrievalConfig
from techassist.domain.entities import (
    DependencyContext,
    QueryAnalysis,
    QueryIntent,
    Schematic,
    SearchResult,
    SourceType,
)
from techassist.domain.exceptions import PreconditionError, RetrievalError
from techassist.infrastructure.logging.colored_logger import PipelineLogger, PipelineStage

logger = logging.getLogger(__name__)
plog = PipelineLogger("MultiSourceRetriever")

# Intent-specific vocabulary appended to the query before embedding.
INTENT_KEYWORDS: dict[QueryIntent, tuple[str, ...]] = {
    QueryIntent.TROUBLESHOOTING: ("diagnostic", "panne", "erreur", "solution", "cause"),
    QueryIntent.MAINTENANCE: ("entretien", "maintenance", "périodique", "préventif", "intervalle"),
    QueryIntent.INSTALLATION: ("installation", "mise en service", "configuration", "branchement"),
    QueryIntent.PARTS: ("pièce", "référence", "rechange", "code article"),
    QueryIntent.SPECS: ("caractéristique", "spécification", "technique", "dimension"),
    QueryIntent.PROCEDURE: ("procédure", "étape", "méthode", "comment"),
}
MAX_INTENT_KEYWORDS = 2


def build_augmented_query(query: str, analysis: QueryAnalysis) -> str:
    """Query text biased toward intent-relevant passages: keywords, components, error codes."""
    parts = [query]
    keywords = INTENT_KEYWORDS.get(analysis.intent, ())[:MAX_INTENT_KEYWORDS]
    if keywords:
        parts.append(" ".join(keywords))
    if analysis.entities.components:
        parts.append(" ".join(analysis.entities.components))
    if analysis.entities.error_codes:
        parts.append(" ".join(analysis.entities.error_codes))
    return " ".join(parts)


def schematic_overlaps(schematic: Schematic, terms: list[str]) -> bool:
    """True when a component ref and a mentioned component / error code contain one another."""
    refs = [c.ref.lower() for c in schematic.components if c.ref and c.ref.strip()]
    needles = [t.lower() for t in terms if t and t.strip()]
    return any(ref in term or term in ref for term in needles for ref in refs)


def format_schematic(schematic: Schematic) -> str:
    """Flatten a schematic record into a text block for the model context."""
    kind = (schematic.type or "technique").upper()
    page = f" (Page {schematic.page_reference})" if schematic.page_reference else ""
    lines = [f"SCHÉMA {kind}{page}", ""]

    if schematic.description:
        lines += [f"Description: {schematic.description}", ""]

    if schematic.components:
        lines.append("Composants:")
        for comp in schematic.components:
            value = f" ({comp.value})" if comp.value else ""
            lines.append(f"  • {comp.ref}: {comp.type}{value}")
        lines.append("")

    if schematic.connections:
        lines.append("Connexions:")
        for conn in schematic.connections:
            kind_suffix = f" [{conn.type}]" if conn.type else ""
            lines.append(f"  • {conn.source} → {conn.target}{kind_suffix}")
        lines.append("")

    if schematic.diagnostic_sequence:
        lines.append(f"Séquence de diagnostic: {' → '.join(schematic.diagnostic_sequence)}")

    return "\n".join(lines).strip()


def merge_results(results: list[SearchResult], max_results: int) -> list[SearchResult]:
    """Deduplicate on (content, source_type), sort by similarity descending, truncate."""
    best: dict[tuple[str, SourceType], SearchResult] = {}
    for result in results:
        current = best.get(result.identity)
        if current is None or result.similarity > current.similarity:
            best[result.identity] = result
    ranked = sorted(best.values(), key=lambda r: r.similarity, reverse=True)
    return ranked[: max(max_results, 0)]


@dataclass
class _SourceOutcome:
    name: str
    results: list[SearchResult] = field(default_factory=list)
    error: BaseException | None = None


class MultiSourceRetriever:
    """Application service producing the ranked context for one question."""

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        chunk_repo: ChunkRepository,
        *,
        schematic_repo: SchematicRepository | None = None,
        dependency_builder: DependencyContextBuilder | None = None,
        hierarchy_builder: HierarchyContextBuilder | None = None,
        config: RetrievalConfig | None = None,
    ):
        self._embedding_provider = embedding_provider
        self._chunk_repo = chunk_repo
        self._schematic_repo = schematic_repo
        self._dependency_builder = dependency_builder
        self._hierarchy_builder = hierarchy_builder
        self._config = config or RetrievalConfig()

    async def retrieve(
        self,
        equipment_id: str,
        equipment_name: str,
        query: str,
        analysis: QueryAnalysis,
        *,
        max_results: int | None = None,
        dependency_context: DependencyContext | None = None,
    ) -> list[SearchResult]:
        """Fan out to the sources selected by ``analysis`` and merge their results.

        Args:
            equipment_id: Target equipment; every source is scoped to it.
            equipment_name: Display name used as origin of same-equipment results.
            query: The (alias-rewritten) question.
            analysis: Decides which optional sources run.
            max_results: Cap on the merged list (default from config, 15).
            dependency_context: Already-built dependency context, reused instead
                of querying the graph a second time.

        Raises:
            PreconditionError: Missing equipment identity or empty query.
            RetrievalError: Document-text search failed and nothing else was found.
        """
        if not equipment_id:
            raise PreconditionError("equipment_id", "is required for retrieval")
        if not query or not query.strip():
            raise PreconditionError("query", "must be a non-empty string")

        limit = self._config.max_results if max_results is None else max_results
        augmented = build_augmented_query(query, analysis)
        logger.debug("Augmented query: %s", augmented[:200])

        # One embedding for the equipment and upstream searches alike; shielded so a
        # timed-out source never cancels it for the others.
        embedding = asyncio.ensure_future(
            self._embedding_provider.generate_query_embedding(augmented)
        )

        sources: list[tuple[str, Callable[[], Awaitable[list[SearchResult]]]]] = [
            ("document_text", lambda: self._search_documents(equipment_id, equipment_name, embedding)),
        ]
        if analysis.search_strategy.schematics and self._schematic_repo is not None:
            sources.append(("schematics", lambda: self._search_schematics(equipment_id, analysis)))
        if analysis.search_strategy.dependencies:
            sources.append((
                "dependencies",
                lambda: self._search_dependencies(
                    equipment_id, equipment_name, analysis, embedding, dependency_context
                ),
            ))
        if analysis.targets_hierarchy and self._hierarchy_builder is not None:
            sources.append(("hierarchy", lambda: self._search_hierarchy(equipment_id, equipment_name)))

        plog.step_start(
            PipelineStage.RETRIEVAL,
            "Searching sources",
            equipment=equipment_name,
            sources=",".join(name for name, _ in sources),
        )
        try:
            outcomes = await asyncio.gather(*(self._run_source(name, run) for name, run in sources))
        finally:
            if not embedding.done():
                embedding.cancel()

        for outcome in outcomes:
            plog.detail(
                f"{outcome.name}: {len(outcome.results)} results"
                + (f" (failed: {type(outcome.error).__name__})" if outcome.error else "")
            )

        collected = [r for outcome in outcomes for r in outcome.results]
        primary = outcomes[0]
        if primary.error is not None and not collected:
            raise RetrievalError(
                f"Document search failed for equipment {equipment_id} and no other source "
                "produced context",
                cause=primary.error,
            )

        merged = merge_results(collected, limit)
        plog.step_complete(
            PipelineStage.RETRIEVAL,
            "Sources merged",
            collected=len(collected),
            kept=len(merged),
        )
        return merged

    # ── Source isolation ─────────────────────────────────────────────

    async def _run_source(
        self,
        name: str,
        run: Callable[[], Awaitable[list[SearchResult]]],
    ) -> _SourceOutcome:
        timeout = self._config.source_timeout_seconds
        try:
            if timeout and timeout > 0:
                results = await asyncio.wait_for(run(), timeout=timeout)
            else:
                results = await run()
        except asyncio.TimeoutError as exc:
            logger.warning("Source %s timed out after %.1fs", name, timeout)
            return _SourceOutcome(name=name, error=exc)
        except Exception as exc:
            logger.warning("Source %s failed, continuing without it: %s", name, exc)
            return _SourceOutcome(name=name, error=exc)
        return _SourceOutcome(name=name, results=results)

    # ── Sources ──────────────────────────────────────────────────────

    async def _search_documents(
        self,
        equipment_id: str,
        equipment_name: str,
        embedding: Awaitable[list[float]],
    ) -> list[SearchResult]:
        vector = await asyncio.shield(embedding)
        matches = await self._chunk_repo.search_similar(
            equipment_id,
            vector,
            similarity_floor=self._config.document_similarity_floor,
            limit=self._config.document_match_count,
        )
        return [
            SearchResult(
                content=m.content,
                source_type=SourceType.MANUAL_TEXT,
                similarity=m.similarity,
                origin_equipment_name=equipment_name,
                page_reference=m.page_reference,
                metadata=dict(m.metadata),
            )
            for m in matches
        ]

    async def _search_schematics(
        self,
        equipment_id: str,
        analysis: QueryAnalysis,
    ) -> list[SearchResult]:
        schematics = await self._schematic_repo.list_for_equipment(equipment_id)
        terms = [*analysis.entities.components, *analysis.entities.error_codes]
        troubleshooting = analysis.intent == QueryIntent.TROUBLESHOOTING

        results: list[SearchResult] = []
        for schematic in schematics:
            relevant = schematic_overlaps(schematic, terms)
            if not relevant and not troubleshooting:
                continue
            results.append(SearchResult(
                content=format_schematic(schematic),
                source_type=SourceType.SCHEMATIC,
                similarity=(
                    self._config.schematic_match_similarity
                    if relevant
                    else self._config.schematic_generic_similarity
                ),
                page_reference=schematic.page_reference,
                metadata={"schematic_type": schematic.type, "component_match": relevant},
            ))
        return results

    async def _search_dependencies(
        self,
        equipment_id: str,
        equipment_name: str,
        analysis: QueryAnalysis,
        embedding: Awaitable[list[float]],
        context: DependencyContext | None,
    ) -> list[SearchResult]:
        if context is None:
            if self._dependency_builder is None:
                return []
            context = await self._dependency_builder.build(equipment_id, equipment_name, analysis)

        results: list[SearchResult] = []
        if context.summary:
            results.append(SearchResult(
                content=context.summary,
                source_type=SourceType.DEPENDENCY_SUMMARY,
                similarity=self._config.dependency_similarity,
                metadata={
                    "upstream_count": len(context.upstream),
                    "downstream_count": len(context.downstream),
                },
            ))

        if analysis.intent != QueryIntent.TROUBLESHOOTING or not context.upstream:
            return results

        try:
            vector = await asyncio.shield(embedding)
        except Exception as exc:
            logger.warning("Upstream document search skipped, no embedding: %s", exc)
            return results

        for link in context.upstream[: self._config.upstream_max_equipment]:
            try:
                matches = await self._chunk_repo.search_similar(
                    link.equipment_id,
                    vector,
                    similarity_floor=self._config.upstream_similarity_floor,
                    limit=self._config.upstream_match_count,
                )
            except Exception as exc:
                logger.warning("Upstream document search failed for %s: %s", link.name, exc)
                continue
            for m in matches:
                results.append(SearchResult(
                    content=m.content,
                    source_type=SourceType.MANUAL_TEXT,
                    similarity=m.similarity * self._config.upstream_similarity_discount,
                    origin_equipment_name=link.name,
                    page_reference=m.page_reference,
                    metadata={**m.metadata, "from_dependency": True},
                ))
        return results

    async def _search_hierarchy(self, equipment_id: str, equipment_name: str) -> list[SearchResult]:
        context = await self._hierarchy_builder.describe_descendants(equipment_id, equipment_name)
        if not context.summary:
            return []
        return [SearchResult(
            content=context.summary,
            source_type=SourceType.HIERARCHY_SUMMARY,
            similarity=self._config.hierarchy_similarity,
            origin_equipment_name=equipment_name,
            metadata={
                "levels": {level: len(nodes) for level, nodes in context.descendants_by_level.items()},
            },
        )]
