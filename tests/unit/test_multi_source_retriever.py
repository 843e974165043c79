"""Unit tests for the MultiSourceRetriever — source routing, isolation, merge."""

import asyncio

import pytest

from techassist.application.services.dependency_context_builder import DependencyContextBuilder
from techassist.application.services.hierarchy_context_builder import HierarchyContextBuilder
from techassist.application.services.multi_source_retriever import (
    MultiSourceRetriever,
    build_augmented_query,
    format_schematic,
    merge_results,
    schematic_overlaps,
)
from techassist.application.services.retrieval_config import RetrievalConfig
from techassist.domain.entities import (
    Criticality,
    DependencyLink,
    DocumentChunkMatch,
    ExtractedEntities,
    HierarchyNode,
    QueryAnalysis,
    QueryIntent,
    QueryScope,
    Schematic,
    SchematicComponent,
    SchematicConnection,
    SearchResult,
    SearchStrategy,
    SourceType,
)
from techassist.domain.exceptions import PreconditionError, RetrievalError


# ── Fakes ────────────────────────────────────────────────────────────


class FakeEmbeddingProvider:
    def __init__(self, *, fail: bool = False):
        self._fail = fail
        self.texts: list[str] = []

    async def generate_query_embedding(self, query: str) -> list[float]:
        self.texts.append(query)
        if self._fail:
            raise RuntimeError("embedding service unavailable")
        return [0.1, 0.2, 0.3]


class FakeChunkRepository:
    """Returns canned matches per equipment and records every search."""

    def __init__(self, matches: dict[str, list[DocumentChunkMatch]] | None = None, *, fail=False, delay=0.0):
        self._matches = matches or {}
        self._fail = fail
        self._delay = delay
        self.searches: list[dict] = []

    async def search_similar(self, equipment_id, query_embedding, *, similarity_floor, limit):
        self.searches.append({"equipment_id": equipment_id, "floor": similarity_floor, "limit": limit})
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._fail:
            raise RuntimeError("vector index unavailable")
        hits = [m for m in self._matches.get(equipment_id, []) if m.similarity >= similarity_floor]
        return hits[:limit]


class FakeSchematicRepository:
    def __init__(self, schematics: list[Schematic] | None = None, *, fail=False):
        self._schematics = schematics or []
        self._fail = fail

    async def list_for_equipment(self, equipment_id: str):
        if self._fail:
            raise RuntimeError("relation schematic_analyses does not exist")
        return list(self._schematics)


class FakeDependencyRepository:
    def __init__(self, upstream=None, downstream=None):
        self._upstream = upstream or []
        self._downstream = downstream or []

    async def list_upstream(self, equipment_id: str):
        return list(self._upstream)

    async def list_downstream(self, equipment_id: str):
        return list(self._downstream)


class FakeEquipmentRepository:
    def __init__(self, descendants: list[HierarchyNode] | None = None, *, fail=False):
        self._descendants = descendants or []
        self._fail = fail

    async def get_by_id(self, equipment_id):
        return None

    async def list_children(self, equipment_id):
        return []

    async def list_descendants(self, equipment_id):
        if self._fail:
            raise RuntimeError("database unavailable")
        return list(self._descendants)


def _analysis(intent=QueryIntent.GENERAL, *, schematics=False, dependencies=False,
              scope=QueryScope.EQUIPMENT, components=(), error_codes=()) -> QueryAnalysis:
    return QueryAnalysis(
        intent=intent,
        scope=scope,
        entities=ExtractedEntities(components=tuple(components), error_codes=tuple(error_codes)),
        search_strategy=SearchStrategy(schematics=schematics, dependencies=dependencies),
    ).with_intent_invariants()


def _chunk(content: str, similarity: float, page: str | None = "12") -> DocumentChunkMatch:
    return DocumentChunkMatch(content=content, similarity=similarity, page_reference=page)


MOTOR_SCHEMATIC = Schematic(
    type="electrical",
    description="Circuit de commande moteur",
    components=[SchematicComponent("KM1", "contacteur"), SchematicComponent("M1", "moteur", "7.5kW")],
    connections=[SchematicConnection("KM1", "M1", "power")],
    diagnostic_sequence=["Vérifier F1", "Vérifier KM1"],
    page_reference="34",
)
HYDRAULIC_SCHEMATIC = Schematic(
    type="hydraulic",
    description="Circuit hydraulique",
    components=[SchematicComponent("P1", "pompe")],
    page_reference="40",
)


# ── Pure helpers ─────────────────────────────────────────────────────


class TestHelpers:

    def test_augmented_query_adds_two_intent_keywords_components_and_codes(self):
        analysis = _analysis(
            QueryIntent.TROUBLESHOOTING, components=["moteur"], error_codes=["E01"]
        )

        augmented = build_augmented_query("le moteur ne démarre pas", analysis)

        assert augmented == "le moteur ne démarre pas diagnostic panne moteur E01"

    def test_augmented_query_general_intent_unchanged(self):
        assert build_augmented_query("bonjour", _analysis()) == "bonjour"

    def test_schematic_overlap_either_direction(self):
        assert schematic_overlaps(MOTOR_SCHEMATIC, ["km1"])
        assert schematic_overlaps(MOTOR_SCHEMATIC, ["M1-bis"])
        assert not schematic_overlaps(MOTOR_SCHEMATIC, ["P7"])
        assert not schematic_overlaps(MOTOR_SCHEMATIC, ["", "  "])

    def test_format_schematic_sections(self):
        text = format_schematic(MOTOR_SCHEMATIC)

        assert text.startswith("SCHÉMA ELECTRICAL (Page 34)")
        assert "Description: Circuit de commande moteur" in text
        assert "  • M1: moteur (7.5kW)" in text
        assert "  • KM1 → M1 [power]" in text
        assert "Séquence de diagnostic: Vérifier F1 → Vérifier KM1" in text

    def test_merge_sorts_truncates_and_deduplicates(self):
        results = [
            SearchResult("a", SourceType.MANUAL_TEXT, 0.3),
            SearchResult("b", SourceType.MANUAL_TEXT, 0.9),
            SearchResult("a", SourceType.MANUAL_TEXT, 0.5),
            SearchResult("a", SourceType.SCHEMATIC, 0.7),
            SearchResult("c", SourceType.MANUAL_TEXT, 0.6),
        ]

        merged = merge_results(results, 3)

        assert [(r.content, r.similarity) for r in merged] == [("b", 0.9), ("a", 0.7), ("c", 0.6)]
        assert merge_results(results, 10)[3].similarity == 0.5


# ── Retrieval ────────────────────────────────────────────────────────


class TestRetrieve:

    @pytest.mark.asyncio
    async def test_document_text_only_for_general_question(self):
        chunks = FakeChunkRepository({"E1": [_chunk("Couple de serrage", 0.8), _chunk("Graissage", 0.4)]})
        retriever = MultiSourceRetriever(
            FakeEmbeddingProvider(), chunks, schematic_repo=FakeSchematicRepository([MOTOR_SCHEMATIC])
        )

        results = await retriever.retrieve("E1", "Compresseur", "serrage", _analysis())

        assert [r.source_type for r in results] == [SourceType.MANUAL_TEXT] * 2
        assert results[0].similarity == 0.8
        assert results[0].origin_equipment_name == "Compresseur"
        assert results[0].page_reference == "12"
        assert chunks.searches == [{"equipment_id": "E1", "floor": 0.25, "limit": 10}]

    @pytest.mark.asyncio
    async def test_upstream_dependency_scenario(self):
        """Troubleshooting with one critical upstream pump."""
        pump = DependencyLink("U1", "Pump A", "feeds", Criticality.CRITICAL)
        chunks = FakeChunkRepository({
            "E1": [_chunk("Manuel compresseur", 0.7)],
            "U1": [_chunk("Amorçage de la pompe", 0.5), _chunk("Hors sujet", 0.3)],
        })
        builder = DependencyContextBuilder(FakeDependencyRepository([pump], []))
        retriever = MultiSourceRetriever(
            FakeEmbeddingProvider(), chunks, dependency_builder=builder
        )
        analysis = _analysis(QueryIntent.TROUBLESHOOTING)

        results = await retriever.retrieve("E1", "Compresseur", "ne démarre pas", analysis)

        summaries = [r for r in results if r.source_type == SourceType.DEPENDENCY_SUMMARY]
        assert len(summaries) == 1
        assert summaries[0].similarity == 0.85
        assert "Pump A" in summaries[0].content
        assert {"equipment_id": "U1", "floor": 0.4, "limit": 3} in chunks.searches
        upstream_hits = [r for r in results if r.origin_equipment_name == "Pump A"]
        assert len(upstream_hits) == 1
        assert upstream_hits[0].similarity == pytest.approx(0.4)
        assert upstream_hits[0].metadata["from_dependency"] is True

    @pytest.mark.asyncio
    async def test_prebuilt_dependency_context_is_reused(self):
        pump = DependencyLink("U1", "Pump A", "feeds", Criticality.CRITICAL)
        builder = DependencyContextBuilder(FakeDependencyRepository([pump], []))
        context = await builder.build("E1", "Compresseur", _analysis(QueryIntent.TROUBLESHOOTING))
        retriever = MultiSourceRetriever(FakeEmbeddingProvider(), FakeChunkRepository())

        results = await retriever.retrieve(
            "E1", "Compresseur", "panne", _analysis(QueryIntent.TROUBLESHOOTING),
            dependency_context=context,
        )

        assert [r.source_type for r in results] == [SourceType.DEPENDENCY_SUMMARY]

    @pytest.mark.asyncio
    async def test_upstream_search_limited_to_two_equipment(self):
        upstream = [DependencyLink(f"U{i}", f"Amont {i}") for i in range(1, 5)]
        chunks = FakeChunkRepository()
        builder = DependencyContextBuilder(FakeDependencyRepository(upstream, []))
        retriever = MultiSourceRetriever(FakeEmbeddingProvider(), chunks, dependency_builder=builder)

        await retriever.retrieve("E1", "Compresseur", "panne", _analysis(QueryIntent.TROUBLESHOOTING))

        assert [s["equipment_id"] for s in chunks.searches] == ["E1", "U1", "U2"]

    @pytest.mark.asyncio
    async def test_schematic_bands(self):
        retriever = MultiSourceRetriever(
            FakeEmbeddingProvider(),
            FakeChunkRepository(),
            schematic_repo=FakeSchematicRepository([MOTOR_SCHEMATIC, HYDRAULIC_SCHEMATIC]),
        )
        analysis = _analysis(QueryIntent.TROUBLESHOOTING, schematics=True, components=["KM1"])

        results = await retriever.retrieve("E1", "Compresseur", "KM1 colle", analysis)

        schematics = [r for r in results if r.source_type == SourceType.SCHEMATIC]
        assert [r.similarity for r in schematics] == [0.9, 0.7]
        assert schematics[0].metadata == {"schematic_type": "electrical", "component_match": True}
        assert schematics[1].page_reference == "40"

    @pytest.mark.asyncio
    async def test_non_matching_schematics_skipped_outside_troubleshooting(self):
        retriever = MultiSourceRetriever(
            FakeEmbeddingProvider(),
            FakeChunkRepository(),
            schematic_repo=FakeSchematicRepository([MOTOR_SCHEMATIC, HYDRAULIC_SCHEMATIC]),
        )
        analysis = _analysis(QueryIntent.MAINTENANCE, schematics=True, components=["P1"])

        results = await retriever.retrieve("E1", "Compresseur", "entretien pompe", analysis)

        assert [r.metadata["schematic_type"] for r in results] == ["hydraulic"]

    @pytest.mark.asyncio
    async def test_hierarchy_summary_for_line_scope(self):
        descendants = [HierarchyNode("E1", "Compresseur", "equipment"), HierarchyNode("E2", "Sécheur", "equipment")]
        retriever = MultiSourceRetriever(
            FakeEmbeddingProvider(),
            FakeChunkRepository(),
            hierarchy_builder=HierarchyContextBuilder(FakeEquipmentRepository(descendants)),
        )

        results = await retriever.retrieve("L1", "Ligne 1", "état", _analysis(scope=QueryScope.LINE))

        assert len(results) == 1
        assert results[0].source_type == SourceType.HIERARCHY_SUMMARY
        assert results[0].similarity == 0.8
        assert results[0].metadata == {"levels": {"equipment": 2}}

    @pytest.mark.asyncio
    async def test_embedding_failure_degrades_to_other_sources(self):
        descendants = [HierarchyNode("E1", "Compresseur", "equipment")]
        pump = DependencyLink("U1", "Pump A", criticality=Criticality.CRITICAL)
        chunks = FakeChunkRepository({"L1": [_chunk("jamais vu", 0.9)]})
        retriever = MultiSourceRetriever(
            FakeEmbeddingProvider(fail=True),
            chunks,
            schematic_repo=FakeSchematicRepository([MOTOR_SCHEMATIC]),
            dependency_builder=DependencyContextBuilder(FakeDependencyRepository([pump], [])),
            hierarchy_builder=HierarchyContextBuilder(FakeEquipmentRepository(descendants)),
        )
        analysis = _analysis(QueryIntent.TROUBLESHOOTING, schematics=True, scope=QueryScope.LINE)

        results = await retriever.retrieve("L1", "Ligne 1", "panne", analysis)

        types = {r.source_type for r in results}
        assert SourceType.MANUAL_TEXT not in types
        assert types == {SourceType.SCHEMATIC, SourceType.DEPENDENCY_SUMMARY, SourceType.HIERARCHY_SUMMARY}
        assert chunks.searches == []

    @pytest.mark.asyncio
    async def test_primary_failure_with_nothing_else_raises(self):
        retriever = MultiSourceRetriever(FakeEmbeddingProvider(fail=True), FakeChunkRepository())

        with pytest.raises(RetrievalError) as exc_info:
            await retriever.retrieve("E1", "Compresseur", "serrage", _analysis())

        assert isinstance(exc_info.value.cause, RuntimeError)

    @pytest.mark.asyncio
    async def test_empty_results_are_not_an_error(self):
        retriever = MultiSourceRetriever(FakeEmbeddingProvider(), FakeChunkRepository())

        assert await retriever.retrieve("E1", "Compresseur", "serrage", _analysis()) == []

    @pytest.mark.asyncio
    async def test_failing_optional_source_is_isolated(self):
        chunks = FakeChunkRepository({"E1": [_chunk("Manuel", 0.6)]})
        retriever = MultiSourceRetriever(
            FakeEmbeddingProvider(),
            chunks,
            schematic_repo=FakeSchematicRepository(fail=True),
            hierarchy_builder=HierarchyContextBuilder(FakeEquipmentRepository(fail=True)),
        )
        analysis = _analysis(QueryIntent.TROUBLESHOOTING, schematics=True, scope=QueryScope.SUBSYSTEM)

        results = await retriever.retrieve("E1", "Compresseur", "panne", analysis)

        assert [r.content for r in results] == ["Manuel"]

    @pytest.mark.asyncio
    async def test_slow_source_times_out_without_blocking_others(self):
        slow_chunks = FakeChunkRepository({"E1": [_chunk("trop tard", 0.9)]}, delay=1.0)
        retriever = MultiSourceRetriever(
            FakeEmbeddingProvider(),
            slow_chunks,
            schematic_repo=FakeSchematicRepository([MOTOR_SCHEMATIC]),
            config=RetrievalConfig(source_timeout_seconds=0.05),
        )
        analysis = _analysis(QueryIntent.TROUBLESHOOTING, schematics=True)

        results = await retriever.retrieve("E1", "Compresseur", "panne", analysis)

        assert [r.source_type for r in results] == [SourceType.SCHEMATIC]

    @pytest.mark.asyncio
    async def test_results_ordered_and_capped(self):
        chunks = FakeChunkRepository({"E1": [_chunk(f"passage {i}", 0.3 + i * 0.03) for i in range(10)]})
        retriever = MultiSourceRetriever(
            FakeEmbeddingProvider(),
            chunks,
            schematic_repo=FakeSchematicRepository([MOTOR_SCHEMATIC, HYDRAULIC_SCHEMATIC]),
        )
        analysis = _analysis(QueryIntent.TROUBLESHOOTING, schematics=True)

        results = await retriever.retrieve("E1", "Compresseur", "panne", analysis, max_results=5)

        assert len(results) == 5
        similarities = [r.similarity for r in results]
        assert similarities == sorted(similarities, reverse=True)
        assert results[0].source_type == SourceType.SCHEMATIC

    @pytest.mark.asyncio
    async def test_embedding_requested_once_with_augmented_query(self):
        embedding = FakeEmbeddingProvider()
        pump = DependencyLink("U1", "Pump A", criticality=Criticality.CRITICAL)
        retriever = MultiSourceRetriever(
            embedding,
            FakeChunkRepository(),
            dependency_builder=DependencyContextBuilder(FakeDependencyRepository([pump], [])),
        )

        await retriever.retrieve("E1", "Compresseur", "panne", _analysis(QueryIntent.TROUBLESHOOTING))

        assert embedding.texts == ["panne diagnostic panne"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("equipment_id,query", [("", "panne"), ("E1", ""), ("E1", "   ")])
    async def test_preconditions(self, equipment_id, query):
        retriever = MultiSourceRetriever(FakeEmbeddingProvider(), FakeChunkRepository())

        with pytest.raises(PreconditionError):
            await retriever.retrieve(equipment_id, "Compresseur", query, _analysis())
