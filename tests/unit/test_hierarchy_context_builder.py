"""Unit tests for the HierarchyContextBuilder and the bounded descendant walk."""

import pytest

from techassist.application.services.hierarchy_context_builder import (
    HierarchyContextBuilder,
    group_by_level,
    render_descendants_summary,
)
from techassist.domain.entities import (
    MAX_HIERARCHY_DEPTH,
    EquipmentRecord,
    HierarchyNode,
    collect_descendants,
)


# ── Fakes ────────────────────────────────────────────────────────────


class FakeEquipmentRepository:
    """In-memory equipment tree built from records."""

    def __init__(self, records: list[EquipmentRecord], *, fail: bool = False):
        self._records = {r.id: r for r in records}
        self._fail = fail
        self.get_calls = 0

    async def get_by_id(self, equipment_id: str):
        self.get_calls += 1
        if self._fail:
            raise RuntimeError("database unavailable")
        return self._records.get(equipment_id)

    async def list_children(self, equipment_id: str):
        if self._fail:
            raise RuntimeError("database unavailable")
        return [
            HierarchyNode(id=r.id, name=r.name, level=r.level)
            for r in self._records.values()
            if r.parent_id == equipment_id
        ]

    async def list_descendants(self, equipment_id: str):
        if self._fail:
            raise RuntimeError("database unavailable")
        index: dict[str, list[HierarchyNode]] = {}
        for r in self._records.values():
            if r.parent_id:
                index.setdefault(r.parent_id, []).append(HierarchyNode(r.id, r.name, r.level))
        return collect_descendants(index, equipment_id)


SITE = EquipmentRecord("S", "Usine Casablanca", level="site")
LINE = EquipmentRecord("L1", "Ligne 1", level="line", parent_id="S")
COMPRESSOR = EquipmentRecord("E1", "Compresseur GA90", level="equipment", parent_id="L1")
DRYER = EquipmentRecord("E2", "Sécheur", level="equipment", parent_id="L1")
MOTOR = EquipmentRecord("C1", "Moteur", level="component", parent_id="E1")


@pytest.fixture
def repo():
    return FakeEquipmentRepository([SITE, LINE, COMPRESSOR, DRYER, MOTOR])


# ── Tests ────────────────────────────────────────────────────────────


class TestLeafHierarchy:

    @pytest.mark.asyncio
    async def test_path_siblings_children(self, repo):
        context = await HierarchyContextBuilder(repo).build(COMPRESSOR)

        assert [n.id for n in context.path] == ["S", "L1", "E1"]
        assert [n.name for n in context.siblings] == ["Sécheur"]
        assert [n.name for n in context.children] == ["Moteur"]
        assert "EMPLACEMENT: Usine Casablanca → Ligne 1 → Compresseur GA90" in context.summary
        assert "ÉQUIPEMENTS DANS LA MÊME ZONE:" in context.summary
        assert "SOUS-COMPOSANTS DE Compresseur GA90:" in context.summary

    @pytest.mark.asyncio
    async def test_root_has_no_location_line(self, repo):
        context = await HierarchyContextBuilder(repo).build(SITE)

        assert [n.id for n in context.path] == ["S"]
        assert "EMPLACEMENT" not in context.summary

    @pytest.mark.asyncio
    async def test_cyclic_parents_terminate(self):
        a = EquipmentRecord("A", "A", parent_id="B")
        b = EquipmentRecord("B", "B", parent_id="A")
        repo = FakeEquipmentRepository([a, b])

        path = await HierarchyContextBuilder(repo).path_to_root(a)

        assert [n.id for n in path] == ["B", "A"]

    @pytest.mark.asyncio
    async def test_walk_is_bounded_by_max_depth(self):
        records = [EquipmentRecord("N0", "N0", parent_id="N1")]
        records += [EquipmentRecord(f"N{i}", f"N{i}", parent_id=f"N{i + 1}") for i in range(1, 50)]
        repo = FakeEquipmentRepository(records)

        path = await HierarchyContextBuilder(repo, max_depth=5).path_to_root(records[0])

        assert len(path) == 6
        assert repo.get_calls == 5

    @pytest.mark.asyncio
    async def test_repository_failure_yields_empty_context(self):
        repo = FakeEquipmentRepository([COMPRESSOR], fail=True)

        context = await HierarchyContextBuilder(repo).build(COMPRESSOR)

        assert context.is_empty
        assert context.summary == ""

    @pytest.mark.asyncio
    async def test_no_repository(self):
        assert (await HierarchyContextBuilder(None).build(COMPRESSOR)).is_empty


class TestDescendants:

    @pytest.mark.asyncio
    async def test_grouped_by_level(self, repo):
        context = await HierarchyContextBuilder(repo).describe_descendants("S", "Usine Casablanca")

        assert list(context.descendants_by_level) == ["line", "equipment", "component"]
        assert context.summary.splitlines()[0] == "STRUCTURE DE Usine Casablanca (4 éléments):"
        assert "Lignes (1): Ligne 1" in context.summary
        assert "Équipements (2): Compresseur GA90, Sécheur" in context.summary
        assert "Composants (1): Moteur" in context.summary

    @pytest.mark.asyncio
    async def test_errors_propagate(self):
        builder = HierarchyContextBuilder(FakeEquipmentRepository([], fail=True))

        with pytest.raises(RuntimeError):
            await builder.describe_descendants("S", "Usine")

    def test_unknown_levels_after_known_ones(self):
        grouped = group_by_level([
            HierarchyNode("X", "Zone X", "zone"),
            HierarchyNode("E", "Pompe", "equipment"),
            HierarchyNode("Y", "Sans niveau", ""),
        ])

        assert list(grouped) == ["equipment", "zone"]
        assert [n.id for n in grouped["equipment"]] == ["E", "Y"]

    def test_summary_empty(self):
        assert render_descendants_summary("Usine", {}) == ""


class TestCollectDescendants:

    def test_cycle_safe(self):
        index = {
            "A": [HierarchyNode("B", "B")],
            "B": [HierarchyNode("A", "A"), HierarchyNode("C", "C")],
        }

        assert [n.id for n in collect_descendants(index, "A")] == ["B", "C"]

    def test_depth_bounded(self):
        index = {f"N{i}": [HierarchyNode(f"N{i + 1}", f"N{i + 1}")] for i in range(30)}

        nodes = collect_descendants(index, "N0")

        assert len(nodes) == MAX_HIERARCHY_DEPTH
