"""Domain entities for equipment identity, aliases and the equipment hierarchy."""

from dataclasses import dataclass, field


@dataclass
class EquipmentRecord:
    """A node of the equipment hierarchy (site → line → subsystem → equipment → component)."""

    id: str
    name: str
    level: str = "equipment"
    parent_id: str | None = None
    code: str | None = None
    manufacturer: str | None = None
    model_number: str | None = None
    category: str | None = None


@dataclass
class EquipmentContext:
    """Minimal equipment context handed to the query analyzer."""

    name: str
    level: str = "equipment"
    category: str | None = None
    children: list[str] = field(default_factory=list)
    aliases: list[str] = field(default_factory=list)


@dataclass
class EquipmentAlias:
    """One row of the alias table: a nickname pointing at a canonical equipment."""

    equipment_id: str
    canonical_name: str
    alias_text: str
    alias_normalized: str = ""


@dataclass(frozen=True)
class ResolvedEquipmentAlias:
    """A match between a phrase of the query and a canonical equipment record."""

    equipment_id: str
    canonical_name: str
    matched_alias_text: str
    confidence: float  # 1.0 for exact normalized containment, else bigram Jaccard


@dataclass
class AliasResolution:
    """Outcome of alias preprocessing for one query."""

    original_query: str
    modified_query: str
    resolved: list[ResolvedEquipmentAlias] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.modified_query != self.original_query


@dataclass(frozen=True)
class HierarchyNode:
    id: str
    name: str
    level: str = "equipment"


@dataclass
class HierarchyContext:
    """Where an equipment sits in the hierarchy and what lies below it."""

    path: list[HierarchyNode] = field(default_factory=list)  # root → target
    siblings: list[HierarchyNode] = field(default_factory=list)
    children: list[HierarchyNode] = field(default_factory=list)
    descendants_by_level: dict[str, list[HierarchyNode]] = field(default_factory=dict)
    summary: str = ""

    @property
    def is_empty(self) -> bool:
        return not (self.path or self.siblings or self.children or self.descendants_by_level)


# Upper bound on hierarchy walks (parent chain or descendant levels). Real
# hierarchies are site → line → subsystem → equipment → component; anything
# deeper is malformed or cyclic data.
MAX_HIERARCHY_DEPTH = 10


def collect_descendants(
    children_by_parent: dict[str, list[HierarchyNode]],
    root_id: str,
    max_depth: int = MAX_HIERARCHY_DEPTH,
) -> list[HierarchyNode]:
    """Breadth-first walk over an adjacency index, bounded in depth and cycle-safe."""
    seen: set[str] = {root_id}
    frontier = [root_id]
    collected: list[HierarchyNode] = []
    depth = 0
    while frontier and depth < max_depth:
        next_frontier: list[str] = []
        for parent_id in frontier:
            for child in children_by_parent.get(parent_id, []):
                if child.id in seen:
                    continue
                seen.add(child.id)
                collected.append(child)
                next_frontier.append(child.id)
        frontier = next_frontier
        depth += 1
    return collected
