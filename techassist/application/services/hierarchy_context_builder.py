"""Hierarchy context builder — where an equipment sits and what lies below it.

For leaf equipment the prompt gets the path to the root, the siblings and
the children. For site / line / subsystem targets the retriever asks for the
descendants grouped by level instead.
"""

import logging

from techassist.application.interfaces.equipment_repository import EquipmentRepository
from techassist.domain.entities import (
    MAX_HIERARCHY_DEPTH,
    EquipmentRecord,
    HierarchyContext,
    HierarchyNode,
)

logger = logging.getLogger(__name__)

# Display order and French labels of descendant levels.
LEVEL_LABELS: dict[str, str] = {
    "line": "Lignes",
    "subsystem": "Sous-systèmes",
    "equipment": "Équipements",
    "component": "Composants",
}


def group_by_level(nodes: list[HierarchyNode]) -> dict[str, list[HierarchyNode]]:
    """Group nodes by level: known levels in hierarchy order, unknown levels after."""
    grouped: dict[str, list[HierarchyNode]] = {}
    for level in LEVEL_LABELS:
        members = [n for n in nodes if n.level == level]
        if members:
            grouped[level] = members
    for node in nodes:
        if node.level not in LEVEL_LABELS:
            grouped.setdefault(node.level or "equipment", []).append(node)
    return grouped


def render_descendants_summary(
    equipment_name: str,
    descendants_by_level: dict[str, list[HierarchyNode]],
) -> str:
    if not descendants_by_level:
        return ""
    total = sum(len(nodes) for nodes in descendants_by_level.values())
    lines = [f"STRUCTURE DE {equipment_name} ({total} éléments):"]
    for level, nodes in descendants_by_level.items():
        label = LEVEL_LABELS.get(level, level.capitalize())
        lines.append(f"{label} ({len(nodes)}): {', '.join(n.name for n in nodes)}")
    return "\n".join(lines)


def render_hierarchy_prompt(context: HierarchyContext, equipment_name: str) -> str:
    """Location, neighbouring equipment and sub-components, as a prompt block."""
    parts: list[str] = []

    if len(context.path) > 1:
        parts.append("EMPLACEMENT: " + " → ".join(n.name for n in context.path))

    if context.siblings:
        parts.append(
            "ÉQUIPEMENTS DANS LA MÊME ZONE:\n"
            + "\n".join(f"   - {n.name}" for n in context.siblings)
        )

    if context.children:
        parts.append(
            f"SOUS-COMPOSANTS DE {equipment_name}:\n"
            + "\n".join(f"   - {n.name}" for n in context.children)
        )

    return "\n\n".join(parts)


class HierarchyContextBuilder:
    """Reads the equipment tree with bounded walks (malformed data may be cyclic)."""

    def __init__(
        self,
        equipment_repo: EquipmentRepository | None,
        *,
        max_depth: int = MAX_HIERARCHY_DEPTH,
    ):
        self._equipment_repo = equipment_repo
        self._max_depth = max_depth

    async def build(self, equipment: EquipmentRecord) -> HierarchyContext:
        """Path to the root, siblings and children of a leaf equipment. Best-effort."""
        if self._equipment_repo is None:
            return HierarchyContext()

        try:
            path = await self.path_to_root(equipment)
            siblings: list[HierarchyNode] = []
            if equipment.parent_id:
                siblings = [
                    n for n in await self._equipment_repo.list_children(equipment.parent_id)
                    if n.id != equipment.id
                ]
            children = await self._equipment_repo.list_children(equipment.id)
        except Exception as exc:
            logger.warning("Hierarchy lookup failed for equipment %s: %s", equipment.id, exc)
            return HierarchyContext()

        context = HierarchyContext(path=path, siblings=siblings, children=children)
        context.summary = render_hierarchy_prompt(context, equipment.name)
        return context

    async def path_to_root(self, equipment: EquipmentRecord) -> list[HierarchyNode]:
        """Ancestors then the equipment itself, root first."""
        path = [HierarchyNode(id=equipment.id, name=equipment.name, level=equipment.level)]
        seen = {equipment.id}
        parent_id = equipment.parent_id

        for _ in range(self._max_depth):
            if not parent_id or parent_id in seen:
                break
            parent = await self._equipment_repo.get_by_id(parent_id)
            if parent is None:
                break
            seen.add(parent.id)
            path.append(HierarchyNode(id=parent.id, name=parent.name, level=parent.level))
            parent_id = parent.parent_id
        else:
            if parent_id and parent_id not in seen:
                logger.warning(
                    "Hierarchy walk for %s stopped at depth %d", equipment.id, self._max_depth
                )

        path.reverse()
        return path

    async def describe_descendants(self, equipment_id: str, equipment_name: str) -> HierarchyContext:
        """Descendants grouped by level with their summary. Errors propagate to the caller."""
        if self._equipment_repo is None:
            return HierarchyContext()
        descendants = await self._equipment_repo.list_descendants(equipment_id)
        grouped = group_by_level(descendants)
        return HierarchyContext(
            descendants_by_level=grouped,
            summary=render_descendants_summary(equipment_name, grouped),
        )
