"""Abstract repository interface (port) for equipment records and the hierarchy."""

from abc import ABC, abstractmethod

from techassist.domain.entities import EquipmentRecord, HierarchyNode


class EquipmentRepository(ABC):
    """Port for read access to the equipment hierarchy."""

    @abstractmethod
    async def get_by_id(self, equipment_id: str) -> EquipmentRecord | None:
        ...

    @abstractmethod
    async def list_children(self, equipment_id: str) -> list[HierarchyNode]:
        """Direct children, in display order."""
        ...

    @abstractmethod
    async def list_descendants(self, equipment_id: str) -> list[HierarchyNode]:
        """All descendants of the node (bounded depth), excluding the node itself."""
        ...
