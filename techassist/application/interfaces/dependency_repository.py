"""Abstract repository interface (port) for the equipment dependency graph."""

from abc import ABC, abstractmethod

from techassist.domain.entities import DependencyLink


class DependencyRepository(ABC):
    """Port for directional dependency edges around one equipment."""

    @abstractmethod
    async def list_upstream(self, equipment_id: str) -> list[DependencyLink]:
        """Equipment that feeds into (powers, cools, ...) the target."""
        ...

    @abstractmethod
    async def list_downstream(self, equipment_id: str) -> list[DependencyLink]:
        """Equipment that depends on the target."""
        ...
