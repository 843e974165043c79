"""Abstract repository interface (port) for the equipment alias table."""

from abc import ABC, abstractmethod

from techassist.domain.entities import EquipmentAlias


class AliasRepository(ABC):

    @abstractmethod
    async def list_aliases(self) -> list[EquipmentAlias]:
        """Every alias with its canonical equipment."""
        ...

    @abstractmethod
    async def list_for_equipment(self, equipment_id: str) -> list[EquipmentAlias]:
        ...
