"""Abstract repository interface (port) for analysed schematics."""

from abc import ABC, abstractmethod

from techassist.domain.entities import Schematic


class SchematicRepository(ABC):

    @abstractmethod
    async def list_for_equipment(self, equipment_id: str) -> list[Schematic]:
        """Return every schematic analysed for the equipment."""
        ...
