from .alias_repository import SQLAlchemyAliasRepository
from .chunk_repository import PgChunkRepository
from .dependency_repository import SQLAlchemyDependencyRepository
from .equipment_repository import SQLAlchemyEquipmentRepository
from .schematic_repository import SQLAlchemySchematicRepository

__all__ = [
    "SQLAlchemyAliasRepository",
    "PgChunkRepository",
    "SQLAlchemyDependencyRepository",
    "SQLAlchemyEquipmentRepository",
    "SQLAlchemySchematicRepository",
]
