from .alias_repository import AliasRepository
from .chat_provider import ChatProvider
from .chunk_repository import ChunkRepository
from .dependency_repository import DependencyRepository
from .embedding_provider import EmbeddingProvider
from .equipment_repository import EquipmentRepository
from .schematic_repository import SchematicRepository

__all__ = [
    "AliasRepository",
    "ChatProvider",
    "ChunkRepository",
    "DependencyRepository",
    "EmbeddingProvider",
    "EquipmentRepository",
    "SchematicRepository",
]
