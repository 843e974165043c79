from .equipment_models import EquipmentAliasModel, EquipmentDependencyModel, EquipmentModel
from .document_models import DocumentChunkModel, SchematicAnalysisModel

__all__ = [
    "EquipmentModel",
    "EquipmentAliasModel",
    "EquipmentDependencyModel",
    "DocumentChunkModel",
    "SchematicAnalysisModel",
]
