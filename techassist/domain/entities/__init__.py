from .assistant import AssistantAnswer, AssistantContext
from .chat_message import ChatMessage, TokenUsage, ChatCompletionResult
from .dependency import Criticality, DependencyContext, DependencyLink, RELATIONSHIP_TYPES
from .equipment import (
    MAX_HIERARCHY_DEPTH,
    collect_descendants,
    AliasResolution,
    EquipmentAlias,
    EquipmentContext,
    EquipmentRecord,
    HierarchyContext,
    HierarchyNode,
    ResolvedEquipmentAlias,
)
from .query_analysis import (
    ExtractedEntities,
    NON_LEAF_SCOPES,
    QueryAnalysis,
    QueryIntent,
    QueryScope,
    QueryUrgency,
    ResponseFormat,
    ResponseStrategy,
    SearchStrategy,
    format_for_intent,
)
from .search_result import (
    DocumentChunkMatch,
    RetrievalStats,
    Schematic,
    SchematicComponent,
    SchematicConnection,
    SearchResult,
    SourceType,
)

__all__ = [
    "AssistantAnswer",
    "AssistantContext",
    "ChatMessage",
    "TokenUsage",
    "ChatCompletionResult",
    "Criticality",
    "DependencyContext",
    "DependencyLink",
    "RELATIONSHIP_TYPES",
    "MAX_HIERARCHY_DEPTH",
    "collect_descendants",
    "AliasResolution",
    "EquipmentAlias",
    "EquipmentContext",
    "EquipmentRecord",
    "HierarchyContext",
    "HierarchyNode",
    "ResolvedEquipmentAlias",
    "ExtractedEntities",
    "NON_LEAF_SCOPES",
    "QueryAnalysis",
    "QueryIntent",
    "QueryScope",
    "QueryUrgency",
    "ResponseFormat",
    "ResponseStrategy",
    "SearchStrategy",
    "format_for_intent",
    "DocumentChunkMatch",
    "RetrievalStats",
    "Schematic",
    "SchematicComponent",
    "SchematicConnection",
    "SearchResult",
    "SourceType",
]
