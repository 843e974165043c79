from .assistant import (
    AliasResolutionSchema,
    AnalyzeResponse,
    AnswerUsageSchema,
    AssistantChatRequest,
    AssistantChatResponse,
    AssistantContextResponse,
    AssistantRequest,
    DependencyLinkSchema,
    HistoryMessageSchema,
    ResolvedAliasSchema,
    RetrievalStatsSchema,
    SearchResultSchema,
)
from .query_analysis import DeepAnalysisPayload, QueryAnalysisSchema

__all__ = [
    "AliasResolutionSchema",
    "AnalyzeResponse",
    "AnswerUsageSchema",
    "AssistantChatRequest",
    "AssistantChatResponse",
    "AssistantContextResponse",
    "AssistantRequest",
    "DependencyLinkSchema",
    "HistoryMessageSchema",
    "ResolvedAliasSchema",
    "RetrievalStatsSchema",
    "SearchResultSchema",
    "DeepAnalysisPayload",
    "QueryAnalysisSchema",
]
