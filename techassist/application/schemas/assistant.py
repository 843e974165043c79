"""Pydantic v2 schemas (DTOs) for the assistant endpoints."""

from typing import Literal

from pydantic import BaseModel, Field

from techassist.application.schemas.query_analysis import QueryAnalysisSchema


# ── Requests ──


class HistoryMessageSchema(BaseModel):
    """A previous turn of the conversation."""

    role: str = Field(..., pattern=r"^(user|assistant)$")
    content: str


class AssistantRequest(BaseModel):
    """Question about one equipment."""

    question: str = Field(..., min_length=1, description="User question, any supported language")
    equipment_id: str = Field(..., min_length=1)
    max_results: int | None = Field(default=None, ge=1, le=50)
    analysis_mode: Literal["heuristic", "deep", "auto"] | None = Field(
        default=None, description="Override the configured analysis mode"
    )


class AssistantChatRequest(AssistantRequest):
    history: list[HistoryMessageSchema] = Field(default_factory=list)


# ── Responses ──


class ResolvedAliasSchema(BaseModel):
    equipment_id: str
    canonical_name: str
    matched_alias_text: str
    confidence: float


class AliasResolutionSchema(BaseModel):
    original_query: str
    modified_query: str
    resolved: list[ResolvedAliasSchema] = Field(default_factory=list)


class AnalyzeResponse(BaseModel):
    """Analysis-only response — useful for debugging rule tables."""

    alias_resolution: AliasResolutionSchema
    analysis: QueryAnalysisSchema


class SearchResultSchema(BaseModel):
    content: str
    source_type: str
    similarity: float
    origin_equipment_name: str = ""
    page_reference: str | None = None
    metadata: dict = Field(default_factory=dict)


class DependencyLinkSchema(BaseModel):
    equipment_id: str
    name: str
    relationship_type: str
    criticality: str
    description: str | None = None


class RetrievalStatsSchema(BaseModel):
    sources_used: int = 0
    counts_by_source: dict[str, int] = Field(default_factory=dict)
    source_types: list[str] = Field(default_factory=list)
    avg_relevance: int = 0
    context_quality: str = "low"


class AssistantContextResponse(BaseModel):
    """Everything the pipeline prepared for the answer model."""

    equipment_id: str
    equipment_name: str
    alias_resolution: AliasResolutionSchema
    analysis: QueryAnalysisSchema
    upstream: list[DependencyLinkSchema] = Field(default_factory=list)
    downstream: list[DependencyLinkSchema] = Field(default_factory=list)
    hierarchy_summary: str = ""
    results: list[SearchResultSchema] = Field(default_factory=list)
    stats: RetrievalStatsSchema
    system_prompt: str


class AnswerUsageSchema(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    cost: float | None = None


class AssistantChatResponse(BaseModel):
    answer: str
    model: str
    finish_reason: str
    usage: AnswerUsageSchema
    analysis: QueryAnalysisSchema
    stats: RetrievalStatsSchema
    sources: list[SearchResultSchema] = Field(default_factory=list)
