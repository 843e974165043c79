"""Assistant API controller — analysis, context preparation and answers for one equipment."""

from fastapi import APIRouter, Depends, HTTPException, status

from techassist.application.schemas.assistant import (
    AliasResolutionSchema,
    AnalyzeResponse,
    AnswerUsageSchema,
    AssistantChatRequest,
    AssistantChatResponse,
    AssistantContextResponse,
    AssistantRequest,
    DependencyLinkSchema,
    ResolvedAliasSchema,
    RetrievalStatsSchema,
    SearchResultSchema,
)
from techassist.application.schemas.query_analysis import QueryAnalysisSchema
from techassist.application.services import AssistantService
from techassist.domain.entities import (
    AliasResolution,
    ChatMessage,
    DependencyLink,
    QueryAnalysis,
    RetrievalStats,
    SearchResult,
)
from techassist.domain.exceptions import (
    ChatProviderError,
    EntityNotFoundError,
    PreconditionError,
    RetrievalError,
)
from techassist.infrastructure.dependencies import get_assistant_service

router = APIRouter(prefix="/assistant", tags=["Assistant"])


# ── Helpers ──────────────────────────────────────────────────────────


def _to_http_error(exc: Exception) -> HTTPException:
    """Map a domain exception raised by the pipeline to an HTTP error."""
    if isinstance(exc, PreconditionError):
        return HTTPException(status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    if isinstance(exc, EntityNotFoundError):
        return HTTPException(status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, RetrievalError):
        return HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, detail=exc.message)
    if isinstance(exc, ChatProviderError):
        return HTTPException(
            status_code=exc.status_code if 500 <= exc.status_code < 600 else 502,
            detail=f"[{exc.provider}] {exc.message}",
        )
    return HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _analysis_schema(analysis: QueryAnalysis) -> QueryAnalysisSchema:
    return QueryAnalysisSchema(
        intent=analysis.intent.value,
        urgency=analysis.urgency.value,
        scope=analysis.scope.value,
        equipment_mentioned=list(analysis.entities.equipment),
        components_mentioned=list(analysis.entities.components),
        error_codes=list(analysis.entities.error_codes),
        symptoms=list(analysis.entities.symptoms),
        search_in_schematics=analysis.search_strategy.schematics,
        search_in_dependencies=analysis.search_strategy.dependencies,
        response_format=analysis.response_strategy.format.value,
        include_safety_warning=analysis.response_strategy.safety_warning,
        include_parts_list=analysis.response_strategy.parts_list,
        confidence=analysis.confidence,
        reasoning=analysis.reasoning,
        mode=analysis.mode,
    )


def _resolution_schema(resolution: AliasResolution) -> AliasResolutionSchema:
    return AliasResolutionSchema(
        original_query=resolution.original_query,
        modified_query=resolution.modified_query,
        resolved=[
            ResolvedAliasSchema(
                equipment_id=r.equipment_id,
                canonical_name=r.canonical_name,
                matched_alias_text=r.matched_alias_text,
                confidence=r.confidence,
            )
            for r in resolution.resolved
        ],
    )


def _result_schema(result: SearchResult) -> SearchResultSchema:
    return SearchResultSchema(
        content=result.content,
        source_type=result.source_type.value,
        similarity=result.similarity,
        origin_equipment_name=result.origin_equipment_name,
        page_reference=result.page_reference,
        metadata=result.metadata,
    )


def _link_schema(link: DependencyLink) -> DependencyLinkSchema:
    return DependencyLinkSchema(
        equipment_id=link.equipment_id,
        name=link.name,
        relationship_type=link.relationship_type,
        criticality=link.criticality.value,
        description=link.description,
    )


def _stats_schema(stats: RetrievalStats) -> RetrievalStatsSchema:
    return RetrievalStatsSchema(
        sources_used=stats.sources_used,
        counts_by_source=stats.counts_by_source,
        source_types=stats.source_types,
        avg_relevance=stats.avg_relevance,
        context_quality=stats.context_quality,
    )


# ── Endpoints ────────────────────────────────────────────────────────


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze_question(
    body: AssistantRequest,
    service: AssistantService = Depends(get_assistant_service),
):
    """Resolve aliases and analyze the question only (no retrieval) — useful for debugging."""
    try:
        resolution, analysis = await service.analyze(
            body.question, body.equipment_id, analysis_mode=body.analysis_mode
        )
    except (PreconditionError, EntityNotFoundError) as e:
        raise _to_http_error(e) from e

    return AnalyzeResponse(
        alias_resolution=_resolution_schema(resolution),
        analysis=_analysis_schema(analysis),
    )


@router.post("/context", response_model=AssistantContextResponse)
async def prepare_context(
    body: AssistantRequest,
    service: AssistantService = Depends(get_assistant_service),
):
    """Run the full preparation pipeline and return what the answer model would see."""
    try:
        context = await service.prepare(
            body.question,
            body.equipment_id,
            max_results=body.max_results,
            analysis_mode=body.analysis_mode,
        )
    except (PreconditionError, EntityNotFoundError, RetrievalError) as e:
        raise _to_http_error(e) from e

    return AssistantContextResponse(
        equipment_id=context.equipment.id,
        equipment_name=context.equipment.name,
        alias_resolution=_resolution_schema(context.alias_resolution),
        analysis=_analysis_schema(context.analysis),
        upstream=[_link_schema(d) for d in context.dependency_context.upstream],
        downstream=[_link_schema(d) for d in context.dependency_context.downstream],
        hierarchy_summary=context.hierarchy_context.summary,
        results=[_result_schema(r) for r in context.results],
        stats=_stats_schema(context.stats),
        system_prompt=context.system_prompt,
    )


@router.post("/chat", response_model=AssistantChatResponse)
async def chat(
    body: AssistantChatRequest,
    service: AssistantService = Depends(get_assistant_service),
):
    """Prepare the context, then ask the answer model."""
    history = [ChatMessage(role=m.role, content=m.content) for m in body.history]
    try:
        result = await service.answer(
            body.question,
            body.equipment_id,
            history=history,
            max_results=body.max_results,
            analysis_mode=body.analysis_mode,
        )
    except (PreconditionError, EntityNotFoundError, RetrievalError, ChatProviderError) as e:
        raise _to_http_error(e) from e

    completion = result.completion
    return AssistantChatResponse(
        answer=completion.content,
        model=completion.model,
        finish_reason=completion.finish_reason,
        usage=AnswerUsageSchema(
            prompt_tokens=completion.usage.prompt_tokens,
            completion_tokens=completion.usage.completion_tokens,
            total_tokens=completion.usage.total_tokens,
            cost=completion.usage.cost,
        ),
        analysis=_analysis_schema(result.context.analysis),
        stats=_stats_schema(result.context.stats),
        sources=[_result_schema(r) for r in result.context.results],
    )
