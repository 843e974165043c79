"""Assistant service — the request pipeline behind the technical assistant.

    question → alias resolution → query analysis → dependency context →
    multi-source retrieval (+ leaf hierarchy) → system prompt → answer model

Optional enrichment (aliases, dependencies, hierarchy, schematics) degrades
silently; precondition violations, an unknown equipment, a failed primary
retrieval and answer-model errors propagate to the caller.
"""

import asyncio
import logging
import time

from techassist.application.interfaces.alias_repository import AliasRepository
from techassist.application.interfaces.chat_provider import ChatProvider
from techassist.application.interfaces.equipment_repository import EquipmentRepository
from techassist.application.services.alias_resolver import AliasResolver, build_equipment_context
from techassist.application.services.dependency_context_builder import DependencyContextBuilder
from techassist.application.services.hierarchy_context_builder import HierarchyContextBuilder
from techassist.application.services.multi_source_retriever import MultiSourceRetriever
from techassist.application.services.prompt_assembler import PromptAssembler, render_search_context
from techassist.application.services.query_analyzer import QueryAnalyzer
from techassist.domain.entities import (
    AliasResolution,
    AssistantAnswer,
    AssistantContext,
    ChatMessage,
    EquipmentContext,
    EquipmentRecord,
    HierarchyContext,
    NON_LEAF_SCOPES,
    QueryAnalysis,
    QueryUrgency,
    RetrievalStats,
)
from techassist.domain.exceptions import (
    ChatProviderError,
    EntityNotFoundError,
    PreconditionError,
)
from techassist.infrastructure.logging.colored_logger import PipelineLogger, PipelineStage

logger = logging.getLogger(__name__)
plog = PipelineLogger("AssistantPipeline")

HISTORY_WINDOW = 10
_CHAT_ROLES = frozenset({"user", "assistant"})


class AssistantService:
    """Orchestrates the pipeline for one question about one equipment."""

    def __init__(
        self,
        equipment_repo: EquipmentRepository,
        alias_resolver: AliasResolver,
        analyzer: QueryAnalyzer,
        dependency_builder: DependencyContextBuilder,
        hierarchy_builder: HierarchyContextBuilder,
        retriever: MultiSourceRetriever,
        assembler: PromptAssembler,
        chat_provider: ChatProvider | None = None,
        *,
        alias_repo: AliasRepository | None = None,
        answer_model: str = "",
        answer_max_tokens: int = 2000,
    ):
        self._equipment_repo = equipment_repo
        self._alias_resolver = alias_resolver
        self._analyzer = analyzer
        self._dependency_builder = dependency_builder
        self._hierarchy_builder = hierarchy_builder
        self._retriever = retriever
        self._assembler = assembler
        self._chat_provider = chat_provider
        self._alias_repo = alias_repo
        self._answer_model = answer_model
        self._answer_max_tokens = answer_max_tokens

    async def analyze(
        self,
        question: str,
        equipment_id: str,
        *,
        analysis_mode: str | None = None,
    ) -> tuple[AliasResolution, QueryAnalysis]:
        """Alias resolution and query analysis only, without retrieval."""
        equipment = await self._load_equipment(question, equipment_id)
        resolution = await self._alias_resolver.preprocess(question)
        equipment_context = await self._equipment_context(equipment)
        analysis = await self._analyzer.analyze(
            resolution.modified_query, equipment_context, mode=analysis_mode
        )
        return resolution, analysis

    async def prepare(
        self,
        question: str,
        equipment_id: str,
        *,
        max_results: int | None = None,
        analysis_mode: str | None = None,
    ) -> AssistantContext:
        """Run every stage up to the system prompt."""
        start = time.perf_counter()
        equipment = await self._load_equipment(question, equipment_id)

        plog.separator(equipment.name)

        # ── Alias resolution ────────────────────────────────────────
        with plog.timed_step(PipelineStage.ALIAS, "Resolving equipment aliases"):
            resolution = await self._alias_resolver.preprocess(question)
        if resolution.changed:
            plog.detail(f"Modified query: {resolution.modified_query}")
        query = resolution.modified_query

        # ── Analysis ────────────────────────────────────────────────
        equipment_context = await self._equipment_context(equipment)
        with plog.timed_step(PipelineStage.ANALYSIS, "Analyzing question", mode=analysis_mode or self._analyzer.mode.value):
            analysis = await self._analyzer.analyze(query, equipment_context, mode=analysis_mode)
        plog.detail("Analysis", **analysis.as_log_dict())

        # ── Dependencies ────────────────────────────────────────────
        with plog.timed_step(PipelineStage.DEPENDENCY, "Building dependency context"):
            dependency_context = await self._dependency_builder.build(
                equipment.id, equipment.name, analysis
            )

        # ── Retrieval + leaf hierarchy ──────────────────────────────
        results, hierarchy_context = await asyncio.gather(
            self._retriever.retrieve(
                equipment.id,
                equipment.name,
                query,
                analysis,
                max_results=max_results,
                dependency_context=dependency_context,
            ),
            self._leaf_hierarchy(equipment),
        )
        stats = RetrievalStats.from_results(results)
        plog.stats(
            sources_used=stats.sources_used,
            by_source=stats.counts_by_source,
            avg_relevance=f"{stats.avg_relevance}%",
            quality=stats.context_quality,
        )

        # ── Prompt ──────────────────────────────────────────────────
        with plog.timed_step(PipelineStage.PROMPT, "Assembling system prompt"):
            system_prompt = self._assembler.build(
                equipment,
                analysis,
                render_search_context(results),
                hierarchy_summary=hierarchy_context.summary,
                equipment_context=build_equipment_context(resolution.resolved),
                process_prompt=dependency_context.process_prompt,
            )
        plog.detail(f"Prompt length: {len(system_prompt)} chars")

        plog.step_complete(
            PipelineStage.COMPLETE,
            "Context prepared",
            elapsed=f"{time.perf_counter() - start:.2f}s",
        )
        return AssistantContext(
            equipment=equipment,
            alias_resolution=resolution,
            analysis=analysis,
            dependency_context=dependency_context,
            hierarchy_context=hierarchy_context,
            results=results,
            stats=stats,
            system_prompt=system_prompt,
        )

    async def answer(
        self,
        question: str,
        equipment_id: str,
        *,
        history: list[ChatMessage] | None = None,
        max_results: int | None = None,
        analysis_mode: str | None = None,
    ) -> AssistantAnswer:
        """Prepare the context, then ask the answer model.

        Raises:
            ChatProviderError: No provider configured, or the provider failed.
        """
        if self._chat_provider is None:
            raise ChatProviderError("unconfigured", 503, "No chat provider configured")

        context = await self.prepare(
            question,
            equipment_id,
            max_results=max_results,
            analysis_mode=analysis_mode,
        )

        recent = [m for m in (history or []) if m.role in _CHAT_ROLES][-HISTORY_WINDOW:]
        messages = [
            ChatMessage(role="system", content=context.system_prompt),
            *recent,
            ChatMessage(role="user", content=question),
        ]
        temperature = 0.3 if context.analysis.urgency == QueryUrgency.EMERGENCY else 0.7

        with plog.timed_step(
            PipelineStage.ANSWER,
            "Generating answer",
            model=self._answer_model,
            temperature=temperature,
        ):
            completion = await self._chat_provider.complete(
                messages=messages,
                model=self._answer_model,
                temperature=temperature,
                max_tokens=self._answer_max_tokens,
            )

        logger.info(
            "Answer generated: model=%s finish=%s tokens=%d",
            completion.model,
            completion.finish_reason,
            completion.usage.total_tokens,
        )
        return AssistantAnswer(context=context, completion=completion)

    # ── Private helpers ──────────────────────────────────────────────

    async def _load_equipment(self, question: str, equipment_id: str) -> EquipmentRecord:
        if not question or not question.strip():
            raise PreconditionError("question", "must be a non-empty string")
        if not equipment_id:
            raise PreconditionError("equipment_id", "is required")

        equipment = await self._equipment_repo.get_by_id(equipment_id)
        if equipment is None:
            raise EntityNotFoundError("Equipment", equipment_id)
        return equipment

    async def _equipment_context(self, equipment: EquipmentRecord) -> EquipmentContext:
        """Name, level, children and aliases for the analyzer. Best-effort."""
        context = EquipmentContext(
            name=equipment.name,
            level=equipment.level or "equipment",
            category=equipment.category,
        )
        try:
            children = await self._equipment_repo.list_children(equipment.id)
            context.children = [c.name for c in children]
        except Exception as exc:
            logger.warning("Could not list children of %s: %s", equipment.id, exc)

        if self._alias_repo is not None:
            try:
                aliases = await self._alias_repo.list_for_equipment(equipment.id)
                context.aliases = [a.alias_text for a in aliases]
            except Exception as exc:
                logger.warning("Could not list aliases of %s: %s", equipment.id, exc)
        return context

    async def _leaf_hierarchy(self, equipment: EquipmentRecord) -> HierarchyContext:
        if (equipment.level or "").lower() in {scope.value for scope in NON_LEAF_SCOPES}:
            return HierarchyContext()
        return await self._hierarchy_builder.build(equipment)
