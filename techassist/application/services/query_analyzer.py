"""Query analyzer — classifies a technician's question before retrieval.

Three modes:
  - heuristic: keyword tables (French, Arabic, Darija, English), no network call
  - deep: the analysis model returns a JSON classification, validated with pydantic
  - auto: heuristic first, escalated to deep for troubleshooting, emergencies
    or long questions; the heuristic result is kept if deep analysis fails

Whatever the mode, troubleshooting always searches dependencies with a
diagnostic answer, and parts always answers as a table with a parts list.
"""

import json
import logging
import time
from enum import Enum

from pydantic import ValidationError

from techassist.application.interfaces.chat_provider import ChatProvider
from techassist.application.schemas.query_analysis import DeepAnalysisPayload
from techassist.application.services.query_rules import (
    COMPONENT_RULES,
    EMERGENCY_RULE,
    ERROR_CODE_PATTERN,
    INTENT_RULES,
    PLANNING_RULE,
    SYMPTOM_RULE,
)
from techassist.domain.entities import (
    ChatMessage,
    EquipmentContext,
    ExtractedEntities,
    QueryAnalysis,
    QueryIntent,
    QueryScope,
    QueryUrgency,
    ResponseFormat,
    ResponseStrategy,
    SearchStrategy,
    format_for_intent,
)
from techassist.domain.exceptions import PreconditionError
from techassist.domain.text_normalization import normalize_text

logger = logging.getLogger(__name__)


class AnalysisMode(str, Enum):
    HEURISTIC = "heuristic"
    DEEP = "deep"
    AUTO = "auto"


# ── Prompt for deep analysis ────────────────────────────────────────

_DEEP_ANALYSIS_PROMPT = """\
You are an industrial maintenance query analyzer. Analyze this user question to \
determine the best search and response strategy.

CURRENT CONTEXT:
- Equipment: {name}
- Level: {level}
- Category: {category}
{children_line}{aliases_line}
USER QUESTION:
"{query}"

Analyze and respond with JSON:
{{
  "intent": "troubleshooting|maintenance|installation|parts|specs|procedure|general",
  "urgency": "emergency|planning|information",
  "scope": "component|equipment|subsystem|line|site|unknown",

  "equipment_mentioned": ["list of equipment names mentioned"],
  "components_mentioned": ["list of components like motor, pump, valve"],
  "error_codes": ["any error codes like E01, F23"],
  "symptoms": ["described symptoms like 'ne démarre pas', 'bruit anormal'"],

  "search_document_types": ["manual", "installation", "catalogue", "schematic"],
  "search_in_schematics": true,
  "search_in_dependencies": false,

  "response_format": "steps|list|table|explanation|diagnostic",
  "include_safety_warning": true,
  "include_parts_list": false,

  "confidence": 0.0,
  "reasoning": "Brief explanation of analysis"
}}

GUIDELINES:
- "troubleshooting" + "emergency" → search schematics, dependencies, use diagnostic format
- "maintenance" → search manual, use steps format
- "parts" → search catalogue, use table format
- "installation" → search installation docs, use steps format
- Safety warning for: electrical work, high pressure, hot surfaces, moving parts
- Parts list for: repairs, replacements, maintenance

Respond ONLY with valid JSON. No markdown fences, no explanation outside the JSON.
"""

_VALID_SCOPES = {s.value for s in QueryScope}


class QueryAnalyzer:
    """Application service producing a QueryAnalysis for one question."""

    def __init__(
        self,
        chat_provider: ChatProvider | None = None,
        *,
        model: str = "",
        mode: str = AnalysisMode.HEURISTIC.value,
        deep_min_length: int = 100,
    ):
        self._chat_provider = chat_provider
        self._model = model
        self._mode = AnalysisMode(mode)
        self._deep_min_length = deep_min_length

    @property
    def mode(self) -> AnalysisMode:
        return self._mode

    async def analyze(
        self,
        query: str,
        equipment: EquipmentContext | None = None,
        *,
        mode: str | None = None,
    ) -> QueryAnalysis:
        """Classify ``query`` with the configured mode (or an explicit override)."""
        if not query or not query.strip():
            raise PreconditionError("query", "must be a non-empty string")

        selected = AnalysisMode(mode) if mode else self._mode

        if selected == AnalysisMode.HEURISTIC:
            analysis = self.analyze_heuristic(query, equipment)
        elif selected == AnalysisMode.DEEP:
            analysis = await self.analyze_deep(query, equipment)
        else:
            analysis = await self._analyze_auto(query, equipment)

        logger.info("Query analysis (%s): %s", selected.value, analysis.as_log_dict())
        return analysis

    # ── Heuristic ───────────────────────────────────────────────────

    def analyze_heuristic(
        self,
        query: str,
        equipment: EquipmentContext | None = None,
    ) -> QueryAnalysis:
        """Keyword-table classification. Pure and deterministic."""
        normalized = normalize_text(query)

        intent, matched = self._detect_intent(normalized)
        urgency = self._detect_urgency(normalized)

        components = tuple(rule.label for rule in COMPONENT_RULES if rule.matches(normalized))
        symptoms = tuple(SYMPTOM_RULE.matches(normalized))
        error_codes = self._extract_error_codes(query)
        equipment_mentioned = self._equipment_mentioned(normalized, equipment)

        analysis = QueryAnalysis(
            intent=intent,
            urgency=urgency,
            scope=self._scope_from_context(equipment),
            entities=ExtractedEntities(
                equipment=equipment_mentioned,
                components=components,
                error_codes=error_codes,
                symptoms=symptoms,
            ),
            search_strategy=SearchStrategy(
                document_text=True,
                schematics=intent == QueryIntent.TROUBLESHOOTING or bool(components),
                dependencies=intent == QueryIntent.TROUBLESHOOTING,
            ),
            response_strategy=ResponseStrategy(
                format=format_for_intent(intent),
                safety_warning=intent in (QueryIntent.TROUBLESHOOTING, QueryIntent.INSTALLATION),
                parts_list=intent in (QueryIntent.PARTS, QueryIntent.MAINTENANCE),
            ),
            confidence=0.7 if matched else 0.5,
            reasoning=(
                f"Keyword analysis: intent={intent.value} matched {matched}"
                if matched
                else "Keyword analysis: no intent keyword matched"
            ),
            mode="heuristic",
        )
        return analysis.with_intent_invariants()

    @staticmethod
    def _detect_intent(normalized: str) -> tuple[QueryIntent, list[str]]:
        """Intent with the most trigger hits; earlier rules win ties."""
        best_label = QueryIntent.GENERAL.value
        best_hits: list[str] = []
        for rule in INTENT_RULES:
            hits = rule.matches(normalized)
            if len(hits) > len(best_hits):
                best_label, best_hits = rule.label, hits
        return QueryIntent(best_label), best_hits

    @staticmethod
    def _detect_urgency(normalized: str) -> QueryUrgency:
        if EMERGENCY_RULE.matches(normalized):
            return QueryUrgency.EMERGENCY
        if PLANNING_RULE.matches(normalized):
            return QueryUrgency.PLANNING
        return QueryUrgency.INFORMATION

    @staticmethod
    def _extract_error_codes(query: str) -> tuple[str, ...]:
        codes: list[str] = []
        for match in ERROR_CODE_PATTERN.finditer(query):
            code = match.group(0).upper()
            if code not in codes:
                codes.append(code)
        return tuple(codes)

    @staticmethod
    def _equipment_mentioned(
        normalized: str,
        equipment: EquipmentContext | None,
    ) -> tuple[str, ...]:
        if equipment is None:
            return ()
        mentioned: list[str] = []
        for name in [equipment.name, *equipment.children, *equipment.aliases]:
            key = normalize_text(name)
            if key and key in normalized and name not in mentioned:
                mentioned.append(name)
        return tuple(mentioned)

    @staticmethod
    def _scope_from_context(equipment: EquipmentContext | None) -> QueryScope:
        if equipment is None or not equipment.level:
            return QueryScope.EQUIPMENT
        level = equipment.level.strip().lower()
        return QueryScope(level) if level in _VALID_SCOPES else QueryScope.UNKNOWN

    # ── Deep ────────────────────────────────────────────────────────

    async def analyze_deep(
        self,
        query: str,
        equipment: EquipmentContext | None = None,
    ) -> QueryAnalysis:
        """Model-backed classification; the default analysis when it cannot be trusted."""
        analysis = await self._run_deep(query, equipment)
        if analysis is None:
            return QueryAnalysis.default("Fallback: deep analysis unavailable or invalid")
        return analysis

    async def _analyze_auto(
        self,
        query: str,
        equipment: EquipmentContext | None,
    ) -> QueryAnalysis:
        heuristic = self.analyze_heuristic(query, equipment)
        escalate = (
            heuristic.intent == QueryIntent.TROUBLESHOOTING
            or heuristic.urgency == QueryUrgency.EMERGENCY
            or len(query) > self._deep_min_length
        )
        if not escalate:
            return heuristic

        logger.info(
            "Escalating to deep analysis: intent=%s urgency=%s length=%d",
            heuristic.intent.value,
            heuristic.urgency.value,
            len(query),
        )
        deep = await self._run_deep(query, equipment)
        if deep is None:
            logger.info("Deep analysis failed, keeping keyword analysis")
            return heuristic
        return deep

    async def _run_deep(
        self,
        query: str,
        equipment: EquipmentContext | None,
    ) -> QueryAnalysis | None:
        if self._chat_provider is None:
            logger.warning("Deep analysis requested but no chat provider is configured")
            return None

        prompt = self._build_prompt(query, equipment or EquipmentContext(name="unknown"))
        messages = [ChatMessage(role="user", content=prompt)]

        start = time.monotonic()
        try:
            result = await self._chat_provider.complete(
                messages=messages,
                model=self._model,
                temperature=0.1,
                max_tokens=800,
            )
        except Exception as exc:
            logger.error("Deep analysis call failed: %s", exc)
            return None

        duration_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "Deep analysis response: model=%s tokens=%d duration_ms=%d content=%s",
            result.model or self._model,
            result.usage.total_tokens,
            duration_ms,
            self._clip(result.content, 600),
        )
        return self._parse_deep_response(result.content)

    @staticmethod
    def _build_prompt(query: str, equipment: EquipmentContext) -> str:
        children_line = (
            f"- Contains: {', '.join(equipment.children)}\n" if equipment.children else ""
        )
        aliases_line = (
            f"- Also known as: {', '.join(equipment.aliases)}\n" if equipment.aliases else ""
        )
        return _DEEP_ANALYSIS_PROMPT.format(
            name=equipment.name,
            level=equipment.level or "unknown",
            category=equipment.category or "unknown",
            children_line=children_line,
            aliases_line=aliases_line,
            query=query,
        )

    @classmethod
    def _parse_deep_response(cls, llm_response: str) -> QueryAnalysis | None:
        """Parse and validate the model's JSON; ``None`` when it is unusable."""
        data = cls._extract_json_object(llm_response)
        if data is None:
            logger.warning("Failed to parse deep analysis response: %s", cls._clip(llm_response, 200))
            return None

        try:
            payload = DeepAnalysisPayload.model_validate(data)
        except ValidationError as exc:
            logger.warning("Deep analysis response failed validation: %s", exc.errors()[:3])
            return None

        analysis = QueryAnalysis(
            intent=QueryIntent(payload.intent),
            urgency=QueryUrgency(payload.urgency),
            scope=QueryScope(payload.scope),
            entities=ExtractedEntities(
                equipment=tuple(payload.equipment_mentioned),
                components=tuple(payload.components_mentioned),
                error_codes=tuple(payload.error_codes),
                symptoms=tuple(payload.symptoms),
            ),
            search_strategy=SearchStrategy(
                document_text=True,
                schematics=payload.search_in_schematics,
                dependencies=payload.search_in_dependencies,
            ),
            response_strategy=ResponseStrategy(
                format=ResponseFormat(payload.response_format),
                safety_warning=payload.include_safety_warning,
                parts_list=payload.include_parts_list,
            ),
            confidence=payload.confidence,
            reasoning=payload.reasoning,
            mode="deep",
        )
        return analysis.with_intent_invariants()

    @staticmethod
    def _extract_json_object(llm_response: str) -> dict | None:
        # Strip potential markdown fences
        text = (llm_response or "").strip()
        if text.startswith("```"):
            lines = text.split("\n")
            text = "\n".join(lines[1:-1] if len(lines) > 2 else lines[1:]).strip()

        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            # Some models wrap the JSON in prose — extract the outermost object.
            start = text.find("{")
            end = text.rfind("}")
            if start == -1 or end <= start:
                return None
            try:
                data = json.loads(text[start : end + 1])
            except json.JSONDecodeError:
                return None

        return data if isinstance(data, dict) else None

    @staticmethod
    def _clip(text: str, limit: int = 300) -> str:
        """Clip long text for concise logs."""
        raw = (text or "").strip()
        if len(raw) <= limit:
            return raw
        return f"{raw[:limit]}... (truncated {len(raw) - limit} chars)"
