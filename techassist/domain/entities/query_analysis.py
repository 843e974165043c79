"""Domain entities for query analysis — the classification of one user question.

A QueryAnalysis is created fresh per request, never persisted, and is not
mutated once the analyzer hands it over (frozen dataclasses).
"""

from dataclasses import dataclass, field, replace
from enum import Enum


class QueryIntent(str, Enum):
    """Task category of a question. Exactly one per analysis."""

    TROUBLESHOOTING = "troubleshooting"
    MAINTENANCE = "maintenance"
    INSTALLATION = "installation"
    PARTS = "parts"
    SPECS = "specs"
    PROCEDURE = "procedure"
    GENERAL = "general"


class QueryUrgency(str, Enum):
    EMERGENCY = "emergency"
    PLANNING = "planning"
    INFORMATION = "information"


class QueryScope(str, Enum):
    """Granularity of the equipment hierarchy a question targets."""

    COMPONENT = "component"
    EQUIPMENT = "equipment"
    SUBSYSTEM = "subsystem"
    LINE = "line"
    SITE = "site"
    UNKNOWN = "unknown"


class ResponseFormat(str, Enum):
    STEPS = "steps"
    LIST = "list"
    TABLE = "table"
    EXPLANATION = "explanation"
    DIAGNOSTIC = "diagnostic"


# Scopes above a single piece of equipment — these trigger hierarchy expansion.
NON_LEAF_SCOPES = frozenset({QueryScope.SITE, QueryScope.LINE, QueryScope.SUBSYSTEM})

# Fixed intent → answer-shape table.
FORMAT_BY_INTENT: dict[QueryIntent, ResponseFormat] = {
    QueryIntent.TROUBLESHOOTING: ResponseFormat.DIAGNOSTIC,
    QueryIntent.PROCEDURE: ResponseFormat.STEPS,
    QueryIntent.INSTALLATION: ResponseFormat.STEPS,
    QueryIntent.MAINTENANCE: ResponseFormat.STEPS,
    QueryIntent.PARTS: ResponseFormat.TABLE,
    QueryIntent.SPECS: ResponseFormat.LIST,
}


def format_for_intent(intent: QueryIntent) -> ResponseFormat:
    return FORMAT_BY_INTENT.get(intent, ResponseFormat.EXPLANATION)


@dataclass(frozen=True)
class ExtractedEntities:
    """Entities mentioned in the question."""

    equipment: tuple[str, ...] = ()
    components: tuple[str, ...] = ()
    error_codes: tuple[str, ...] = ()
    symptoms: tuple[str, ...] = ()


@dataclass(frozen=True)
class SearchStrategy:
    """Which knowledge sources the retriever should query."""

    document_text: bool = True
    schematics: bool = False
    dependencies: bool = False


@dataclass(frozen=True)
class ResponseStrategy:
    """Target answer shape and mandatory content blocks."""

    format: ResponseFormat = ResponseFormat.EXPLANATION
    safety_warning: bool = False
    parts_list: bool = False


@dataclass(frozen=True)
class QueryAnalysis:
    """Structured classification of one user query."""

    intent: QueryIntent = QueryIntent.GENERAL
    urgency: QueryUrgency = QueryUrgency.INFORMATION
    scope: QueryScope = QueryScope.EQUIPMENT
    entities: ExtractedEntities = field(default_factory=ExtractedEntities)
    search_strategy: SearchStrategy = field(default_factory=SearchStrategy)
    response_strategy: ResponseStrategy = field(default_factory=ResponseStrategy)
    confidence: float = 0.5
    reasoning: str = ""
    mode: str = "heuristic"  # "heuristic" | "deep" | "default"

    @property
    def targets_hierarchy(self) -> bool:
        return self.scope in NON_LEAF_SCOPES

    def with_intent_invariants(self) -> "QueryAnalysis":
        """Return a copy where the intent-bound strategy flags always hold.

        troubleshooting → diagnostic format + dependency search;
        parts → table format + parts list.
        """
        if self.intent == QueryIntent.TROUBLESHOOTING:
            return replace(
                self,
                search_strategy=replace(self.search_strategy, dependencies=True),
                response_strategy=replace(
                    self.response_strategy, format=ResponseFormat.DIAGNOSTIC
                ),
            )
        if self.intent == QueryIntent.PARTS:
            return replace(
                self,
                response_strategy=replace(
                    self.response_strategy,
                    format=ResponseFormat.TABLE,
                    parts_list=True,
                ),
            )
        return self

    @classmethod
    def default(cls, reasoning: str = "Default analysis") -> "QueryAnalysis":
        """Hard-coded fallback used when deep analysis cannot be trusted."""
        return cls(
            intent=QueryIntent.GENERAL,
            urgency=QueryUrgency.INFORMATION,
            scope=QueryScope.EQUIPMENT,
            entities=ExtractedEntities(),
            search_strategy=SearchStrategy(document_text=True),
            response_strategy=ResponseStrategy(format=ResponseFormat.EXPLANATION),
            confidence=0.5,
            reasoning=reasoning,
            mode="default",
        )

    def as_log_dict(self) -> dict:
        """Compact representation for log lines."""
        return {
            "intent": self.intent.value,
            "urgency": self.urgency.value,
            "scope": self.scope.value,
            "format": self.response_strategy.format.value,
            "schematics": self.search_strategy.schematics,
            "dependencies": self.search_strategy.dependencies,
            "components": list(self.entities.components),
            "error_codes": list(self.entities.error_codes),
            "mode": self.mode,
        }
