"""Domain entities for one assistant request: prepared context and answer."""

from dataclasses import dataclass, field

from .chat_message import ChatCompletionResult
from .dependency import DependencyContext
from .equipment import AliasResolution, EquipmentRecord, HierarchyContext
from .query_analysis import QueryAnalysis
from .search_result import RetrievalStats, SearchResult


@dataclass
class AssistantContext:
    """Everything prepared for the answer model, kept for inspection and the API."""

    equipment: EquipmentRecord
    alias_resolution: AliasResolution
    analysis: QueryAnalysis
    dependency_context: DependencyContext = field(default_factory=DependencyContext)
    hierarchy_context: HierarchyContext = field(default_factory=HierarchyContext)
    results: list[SearchResult] = field(default_factory=list)
    stats: RetrievalStats = field(default_factory=RetrievalStats)
    system_prompt: str = ""


@dataclass
class AssistantAnswer:
    context: AssistantContext
    completion: ChatCompletionResult
