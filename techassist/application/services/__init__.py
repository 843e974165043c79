from .alias_resolver import AliasResolver
from .assistant_service import AssistantService
from .dependency_context_builder import DependencyContextBuilder
from .hierarchy_context_builder import HierarchyContextBuilder
from .multi_source_retriever import MultiSourceRetriever
from .prompt_assembler import PromptAssembler
from .query_analyzer import AnalysisMode, QueryAnalyzer
from .retrieval_config import RetrievalConfig

__all__ = [
    "AliasResolver",
    "AnalysisMode",
    "AssistantService",
    "DependencyContextBuilder",
    "HierarchyContextBuilder",
    "MultiSourceRetriever",
    "PromptAssembler",
    "QueryAnalyzer",
    "RetrievalConfig",
]
