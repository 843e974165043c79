"""Domain entities for multi-source retrieval results."""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SourceType(str, Enum):
    """Origin category of a retrieved passage."""

    MANUAL_TEXT = "manual_text"
    SCHEMATIC = "schematic"
    DEPENDENCY_SUMMARY = "dependency_summary"
    HIERARCHY_SUMMARY = "hierarchy_summary"


@dataclass(frozen=True)
class SearchResult:
    """One retrieved unit of knowledge.

    ``similarity`` is a relevance score. Vector hits carry their cosine
    similarity; heuristic sources use fixed bands (0.7–0.9).
    """

    content: str
    source_type: SourceType
    similarity: float
    origin_equipment_name: str = ""
    page_reference: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict, hash=False, compare=False)

    @property
    def identity(self) -> tuple[str, SourceType]:
        return (self.content, self.source_type)


@dataclass
class DocumentChunkMatch:
    """A single hit returned by the document vector-search collaborator."""

    content: str
    similarity: float  # cosine similarity
    page_reference: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class SchematicComponent:
    ref: str
    type: str = ""
    value: str | None = None


@dataclass
class SchematicConnection:
    source: str  # "from" in the stored record
    target: str  # "to" in the stored record
    type: str | None = None


@dataclass
class Schematic:
    """Structured analysis of one schematic page."""

    type: str = ""
    description: str = ""
    components: list[SchematicComponent] = field(default_factory=list)
    connections: list[SchematicConnection] = field(default_factory=list)
    diagnostic_sequence: list[str] = field(default_factory=list)
    page_reference: str | None = None


@dataclass
class RetrievalStats:
    """Aggregate view of a merged result list, reported alongside the answer."""

    sources_used: int = 0
    counts_by_source: dict[str, int] = field(default_factory=dict)
    source_types: list[str] = field(default_factory=list)
    avg_relevance: int = 0  # percent
    context_quality: str = "low"  # "high" | "medium" | "low"

    @classmethod
    def from_results(cls, results: list[SearchResult]) -> "RetrievalStats":
        if not results:
            return cls()
        avg = sum(r.similarity for r in results) / len(results)
        counts = Counter(r.source_type.value for r in results)
        if avg > 0.6:
            quality = "high"
        elif avg > 0.4:
            quality = "medium"
        else:
            quality = "low"
        return cls(
            sources_used=len(results),
            counts_by_source=dict(counts),
            source_types=list(dict.fromkeys(r.source_type.value for r in results)),
            avg_relevance=round(avg * 100),
            context_quality=quality,
        )
