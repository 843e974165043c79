"""Domain entities for directional equipment dependencies (process flow)."""

from dataclasses import dataclass, field
from enum import Enum


class Criticality(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def parse(cls, raw: str | None) -> "Criticality":
        """Map a stored value to a tier, defaulting to MEDIUM for unknown values."""
        try:
            return cls(str(raw or "").strip().lower())
        except ValueError:
            return cls.MEDIUM


# Known relationship types; the store may hold others, which are passed through.
RELATIONSHIP_TYPES = frozenset({
    "feeds",
    "powers",
    "controls",
    "cools",
    "lubricates",
    "alternative",
    "parallel",
})


@dataclass(frozen=True)
class DependencyLink:
    """One edge of the dependency graph, seen from the target equipment."""

    equipment_id: str
    name: str
    relationship_type: str = "feeds"
    criticality: Criticality = Criticality.MEDIUM
    description: str | None = None


@dataclass
class DependencyContext:
    """Upstream and downstream equipment relevant to one request. Never cached."""

    upstream: list[DependencyLink] = field(default_factory=list)
    downstream: list[DependencyLink] = field(default_factory=list)
    summary: str = ""
    process_prompt: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.upstream and not self.downstream

    @classmethod
    def empty(cls) -> "DependencyContext":
        return cls()
