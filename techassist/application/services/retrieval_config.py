"""Tunable thresholds and similarity bands for alias resolution and retrieval."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class RetrievalConfig:
    """Plain value object so services stay independent of the settings framework."""

    alias_similarity_threshold: float = 0.6
    document_similarity_floor: float = 0.25
    document_match_count: int = 10
    upstream_similarity_floor: float = 0.4
    upstream_match_count: int = 3
    upstream_max_equipment: int = 2
    upstream_similarity_discount: float = 0.8
    schematic_match_similarity: float = 0.9
    schematic_generic_similarity: float = 0.7
    dependency_similarity: float = 0.85
    hierarchy_similarity: float = 0.8
    max_results: int = 15
    source_timeout_seconds: float = 20.0

    @classmethod
    def from_settings(cls, settings: Any) -> "RetrievalConfig":
        """Build from an object exposing the same attribute names (e.g. Settings)."""
        return cls(**{
            name: getattr(settings, name)
            for name in cls.__dataclass_fields__
            if hasattr(settings, name)
        })
