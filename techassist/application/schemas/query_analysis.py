"""Pydantic schemas for query analysis — the deep-analysis LLM payload and its API view."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

IntentLiteral = Literal[
    "troubleshooting", "maintenance", "installation", "parts", "specs", "procedure", "general"
]
UrgencyLiteral = Literal["emergency", "planning", "information"]
ScopeLiteral = Literal["component", "equipment", "subsystem", "line", "site", "unknown"]
FormatLiteral = Literal["steps", "list", "table", "explanation", "diagnostic"]


class DeepAnalysisPayload(BaseModel):
    """JSON object the analysis model must return.

    Anything outside the enumerations fails validation and the caller falls
    back; unknown keys are ignored.
    """

    model_config = ConfigDict(extra="ignore")

    intent: IntentLiteral
    urgency: UrgencyLiteral = "information"
    scope: ScopeLiteral = "unknown"

    equipment_mentioned: list[str] = []
    components_mentioned: list[str] = []
    error_codes: list[str] = []
    symptoms: list[str] = []

    search_document_types: list[str] = []
    search_in_schematics: bool = False
    search_in_dependencies: bool = False

    response_format: FormatLiteral = "explanation"
    include_safety_warning: bool = False
    include_parts_list: bool = False

    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    reasoning: str = ""


class QueryAnalysisSchema(BaseModel):
    """Flat view of a QueryAnalysis returned by the API."""

    intent: IntentLiteral
    urgency: UrgencyLiteral
    scope: ScopeLiteral
    equipment_mentioned: list[str] = []
    components_mentioned: list[str] = []
    error_codes: list[str] = []
    symptoms: list[str] = []
    search_in_schematics: bool = False
    search_in_dependencies: bool = False
    response_format: FormatLiteral = "explanation"
    include_safety_warning: bool = False
    include_parts_list: bool = False
    confidence: float = 0.5
    reasoning: str = ""
    mode: str = "heuristic"
