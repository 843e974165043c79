"""Prompt assembler — turns the analysis and retrieved context into the answer model's system prompt.

Pure string composition, no I/O. Block order:
  emergency override (if urgent) → role + equipment header → hierarchy →
  intent methodology → answer format → safety / parts obligations →
  language policy → retrieved context (or the no-context notice) →
  referenced equipment → process chain
"""

from techassist.application.services import prompt_templates as templates
from techassist.domain.entities import (
    EquipmentRecord,
    QueryAnalysis,
    QueryIntent,
    QueryUrgency,
    ResponseFormat,
    SearchResult,
)
from techassist.domain.exceptions import PreconditionError


def render_search_context(results: list[SearchResult]) -> str:
    """Number and label each result, joined with separators. Empty string for no results."""
    blocks = []
    for index, result in enumerate(results, start=1):
        header = f"[Source {index}"
        label = templates.SOURCE_LABELS.get(result.source_type.value)
        if label:
            header += f" - {label}"
        if result.origin_equipment_name:
            header += f" - {result.origin_equipment_name}"
        if result.page_reference:
            header += f" - Page {result.page_reference}"
        header += f" - {round(result.similarity * 100)}%]"
        blocks.append(f"{header}\n{result.content}")
    return "\n\n---\n\n".join(blocks)


class PromptAssembler:
    """Builds the system prompt; deterministic for identical inputs."""

    def build(
        self,
        equipment: EquipmentRecord,
        analysis: QueryAnalysis,
        context: str,
        *,
        hierarchy_summary: str = "",
        equipment_context: str = "",
        process_prompt: str = "",
    ) -> str:
        """Compose the system prompt.

        Args:
            equipment: Target equipment (name required; manufacturer, model and
                category are shown when present).
            analysis: Drives the intent, format, safety, parts and urgency blocks.
            context: Rendered search results; empty means nothing was found.
            hierarchy_summary: Location block for leaf equipment.
            equipment_context: Referenced-equipment block from alias resolution.
            process_prompt: Process-chain block from the dependency context.

        Raises:
            PreconditionError: Missing equipment identity or analysis.
        """
        if equipment is None or not (equipment.name or "").strip():
            raise PreconditionError("equipment", "a named equipment is required")
        if analysis is None:
            raise PreconditionError("analysis", "is required")

        sections: list[str] = []

        if analysis.urgency == QueryUrgency.EMERGENCY:
            sections.append(templates.EMERGENCY_BLOCK)

        sections.append(self._header(equipment))

        if hierarchy_summary.strip():
            sections.append(hierarchy_summary.strip())

        sections.append(
            templates.INTENT_INSTRUCTIONS.get(
                analysis.intent, templates.INTENT_INSTRUCTIONS[QueryIntent.GENERAL]
            )
        )
        sections.append(
            templates.FORMAT_INSTRUCTIONS.get(
                analysis.response_strategy.format,
                templates.FORMAT_INSTRUCTIONS[ResponseFormat.EXPLANATION],
            )
        )

        if analysis.response_strategy.safety_warning:
            sections.append(templates.SAFETY_BLOCK)
        if analysis.response_strategy.parts_list:
            sections.append(templates.PARTS_BLOCK)

        sections.append(templates.LANGUAGE_POLICY)

        if context.strip():
            sections.append(templates.CONTEXT_BLOCK.format(context=context))
        else:
            sections.append(templates.NO_CONTEXT_NOTICE)

        prompt = "\n\n".join(sections) + "\n"
        # Both blocks carry their own leading blank lines.
        return prompt + equipment_context + process_prompt

    @staticmethod
    def _header(equipment: EquipmentRecord) -> str:
        lines = [templates.BASE_ROLE, "", f"ÉQUIPEMENT: {equipment.name}"]
        if equipment.manufacturer:
            lines.append(f"Fabricant: {equipment.manufacturer}")
        if equipment.model_number:
            lines.append(f"Modèle: {equipment.model_number}")
        if equipment.category:
            lines.append(f"Catégorie: {equipment.category}")
        return "\n".join(lines)
