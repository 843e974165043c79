"""Dependency context builder — upstream/downstream equipment around a target.

Only queried when the analysis asks for it (troubleshooting, or an explicit
dependency search). Each direction is fetched independently: a failed side is
logged and left empty, the other side is kept.
"""

import asyncio
import logging

from techassist.application.interfaces.dependency_repository import DependencyRepository
from techassist.domain.entities import (
    Criticality,
    DependencyContext,
    DependencyLink,
    QueryAnalysis,
    QueryIntent,
)
from techassist.domain.exceptions import PreconditionError

logger = logging.getLogger(__name__)

_CRITICALITY_MARKERS = {
    Criticality.CRITICAL: "[CRITIQUE]",
    Criticality.HIGH: "[ÉLEVÉE]",
    Criticality.MEDIUM: "[MOYENNE]",
    Criticality.LOW: "[FAIBLE]",
}


def should_build(analysis: QueryAnalysis) -> bool:
    """Activation rule: troubleshooting intent or an explicit dependency search."""
    return analysis.intent == QueryIntent.TROUBLESHOOTING or analysis.search_strategy.dependencies


def _describe(link: DependencyLink) -> str:
    marker = _CRITICALITY_MARKERS.get(link.criticality, "")
    text = f"{marker} {link.name} [{link.relationship_type}]"
    if link.description:
        text += f" ({link.description})"
    return text


def render_dependency_summary(
    equipment_name: str,
    upstream: list[DependencyLink],
    downstream: list[DependencyLink],
) -> str:
    """Render the process-flow block: upstream list, arrow, current equipment, downstream list."""
    if not upstream and not downstream:
        return ""

    lines = ["DÉPENDANCES DU PROCESSUS:"]
    if upstream:
        lines.append(f"Amont (ce qui alimente {equipment_name}):")
        lines.extend(f"   {_describe(link)}" for link in upstream)
        lines.append("   ↓")
    lines.append(f"▶ {equipment_name} ◀ ÉQUIPEMENT ACTUEL")
    if downstream:
        lines.append("   ↓")
        lines.append(f"Aval (ce qui dépend de {equipment_name}):")
        lines.extend(f"   {_describe(link)}" for link in downstream)
    return "\n".join(lines)


def render_process_prompt(
    equipment_name: str,
    upstream: list[DependencyLink],
    downstream: list[DependencyLink],
) -> str:
    """Process-chain block and diagnostic rules for the system prompt."""
    if not upstream and not downstream:
        return ""

    chain = [f"→ {link.name}" + (f" ({link.description})" if link.description else "") + " [amont]"
             for link in upstream]
    chain.append(f"→ **{equipment_name}** ← VOUS ÊTES ICI")
    chain.extend(f"→ {link.name}" + (f" ({link.description})" if link.description else "") + " [aval]"
                 for link in downstream)

    rules = ["RÈGLES DE DIAGNOSTIC SYSTÈME:"]
    critical_upstream = [link.name for link in upstream if link.criticality == Criticality.CRITICAL]
    if critical_upstream:
        rules.append(
            f"- Si {equipment_name} ne fonctionne pas, VÉRIFIE D'ABORD: {', '.join(critical_upstream)}"
        )
    critical_downstream = [link.name for link in downstream if link.criticality == Criticality.CRITICAL]
    if critical_downstream:
        rules.append(
            f"- Si {equipment_name} est arrêté, AVERTIS que {', '.join(critical_downstream)} seront impactés"
        )
    rules.append("- Pour toute panne, propose un diagnostic SÉQUENTIEL basé sur le flux du système")

    return (
        "\n\nCHAÎNE DE PROCESSUS:\n"
        + "\n".join(chain)
        + "\n\nLes résultats de recherche incluent la documentation des équipements connectés "
        "lorsqu'elle est utile au dépannage. Analyse les problèmes sur toute la chaîne.\n\n"
        + "\n".join(rules)
    )


class DependencyContextBuilder:
    """Application service reading the dependency graph for one request."""

    def __init__(self, dependency_repo: DependencyRepository | None):
        self._dependency_repo = dependency_repo

    async def build(
        self,
        equipment_id: str,
        equipment_name: str,
        analysis: QueryAnalysis,
    ) -> DependencyContext:
        if not equipment_id:
            raise PreconditionError("equipment_id", "is required to build dependency context")

        if not should_build(analysis):
            logger.debug("Intent %s → no dependency context needed", analysis.intent.value)
            return DependencyContext.empty()

        if self._dependency_repo is None:
            return DependencyContext.empty()

        upstream_result, downstream_result = await asyncio.gather(
            self._dependency_repo.list_upstream(equipment_id),
            self._dependency_repo.list_downstream(equipment_id),
            return_exceptions=True,
        )
        upstream = self._unwrap("upstream", equipment_id, upstream_result)
        downstream = self._unwrap("downstream", equipment_id, downstream_result)

        logger.info(
            "Dependency context for %s: upstream=%d downstream=%d",
            equipment_name,
            len(upstream),
            len(downstream),
        )
        return DependencyContext(
            upstream=upstream,
            downstream=downstream,
            summary=render_dependency_summary(equipment_name, upstream, downstream),
            process_prompt=render_process_prompt(equipment_name, upstream, downstream),
        )

    @staticmethod
    def _unwrap(
        direction: str,
        equipment_id: str,
        result: list[DependencyLink] | BaseException,
    ) -> list[DependencyLink]:
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, BaseException):
            logger.warning(
                "Dependency lookup failed (%s) for equipment %s: %s",
                direction,
                equipment_id,
                result,
            )
            return []
        return list(result)
