"""SQLAlchemy implementation of DependencyRepository.

A row (equipment_id, depends_on_id) means equipment_id depends on
depends_on_id: the provider is upstream of the dependent.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from techassist.application.interfaces import DependencyRepository
from techassist.domain.entities import RELATIONSHIP_TYPES, Criticality, DependencyLink
from techassist.infrastructure.database.models import EquipmentDependencyModel, EquipmentModel

logger = logging.getLogger(__name__)


class SQLAlchemyDependencyRepository(DependencyRepository):

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def list_upstream(self, equipment_id: str) -> list[DependencyLink]:
        stmt = (
            select(
                EquipmentModel.id,
                EquipmentModel.name,
                EquipmentDependencyModel.relationship_type,
                EquipmentDependencyModel.criticality,
                EquipmentDependencyModel.description,
            )
            .select_from(EquipmentDependencyModel)
            .join(EquipmentModel, EquipmentModel.id == EquipmentDependencyModel.depends_on_id)
            .where(EquipmentDependencyModel.equipment_id == equipment_id)
            .order_by(EquipmentModel.name)
        )
        return await self._fetch(stmt)

    async def list_downstream(self, equipment_id: str) -> list[DependencyLink]:
        stmt = (
            select(
                EquipmentModel.id,
                EquipmentModel.name,
                EquipmentDependencyModel.relationship_type,
                EquipmentDependencyModel.criticality,
                EquipmentDependencyModel.description,
            )
            .select_from(EquipmentDependencyModel)
            .join(EquipmentModel, EquipmentModel.id == EquipmentDependencyModel.equipment_id)
            .where(EquipmentDependencyModel.depends_on_id == equipment_id)
            .order_by(EquipmentModel.name)
        )
        return await self._fetch(stmt)

    async def _fetch(self, stmt) -> list[DependencyLink]:
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).all()
        return [self._to_link(row) for row in rows]

    @staticmethod
    def _to_link(row) -> DependencyLink:
        relationship = (row.relationship_type or "").strip().lower() or "feeds"
        if relationship not in RELATIONSHIP_TYPES:
            logger.warning(
                "Unknown relationship type %r for equipment %s, passed through as is",
                relationship, row.id,
            )
        return DependencyLink(
            equipment_id=row.id,
            name=row.name,
            relationship_type=relationship,
            criticality=Criticality.parse(row.criticality),
            description=row.description,
        )
