"""SQLAlchemy implementation of EquipmentRepository — the equipment tree.

Like the other read-side repositories, each call opens its own short-lived
session: the pipeline queries several sources concurrently and an
AsyncSession does not allow concurrent operations.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from techassist.application.interfaces import EquipmentRepository
from techassist.domain.entities import (
    MAX_HIERARCHY_DEPTH,
    EquipmentRecord,
    HierarchyNode,
    collect_descendants,
)
from techassist.infrastructure.database.models import EquipmentModel


class SQLAlchemyEquipmentRepository(EquipmentRepository):
    """Implements the EquipmentRepository port using SQLAlchemy async sessions."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        max_depth: int = MAX_HIERARCHY_DEPTH,
    ):
        self._session_factory = session_factory
        self._max_depth = max_depth

    def _to_entity(self, model: EquipmentModel) -> EquipmentRecord:
        """Map ORM model → domain entity."""
        return EquipmentRecord(
            id=model.id,
            name=model.name,
            level=model.level or "equipment",
            parent_id=model.parent_id,
            code=model.code,
            manufacturer=model.manufacturer,
            model_number=model.model_number,
            category=model.category,
        )

    async def get_by_id(self, equipment_id: str) -> EquipmentRecord | None:
        async with self._session_factory() as session:
            model = await session.get(EquipmentModel, equipment_id)
            return self._to_entity(model) if model else None

    async def list_children(self, equipment_id: str) -> list[HierarchyNode]:
        stmt = (
            select(EquipmentModel.id, EquipmentModel.name, EquipmentModel.level)
            .where(EquipmentModel.parent_id == equipment_id)
            .order_by(EquipmentModel.position_order, EquipmentModel.name)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [HierarchyNode(id=row.id, name=row.name, level=row.level) for row in result.all()]

    async def list_descendants(self, equipment_id: str) -> list[HierarchyNode]:
        """Bounded walk over an in-memory adjacency index of the whole tree."""
        stmt = (
            select(
                EquipmentModel.id,
                EquipmentModel.name,
                EquipmentModel.level,
                EquipmentModel.parent_id,
            )
            .where(EquipmentModel.parent_id.is_not(None))
            .order_by(EquipmentModel.position_order, EquipmentModel.name)
        )
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).all()

        children_by_parent: dict[str, list[HierarchyNode]] = {}
        for row in rows:
            children_by_parent.setdefault(row.parent_id, []).append(
                HierarchyNode(id=row.id, name=row.name, level=row.level)
            )
        return collect_descendants(children_by_parent, equipment_id, self._max_depth)
