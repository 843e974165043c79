"""SQLAlchemy implementation of SchematicRepository."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from techassist.application.interfaces import SchematicRepository
from techassist.domain.entities import Schematic, SchematicComponent, SchematicConnection
from techassist.infrastructure.database.models import SchematicAnalysisModel


class SQLAlchemySchematicRepository(SchematicRepository):

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @staticmethod
    def _to_entity(model: SchematicAnalysisModel) -> Schematic:
        """Map ORM model → domain entity, tolerating partial JSON records."""
        return Schematic(
            type=model.schematic_type or "",
            description=model.raw_description or "",
            components=[
                SchematicComponent(
                    ref=str(c.get("ref") or ""),
                    type=str(c.get("type") or ""),
                    value=c.get("value"),
                )
                for c in (model.components or [])
                if isinstance(c, dict)
            ],
            connections=[
                SchematicConnection(
                    source=str(c.get("from") or ""),
                    target=str(c.get("to") or ""),
                    type=c.get("type"),
                )
                for c in (model.connections or [])
                if isinstance(c, dict)
            ],
            diagnostic_sequence=[str(step) for step in (model.diagnostic_sequence or [])],
            page_reference=str(model.page_number) if model.page_number is not None else None,
        )

    async def list_for_equipment(self, equipment_id: str) -> list[Schematic]:
        stmt = (
            select(SchematicAnalysisModel)
            .where(SchematicAnalysisModel.equipment_id == equipment_id)
            .order_by(SchematicAnalysisModel.page_number)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [self._to_entity(model) for model in result.scalars().all()]
