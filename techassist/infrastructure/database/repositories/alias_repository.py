"""SQLAlchemy implementation of AliasRepository."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from techassist.application.interfaces import AliasRepository
from techassist.domain.entities import EquipmentAlias
from techassist.infrastructure.database.models import EquipmentAliasModel, EquipmentModel


class SQLAlchemyAliasRepository(AliasRepository):
    """Aliases joined with their equipment's canonical name."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    def _base_query(self):
        return (
            select(
                EquipmentAliasModel.equipment_id,
                EquipmentModel.name.label("canonical_name"),
                EquipmentAliasModel.alias,
                EquipmentAliasModel.alias_normalized,
            )
            .join(EquipmentModel, EquipmentModel.id == EquipmentAliasModel.equipment_id)
        )

    @staticmethod
    def _to_entity(row) -> EquipmentAlias:
        return EquipmentAlias(
            equipment_id=row.equipment_id,
            canonical_name=row.canonical_name,
            alias_text=row.alias,
            alias_normalized=row.alias_normalized or "",
        )

    async def list_aliases(self) -> list[EquipmentAlias]:
        async with self._session_factory() as session:
            result = await session.execute(self._base_query())
            return [self._to_entity(row) for row in result.all()]

    async def list_for_equipment(self, equipment_id: str) -> list[EquipmentAlias]:
        stmt = self._base_query().where(EquipmentAliasModel.equipment_id == equipment_id)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [self._to_entity(row) for row in result.all()]
