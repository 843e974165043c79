"""SQLAlchemy ORM models for the equipment hierarchy, aliases and dependency graph."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from techassist.infrastructure.database.base import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class EquipmentModel(Base):
    """ORM model — one node of the site → line → subsystem → equipment → component tree."""

    __tablename__ = "equipment"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    code: Mapped[str | None] = mapped_column(String(100), nullable=True)
    level: Mapped[str] = mapped_column(String(30), nullable=False, default="equipment")
    parent_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("equipment.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    manufacturer: Mapped[str | None] = mapped_column(String(255), nullable=True)
    model_number: Mapped[str | None] = mapped_column(String(255), nullable=True)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    position_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<EquipmentModel(id={self.id}, name='{self.name}', level='{self.level}')>"


class EquipmentAliasModel(Base):
    """ORM model — a nickname (any language or script) for one equipment."""

    __tablename__ = "equipment_aliases"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    equipment_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("equipment.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    alias: Mapped[str] = mapped_column(String(255), nullable=False)
    alias_normalized: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    __table_args__ = (
        UniqueConstraint("equipment_id", "alias_normalized", name="uq_equipment_alias"),
    )


class EquipmentDependencyModel(Base):
    """ORM model — ``equipment_id`` depends on ``depends_on_id`` (the provider is upstream)."""

    __tablename__ = "equipment_dependencies"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    equipment_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("equipment.id", ondelete="CASCADE"),
        nullable=False,
    )
    depends_on_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("equipment.id", ondelete="CASCADE"),
        nullable=False,
    )
    relationship_type: Mapped[str] = mapped_column(String(30), nullable=False, default="feeds")
    criticality: Mapped[str] = mapped_column(String(20), nullable=False, default="medium")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("equipment_id", "depends_on_id", "relationship_type", name="uq_dependency_edge"),
        Index("idx_dependencies_equipment", "equipment_id"),
        Index("idx_dependencies_depends_on", "depends_on_id"),
    )
