"""SQLAlchemy ORM models for equipment documentation: text chunks and analysed schematics."""

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB

from pgvector.sqlalchemy import Vector

from techassist.infrastructure.database.base import Base

# Must match the embedding model's output (settings.embedding_dimensions).
EMBEDDING_DIMENSIONS = 1536


class DocumentChunkModel(Base):
    """A text chunk from an equipment manual, with a vector embedding.

    Chunks are produced by an ingestion pipeline outside this service; here
    they are only searched.
    """

    __tablename__ = "document_chunks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    equipment_id = Column(
        String(36),
        ForeignKey("equipment.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    content = Column(Text, nullable=False)
    page_number = Column(Integer, nullable=True)
    metadata_ = Column("metadata", JSONB, nullable=False, server_default="{}")
    embedding = Column(Vector(EMBEDDING_DIMENSIONS), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("idx_document_chunks_embedding_hnsw", embedding, postgresql_using="hnsw",
              postgresql_ops={"embedding": "vector_cosine_ops"}),
    )


class SchematicAnalysisModel(Base):
    """Structured reading of one schematic page (components, connections, diagnostic order)."""

    __tablename__ = "schematic_analyses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    equipment_id = Column(
        String(36),
        ForeignKey("equipment.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    schematic_type = Column(String(50), nullable=True)  # "electrical", "hydraulic", ...
    raw_description = Column(Text, nullable=True)
    components = Column(JSONB, nullable=False, server_default="[]")  # [{ref, type, value}]
    connections = Column(JSONB, nullable=False, server_default="[]")  # [{from, to, type}]
    diagnostic_sequence = Column(JSONB, nullable=False, server_default="[]")  # [str]
    page_number = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
