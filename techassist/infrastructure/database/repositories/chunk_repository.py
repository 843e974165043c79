"""SQLAlchemy implementation of ChunkRepository — pgvector-powered vector search."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from techassist.application.interfaces import ChunkRepository
from techassist.domain.entities import DocumentChunkMatch
from techassist.infrastructure.database.models import DocumentChunkModel

logger = logging.getLogger(__name__)


class PgChunkRepository(ChunkRepository):
    """Concrete chunk repository backed by PostgreSQL + pgvector."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def search_similar(
        self,
        equipment_id: str,
        query_embedding: list[float],
        *,
        similarity_floor: float,
        limit: int,
    ) -> list[DocumentChunkMatch]:
        """Chunks of one equipment ranked by cosine similarity, above the floor."""
        # 1 - (embedding <=> query_vector) gives cosine similarity
        similarity = (
            1 - DocumentChunkModel.embedding.cosine_distance(query_embedding)
        ).label("similarity")

        stmt = (
            select(
                DocumentChunkModel.content,
                DocumentChunkModel.page_number,
                DocumentChunkModel.metadata_.label("chunk_metadata"),
                similarity,
            )
            .where(DocumentChunkModel.equipment_id == equipment_id)
            .where(DocumentChunkModel.embedding.is_not(None))
            .where(similarity >= similarity_floor)
            .order_by(similarity.desc())
            .limit(limit)
        )

        async with self._session_factory() as session:
            result = await session.execute(stmt)
            rows = result.all()
        logger.debug(
            "Vector search equipment=%s floor=%.2f limit=%d → %d chunks",
            equipment_id,
            similarity_floor,
            limit,
            len(rows),
        )

        return [
            DocumentChunkMatch(
                content=row.content,
                similarity=float(row.similarity),
                page_reference=str(row.page_number) if row.page_number is not None else None,
                metadata=dict(row.chunk_metadata or {}),
            )
            for row in rows
        ]
