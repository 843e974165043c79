"""Abstract repository interface (port) for document-chunk vector search."""

from abc import ABC, abstractmethod

from techassist.domain.entities import DocumentChunkMatch


class ChunkRepository(ABC):
    """Port for similarity search over document chunks scoped to one equipment."""

    @abstractmethod
    async def search_similar(
        self,
        equipment_id: str,
        query_embedding: list[float],
        *,
        similarity_floor: float,
        limit: int,
    ) -> list[DocumentChunkMatch]:
        """Find chunks of one equipment's documents most similar to the query embedding.

        Args:
            equipment_id: Equipment whose documents are searched.
            query_embedding: The query vector.
            similarity_floor: Minimum cosine similarity for a hit.
            limit: Maximum number of results.

        Returns:
            Matches ordered by descending similarity.
        """
        ...
