"""Port for the text-embedding service behind document vector search."""

from abc import ABC, abstractmethod


class EmbeddingProvider(ABC):

    @abstractmethod
    async def generate_embeddings(self, texts: list[str]) -> list[list[float]]:
        """Embed a batch; one vector per text, in input order.

        Raises:
            EmbeddingProviderError: The service failed or returned a wrong count.
        """
        ...

    async def generate_query_embedding(self, query: str) -> list[float]:
        """Embed one search query (the augmented question)."""
        (vector,) = await self.generate_embeddings([query])
        return vector
