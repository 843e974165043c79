"""OpenRouter embedding adapter — implements EmbeddingProvider over /embeddings.

The configured model and dimensions must match the ``document_chunks.embedding``
column, otherwise vector search compares incompatible spaces.
"""

import logging

import httpx

from techassist.application.interfaces.embedding_provider import EmbeddingProvider
from techassist.domain.exceptions import EmbeddingProviderError
from techassist.infrastructure.openrouter.base import (
    DEFAULT_BASE_URL,
    OpenRouterHttpAdapter,
    OpenRouterTransportError,
)

logger = logging.getLogger(__name__)


class OpenRouterEmbeddingProvider(OpenRouterHttpAdapter, EmbeddingProvider):

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        app_name: str = "Technical Assistant",
        model: str = "openai/text-embedding-3-small",
        model_dimensions: int = 1536,
        http_client: httpx.AsyncClient | None = None,
    ):
        super().__init__(api_key, base_url, app_name, http_client=http_client, timeout=60.0)
        self._model = model
        self._dimensions = model_dimensions

    @property
    def dimensions(self) -> int:
        return self._dimensions

    async def generate_embeddings(self, texts: list[str]) -> list[list[float]]:
        """One vector per text, in input order (the API may reorder items)."""
        if not texts:
            return []

        payload = {"model": self._model, "input": texts, "dimensions": self._dimensions}
        try:
            data = await self._post_json("embeddings", payload)
        except OpenRouterTransportError as exc:
            raise EmbeddingProviderError(self.provider_name, exc.status_code, exc.message[:500]) from exc

        items = sorted(data.get("data") or [], key=lambda item: item.get("index", 0))
        vectors = [item["embedding"] for item in items]
        if len(vectors) != len(texts):
            raise EmbeddingProviderError(
                self.provider_name,
                502,
                f"Expected {len(texts)} embeddings, got {len(vectors)}",
            )

        logger.debug("Embedded %d texts with %s (%d dims)", len(vectors), self._model, len(vectors[0]))
        return vectors
