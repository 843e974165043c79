"""Shared HTTP plumbing for the OpenRouter adapters (chat and embeddings)."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"


class OpenRouterTransportError(Exception):
    """Internal: the request never produced a usable HTTP response."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(message)


class OpenRouterHttpAdapter:
    """Base class holding credentials, headers and the httpx client lifecycle.

    A shared ``http_client`` is reused as-is; without one, each request gets
    its own client which is closed afterwards.
    """

    provider_name = "openrouter"

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        app_name: str = "Technical Assistant",
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 60.0,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._app_name = app_name
        self._http_client = http_client
        self._timeout = timeout

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "X-Title": self._app_name,
        }

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            yield client

    async def _post_json(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST ``payload`` and return the decoded body of a 200 response.

        Raises:
            OpenRouterTransportError: Connection failure (503), a non-200
                status (that status) or a body that is not JSON (502).
        """
        url = f"{self._base_url}/{path.lstrip('/')}"
        async with self._client() as client:
            try:
                response = await client.post(url, headers=self.headers, json=payload)
            except httpx.HTTPError as exc:
                raise OpenRouterTransportError(503, f"{type(exc).__name__}: {exc}") from exc

        if response.status_code != 200:
            message = _error_message(response)
            logger.error("OpenRouter %s returned %d: %s", path, response.status_code, message[:300])
            raise OpenRouterTransportError(response.status_code, message)

        try:
            return response.json()
        except ValueError as exc:
            raise OpenRouterTransportError(502, f"Invalid JSON from {path}: {response.text[:200]}") from exc


def _error_message(response: httpx.Response) -> str:
    """The ``error.message`` of a JSON error body, else the raw text."""
    try:
        error = response.json().get("error") or {}
    except ValueError:
        return response.text
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return response.text
