"""OpenRouter chat adapter — implements ChatProvider over /chat/completions.

Used for both LLM calls of a request: the deep query analysis (JSON
classification) and the final answer.
"""

import logging
import time

import httpx

from techassist.application.interfaces.chat_provider import ChatProvider
from techassist.domain.entities import ChatCompletionResult, ChatMessage, TokenUsage
from techassist.domain.exceptions import ChatProviderError
from techassist.infrastructure.openrouter.base import (
    DEFAULT_BASE_URL,
    OpenRouterHttpAdapter,
    OpenRouterTransportError,
)

logger = logging.getLogger(__name__)


class OpenRouterClient(OpenRouterHttpAdapter, ChatProvider):
    """Non-streaming chat completions through OpenRouter."""

    provider_name = "openrouter"

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        app_name: str = "Technical Assistant",
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 120.0,
    ):
        super().__init__(api_key, base_url, app_name, http_client=http_client, timeout=timeout)

    async def complete(
        self,
        messages: list[ChatMessage],
        model: str,
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> ChatCompletionResult:
        payload: dict = {
            "model": model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
        }
        if temperature is not None:
            payload["temperature"] = temperature
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens

        start = time.perf_counter()
        try:
            data = await self._post_json("chat/completions", payload)
        except OpenRouterTransportError as exc:
            raise ChatProviderError(self.provider_name, exc.status_code, exc.message) from exc

        result = self.parse_completion(data)
        logger.info(
            "Chat completion: model=%s finish=%s tokens=%d/%d cost=%s duration_ms=%d",
            result.model or model,
            result.finish_reason,
            result.usage.prompt_tokens,
            result.usage.completion_tokens,
            result.usage.cost,
            int((time.perf_counter() - start) * 1000),
        )
        return result

    def parse_completion(self, data: dict) -> ChatCompletionResult:
        """Map an OpenRouter response body to a ChatCompletionResult.

        OpenRouter may report errors inside a 200 body; those raise too.
        """
        error = data.get("error")
        if error:
            raise ChatProviderError(
                self.provider_name,
                error.get("code", 500) if isinstance(error, dict) else 500,
                error.get("message", "Unknown error") if isinstance(error, dict) else str(error),
            )

        choices = data.get("choices") or []
        if not choices:
            raise ChatProviderError(self.provider_name, 500, "No choices in response")

        first = choices[0]
        usage = data.get("usage") or {}
        return ChatCompletionResult(
            model=data.get("model", ""),
            content=(first.get("message") or {}).get("content") or "",
            finish_reason=first.get("finish_reason") or "stop",
            usage=TokenUsage(
                prompt_tokens=usage.get("prompt_tokens", 0),
                completion_tokens=usage.get("completion_tokens", 0),
                total_tokens=usage.get("total_tokens", 0),
                cost=usage.get("cost"),
            ),
            provider=self.provider_name,
        )
