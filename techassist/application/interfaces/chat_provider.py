"""Port for the chat model used by deep query analysis and the final answer."""

from abc import ABC, abstractmethod

from techassist.domain.entities import ChatMessage, ChatCompletionResult


class ChatProvider(ABC):

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Short identifier used in logs and error messages (e.g. 'openrouter')."""
        ...

    @abstractmethod
    async def complete(
        self,
        messages: list[ChatMessage],
        model: str,
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> ChatCompletionResult:
        """Run one non-streaming completion.

        Args:
            messages: System prompt first, then the conversation.
            model: Provider model id, e.g. 'openai/gpt-4o-mini'.
            temperature: Left to the provider default when None.
            max_tokens: Left to the provider default when None.

        Raises:
            ChatProviderError: Transport failure, non-200 status or error body.
        """
        ...
