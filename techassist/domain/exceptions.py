"""Domain exceptions for the assistant pipeline — no framework imports."""


class EntityNotFoundError(Exception):
    """An equipment (or other entity) id that does not exist."""

    def __init__(self, entity_type: str, entity_id: int | str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with id '{entity_id}' not found")


class PreconditionError(Exception):
    """A required input is missing (empty question, equipment without id or name).

    Fatal for the call; never recovered inside the pipeline.
    """

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class ProviderError(Exception):
    """An external model service failed; ``status_code`` is HTTP-like."""

    def __init__(self, provider: str, status_code: int, message: str):
        self.provider = provider
        self.status_code = status_code
        self.message = message
        super().__init__(f"[{provider}] {status_code}: {message}")


class ChatProviderError(ProviderError):
    """Chat completion failed, or no chat provider is configured (503)."""


class EmbeddingProviderError(ProviderError):
    """Embedding call failed or returned an unusable payload."""


class RetrievalError(Exception):
    """Document-text search failed and no other source produced context."""

    def __init__(self, message: str, cause: Exception | None = None):
        self.message = message
        self.cause = cause
        super().__init__(message)
