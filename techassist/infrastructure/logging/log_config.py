"""Logging setup: root handler plus per-category levels from Settings.

Call ``setup_logging()`` once at startup (the FastAPI lifespan does).
SQL statements, outbound HTTP and uvicorn access lines can then be
silenced independently of the pipeline stage lines.
"""

import logging
import sys

from techassist.config import Settings, get_settings

_FORMAT = "%(levelname)-8s %(name)s — %(message)s"

# Settings field → loggers it controls.
LOGGER_CATEGORIES: dict[str, tuple[str, ...]] = {
    "log_level_sql": ("sqlalchemy.engine", "sqlalchemy.pool"),
    "log_level_http": ("httpx", "httpcore"),
    "log_level_uvicorn": ("uvicorn", "uvicorn.access", "uvicorn.error"),
    "log_level_pipeline": ("AssistantPipeline", "MultiSourceRetriever"),
    "log_level_openrouter": ("techassist.infrastructure.openrouter",),
}


def parse_level(name: str | None) -> int:
    """Level name to logging constant; unknown names fall back to INFO."""
    level = logging.getLevelName((name or "").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(settings: Settings | None = None) -> dict[str, int]:
    """Apply the configured levels and return them keyed by logger name ("" is root)."""
    settings = settings or get_settings()
    applied: dict[str, int] = {"": parse_level(settings.log_level)}

    root = logging.getLogger()
    root.setLevel(applied[""])
    if not root.handlers:
        # uvicorn installs its own handler; tests and scripts do not.
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)

    for field_name, logger_names in LOGGER_CATEGORIES.items():
        level = parse_level(getattr(settings, field_name, None))
        for logger_name in logger_names:
            logging.getLogger(logger_name).setLevel(level)
            applied[logger_name] = level

    logging.getLogger(__name__).debug(
        "Logging configured: %s",
        ", ".join(f"{name or 'root'}={logging.getLevelName(level)}" for name, level in applied.items()),
    )
    return applied
