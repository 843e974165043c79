"""Colored pipeline logger — one terminal line per assistant stage.

Every request stage gets its own color and icon so a single question can be
followed from alias resolution to the final answer:

    🔤 ALIAS       cyan       equipment nicknames
    🧭 ANALYSIS    blue       intent / urgency / scope
    🔗 DEPENDENCY  magenta    upstream / downstream graph
    🔍 RETRIEVAL   yellow     fan-out and merge
    📝 PROMPT      white      system prompt assembly
    🤖 ANSWER      green      final model call
    ❌ ERROR       red

Colors are dropped when the output is not a terminal or NO_COLOR is set.
"""

import logging
import os
import sys
import time
from contextlib import contextmanager
from typing import Any, Iterator, NamedTuple

_RESET = "\033[0m"
_BOLD = "\033[1m"
_DIM = "\033[2m"
_RED = "\033[91m"
_GREEN = "\033[92m"
_YELLOW = "\033[93m"
_BLUE = "\033[94m"
_MAGENTA = "\033[95m"
_CYAN = "\033[96m"
_WHITE = "\033[97m"
_GRAY = "\033[90m"


class Stage(NamedTuple):
    label: str
    color: str
    icon: str


class PipelineStage:
    """Stages of one assistant request."""

    ALIAS = Stage("ALIAS", _CYAN, "🔤")
    ANALYSIS = Stage("ANALYSIS", _BLUE, "🧭")
    DEPENDENCY = Stage("DEPENDENCY", _MAGENTA, "🔗")
    RETRIEVAL = Stage("RETRIEVAL", _YELLOW, "🔍")
    PROMPT = Stage("PROMPT", _WHITE, "📝")
    ANSWER = Stage("ANSWER", _GREEN, "🤖")
    ERROR = Stage("ERROR", _RED, "❌")
    COMPLETE = Stage("COMPLETE", _GREEN, "✅")


def _colors_enabled() -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    return sys.stderr.isatty()


def _fields(values: dict[str, Any], sep: str = " | ") -> str:
    return sep.join(f"{key}={value}" for key, value in values.items())


class PipelineLogger:
    """Stage-colored wrapper around a named stdlib logger.

    Usage:
        plog = PipelineLogger("AssistantPipeline")
        with plog.timed_step(PipelineStage.ANALYSIS, "Analyzing question", mode="auto"):
            analysis = await analyzer.analyze(query, context)
        plog.detail("Analysis", intent="troubleshooting", urgency="emergency")
    """

    def __init__(self, name: str, *, color: bool | None = None):
        self._logger = logging.getLogger(name)
        self._color = _colors_enabled() if color is None else color

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def _paint(self, text: str, *codes: str) -> str:
        if not self._color or not codes:
            return text
        return "".join(codes) + text + _RESET

    def _with_fields(self, line: str, fields: dict[str, Any]) -> str:
        if not fields:
            return line
        return f"{line} {self._paint(f'({_fields(fields)})', _GRAY)}"

    def step_start(self, stage: Stage, message: str, **fields: Any) -> None:
        head = self._paint(f"{stage.icon} [{stage.label}]", stage.color, _BOLD)
        self._logger.info(self._with_fields(f"{head} {self._paint(message, stage.color)}", fields))

    def step_complete(self, stage: Stage, message: str, **fields: Any) -> None:
        head = self._paint(f"{stage.icon} [{stage.label}]", stage.color)
        self._logger.info(self._with_fields(f"{head} {self._paint('✓ ' + message, _GREEN)}", fields))

    def step_error(self, stage: Stage, message: str, error: BaseException | None = None) -> None:
        line = (
            f"{self._paint(f'{PipelineStage.ERROR.icon} [{stage.label}]', _RED, _BOLD)} "
            f"{self._paint(message, _RED)}"
        )
        if error is not None:
            line += " " + self._paint(f"→ {type(error).__name__}: {error}", _DIM)
        self._logger.error(line)

    def detail(self, message: str, **fields: Any) -> None:
        line = "   " + self._paint(f"├─ {message}", _GRAY)
        if fields:
            line += " " + self._paint(f"({_fields(fields)})", _DIM)
        self._logger.info(line)

    def separator(self, title: str = "") -> None:
        rule = f"{'─' * 10} {title} {'─' * max(0, 50 - len(title))}" if title else "─" * 60
        self._logger.info(self._paint(rule, _GRAY))

    def stats(self, **fields: Any) -> None:
        self._logger.info("   " + self._paint(f"📈 {_fields(fields)}", _GRAY))

    @contextmanager
    def timed_step(self, stage: Stage, message: str, **fields: Any) -> Iterator[None]:
        """Log start and end of a block with its duration; failures are logged and re-raised."""
        self.step_start(stage, message, **fields)
        start = time.perf_counter()
        try:
            yield
        except Exception as exc:
            self.step_error(stage, f"{message} failed after {time.perf_counter() - start:.2f}s", exc)
            raise
        self.step_complete(stage, f"{message} ({time.perf_counter() - start:.2f}s)")
