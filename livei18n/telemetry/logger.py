"""Structured client event logging.

Responsibilities:
- Emit concise, deterministic event lines for cache, transport, and retry activity.
- Route every line through `loguru`, optionally to a dedicated sink.
"""

from __future__ import annotations

from itertools import count
from typing import TextIO

from loguru import logger as _loguru_logger

_LOGGER_IDS = count(1)


def _sanitize_context_value(value: object) -> str:
    """Convert context values into stable, shell-safe tokens."""

    raw = str(value).strip()
    if not raw:
        return "none"
    return "".join(
        character if character.isalnum() or character in {"-", "_", ".", ":", "/"} else "_"
        for character in raw
    )


def _format_context(context: dict[str, object]) -> str:
    """Serialize context key/value pairs in deterministic key order."""

    if not context:
        return ""
    tokens = [
        f"{key}={_sanitize_context_value(context[key])}"
        for key in sorted(context.keys())
    ]
    return " " + " ".join(tokens)


class EventLogger:
    """Emit deterministic event lines for translation client activity.

    When a `sink` is given, a dedicated `loguru` handler is attached that only
    receives lines from this logger instance. Without a sink, lines go to the
    globally configured `loguru` handlers.
    """

    def __init__(
        self,
        sink: TextIO | None = None,
        *,
        debug: bool = False,
        component: str = "client",
    ) -> None:
        """Initialize logger routing and debug gating."""

        self.debug_enabled = debug
        self.component = component
        self._logger_id = next(_LOGGER_IDS)
        self._logger = _loguru_logger.bind(livei18n_logger_id=self._logger_id)
        self._handler_id: int | None = None
        if sink is not None:
            logger_id = self._logger_id
            self._handler_id = _loguru_logger.add(
                sink,
                format="{message}",
                level="DEBUG",
                colorize=False,
                filter=lambda record: record["extra"].get("livei18n_logger_id") == logger_id,
            )

    def child(self, component: str) -> EventLogger:
        """Return a logger sharing this instance's routing under another component name."""

        child = EventLogger.__new__(EventLogger)
        child.debug_enabled = self.debug_enabled
        child.component = component
        child._logger_id = self._logger_id
        child._logger = self._logger
        child._handler_id = None
        return child

    def close(self) -> None:
        """Detach the dedicated sink handler, if one was attached."""

        if self._handler_id is not None:
            _loguru_logger.remove(self._handler_id)
            self._handler_id = None

    def _emit(self, level: str, event: str, **context: object) -> None:
        """Emit one structured event line."""

        line = (
            f"[livei18n] level={level} component={self.component} "
            f"event={event}{_format_context(context)}"
        )
        self._logger.log(level, line)

    def debug(self, event: str, **context: object) -> None:
        """Emit a debug event when debug logging is enabled."""

        if self.debug_enabled:
            self._emit("DEBUG", event, **context)

    def info(self, event: str, **context: object) -> None:
        """Emit an informational event."""

        self._emit("INFO", event, **context)

    def warning(self, event: str, **context: object) -> None:
        """Emit a warning event."""

        self._emit("WARNING", event, **context)

    def error(self, event: str, **context: object) -> None:
        """Emit an error event without sensitive payload details."""

        self._emit("ERROR", event, **context)
