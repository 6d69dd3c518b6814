"""
Human-readable rendering for the fallback logger.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, TextIO

from structlog.typing import EventDict, WrappedLogger

# =============================================================================
# Console Formatter (Aligned Columns)
# =============================================================================


class ConsoleFormatter:
    """Renders an event dict as one aligned, non-JSON line.

    Layout: ``timestamp | LEVEL | logger | message key=value ...``
    """

    _RESET = "\x1b[0m"
    _DIM = "\x1b[2m"
    _LEVEL_COLORS = {
        "DEBUG": "\x1b[36m",
        "INFO": "\x1b[32m",
        "WARNING": "\x1b[33m",
        "ERROR": "\x1b[31m",
        "CRITICAL": "\x1b[1;31m",
    }

    EXCLUDED_KEYS = {"level", "event", "logger", "timestamp", "exception"}
    TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
    LEVEL_WIDTH = 8
    LOGGER_WIDTH = 16
    SEPARATOR = " | "

    @staticmethod
    def _fit_right(text: str, width: int) -> str:
        if len(text) > width:
            text = "..." + text[-(width - 3) :] if width > 3 else text[-width:]
        return f"{text:>{width}}"

    @classmethod
    def _format_timestamp(cls, raw_timestamp: Any) -> str:
        if isinstance(raw_timestamp, str):
            try:
                dt = datetime.fromisoformat(raw_timestamp.replace("Z", "+00:00"))
                if dt.tzinfo is None:
                    dt = dt.replace(tzinfo=timezone.utc)
                return dt.astimezone().strftime(cls.TIMESTAMP_FORMAT)
            except ValueError:
                pass
        return datetime.now().strftime(cls.TIMESTAMP_FORMAT)

    @classmethod
    def format(cls, event_dict: EventDict, *, use_color: bool = False) -> str:
        """Format an event dict into an aligned string."""
        level = str(event_dict.get("level", "info")).upper()
        message = str(event_dict.get("event", ""))
        logger_name = str(event_dict.get("logger", "seqsink"))

        extras = [f"{k}={v}" for k, v in event_dict.items() if k not in cls.EXCLUDED_KEYS]
        if extras:
            message = f"{message} " + " ".join(extras)

        level_text = cls._fit_right(level, cls.LEVEL_WIDTH)
        if use_color and level in cls._LEVEL_COLORS:
            level_text = f"{cls._LEVEL_COLORS[level]}{level_text}{cls._RESET}"

        timestamp = cls._format_timestamp(event_dict.get("timestamp"))
        if use_color:
            timestamp = f"{cls._DIM}{timestamp}{cls._RESET}"

        line = cls.SEPARATOR.join(
            [timestamp, level_text, cls._fit_right(logger_name, cls.LOGGER_WIDTH), message]
        )
        exception = event_dict.get("exception")
        if exception:
            line = f"{line}\n{exception}"
        return line


class ConsoleRenderer:
    """structlog renderer wrapping ConsoleFormatter.

    Colour is only used when the target stream is a terminal.
    """

    def __init__(self, stream: TextIO) -> None:
        self._use_color = bool(getattr(stream, "isatty", lambda: False)())

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> str:
        return ConsoleFormatter.format(event_dict, use_color=self._use_color)
