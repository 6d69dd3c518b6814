"""
Encoder configuration and the structlog processor chain that renders CLEF.

CLEF (Compact Log Event Format) is one JSON object per event with reserved
``@``-prefixed keys. Seq requires at least ``@t`` (timestamp) and either
``@mt`` (message template) or ``@m`` (rendered message); ``@l`` carries the
level. Properties whose names start with ``@`` but are not reserved must be
escaped as ``@@``.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Union

import orjson
import structlog
from structlog.processors import CallsiteParameter
from structlog.typing import EventDict, Processor, WrappedLogger

TimeEncoder = Callable[[int], str]
LevelEncoder = Callable[[str], str]

CLEF_TIME_KEY = "@t"
CLEF_LEVEL_KEY = "@l"
CLEF_MESSAGE_KEY = "@mt"
CALLER_KEY = "caller"
STACKTRACE_KEY = "trace"


# =============================================================================
# Time & Level Encoders
# =============================================================================


def rfc3339nano_time_encoder(timestamp_ns: int) -> str:
    """UTC RFC 3339 with nanoseconds, trailing zeros trimmed.

    ``1700000000_120000000`` -> ``2023-11-14T22:13:20.12Z``
    """
    seconds, nanos = divmod(timestamp_ns, 1_000_000_000)
    base = time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(seconds))
    fraction = f"{nanos:09d}".rstrip("0")
    return f"{base}.{fraction}Z" if fraction else f"{base}Z"


def iso8601_time_encoder(timestamp_ns: int) -> str:
    return datetime.fromtimestamp(timestamp_ns / 1_000_000_000, tz=timezone.utc).isoformat()


def lowercase_level_encoder(level: str) -> str:
    return level.lower()


def uppercase_level_encoder(level: str) -> str:
    return level.upper()


# =============================================================================
# Configuration
# =============================================================================


@dataclass
class EncoderConfig:
    """Field names and value encoders for rendered records.

    An empty ``caller_key`` or ``stacktrace_key`` leaves that information
    out (or, for stack traces, under structlog's own ``stack``/``exception``
    keys).
    """

    time_key: str = "timestamp"
    level_key: str = "level"
    message_key: str = "event"
    caller_key: str = ""
    stacktrace_key: str = ""
    time_encoder: TimeEncoder = iso8601_time_encoder
    level_encoder: LevelEncoder = lowercase_level_encoder


@dataclass
class LoggerConfig:
    """Minimum level plus encoding rules for a logger built by a sink."""

    level: Union[int, str] = logging.INFO
    encoder: EncoderConfig = field(default_factory=EncoderConfig)

    @property
    def level_number(self) -> int:
        if isinstance(self.level, int):
            return self.level
        number = logging.getLevelName(str(self.level).upper())
        return number if isinstance(number, int) else logging.INFO


def apply_clef_keys(encoder: EncoderConfig) -> EncoderConfig:
    """Switch ``encoder`` to the keys and formats Seq expects. Mutates in place."""
    encoder.time_encoder = rfc3339nano_time_encoder
    encoder.level_encoder = lowercase_level_encoder
    encoder.time_key = CLEF_TIME_KEY
    encoder.level_key = CLEF_LEVEL_KEY
    encoder.message_key = CLEF_MESSAGE_KEY
    encoder.caller_key = CALLER_KEY
    encoder.stacktrace_key = STACKTRACE_KEY
    return encoder


# =============================================================================
# Structlog Processors
# =============================================================================


def add_logger_name(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Move the name given to get_logger() from ``_name`` to ``logger``."""
    if "_name" in event_dict:
        event_dict["logger"] = event_dict.pop("_name")
    return event_dict


def add_stack_on_critical(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Request a stack trace for critical events, like panic-level logging."""
    if method_name in ("critical", "fatal"):
        event_dict.setdefault("stack_info", True)
    return event_dict


class EncodeFields:
    """Rename structlog's standard keys according to an EncoderConfig.

    Reads the config on every call, so later changes to the encoder are
    picked up by loggers that were already built.
    """

    def __init__(self, encoder: EncoderConfig) -> None:
        self._encoder = encoder

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        enc = self._encoder
        level = str(event_dict.pop("level", method_name))
        encoded: dict[str, Any] = {
            enc.time_key: enc.time_encoder(time.time_ns()),
            enc.level_key: enc.level_encoder(level),
            enc.message_key: event_dict.pop("event", ""),
        }

        filename = event_dict.pop("filename", None)
        lineno = event_dict.pop("lineno", None)
        if enc.caller_key and filename:
            encoded[enc.caller_key] = f"{filename}:{lineno}"

        if enc.stacktrace_key:
            parts = [event_dict.pop(key, None) for key in ("stack", "exception")]
            trace = "\n".join(part for part in parts if part)
            if trace:
                encoded[enc.stacktrace_key] = trace

        escape = enc.message_key.startswith("@")
        for key, value in event_dict.items():
            if escape and key.startswith("@"):
                key = "@" + key
            encoded.setdefault(key, value)
        return encoded


def clef_processors(encoder: EncoderConfig) -> list[Processor]:
    """Processor chain ending in orjson-rendered bytes for a BytesLogger."""
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_logger_name,
        structlog.processors.add_log_level,
        add_stack_on_critical,
    ]
    if encoder.caller_key:
        processors.append(
            structlog.processors.CallsiteParameterAdder(
                parameters={CallsiteParameter.FILENAME, CallsiteParameter.LINENO},
                additional_ignores=["logging", "seqsink.interceptors"],
            )
        )
    processors.extend(
        [
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            EncodeFields(encoder),
            structlog.processors.JSONRenderer(serializer=orjson.dumps),
        ]
    )
    return processors
