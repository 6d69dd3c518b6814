"""
Seq sink for structlog.

Ships every log record as one CLEF event to a Seq server:
- LogInjector: byte sink with fire-and-forget HTTP delivery and a drain (wait)
- configure_logging: process-wide wiring driven by SEQ_* settings

Design Pattern: Strategy Pattern for sink abstraction.
Library: structlog + orjson for rendering, httpx for delivery.
"""

from .config import LogLevel, SeqSettings
from .core import configure_logging, get_injector, get_logger, shutdown_logging
from .encoding import (
    EncoderConfig,
    LoggerConfig,
    iso8601_time_encoder,
    lowercase_level_encoder,
    rfc3339nano_time_encoder,
    uppercase_level_encoder,
)
from .exceptions import (
    ConfigurationError,
    DeliveryError,
    DeliveryRejectedError,
    ResponseReadError,
    SeqSinkError,
    TransportError,
)
from .injector import LogInjector
from .sinks import BaseSink

__all__ = [
    "BaseSink",
    "ConfigurationError",
    "DeliveryError",
    "DeliveryRejectedError",
    "EncoderConfig",
    "LogInjector",
    "LogLevel",
    "LoggerConfig",
    "ResponseReadError",
    "SeqSettings",
    "SeqSinkError",
    "TransportError",
    "configure_logging",
    "get_injector",
    "get_logger",
    "iso8601_time_encoder",
    "lowercase_level_encoder",
    "rfc3339nano_time_encoder",
    "shutdown_logging",
    "uppercase_level_encoder",
]
