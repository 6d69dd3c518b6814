"""
Process-wide logging configuration backed by a single LogInjector.
"""

from __future__ import annotations

import atexit
from typing import Any, Optional

import httpx
import structlog

from .config import SeqSettings
from .encoding import LoggerConfig, clef_processors
from .injector import LogInjector
from .interceptors import intercept_stdlib, release_stdlib

# =============================================================================
# Global State
# =============================================================================

_injector: Optional[LogInjector] = None
_atexit_registered = False


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger instance bound to ``name``."""
    return structlog.get_logger(_name=name or "root")


def get_injector() -> Optional[LogInjector]:
    """The injector installed by configure_logging(), if any."""
    return _injector


# =============================================================================
# Configuration Logic
# =============================================================================


def configure_logging(settings: SeqSettings | None = None, *, client: httpx.Client | None = None) -> LogInjector:
    """
    Route all structlog output (and optionally stdlib logging) to Seq.

    Args:
        settings: Seq settings; read from ``SEQ_*`` environment variables when omitted.
        client: Optional httpx client handed to the LogInjector.

    Returns:
        The installed LogInjector, for callers that want to ``wait()`` on it.

    Raises:
        ConfigurationError: If ``settings.url`` is not a usable Seq URL.
    """
    global _injector, _atexit_registered

    settings = settings or SeqSettings()
    injector = LogInjector(settings.url, settings.api_key, timeout=settings.timeout, client=client)

    # Drain whatever the previous injector still has in flight
    shutdown_logging()

    config = LoggerConfig(level=settings.level.value)
    # build() applies the CLEF keys and sets up the stderr fallback logger
    injector.build(config)

    structlog.configure(
        processors=clef_processors(config.encoder),
        wrapper_class=structlog.make_filtering_bound_logger(config.level_number),
        context_class=dict,
        logger_factory=structlog.BytesLoggerFactory(file=injector),
        cache_logger_on_first_use=False,
    )

    if settings.intercept_stdlib:
        intercept_stdlib(config.level_number)

    if not _atexit_registered:
        atexit.register(shutdown_logging)
        _atexit_registered = True

    _injector = injector
    return injector


def shutdown_logging() -> None:
    """Wait for pending deliveries, close the active injector and restore structlog defaults."""
    global _injector

    release_stdlib()
    if _injector is not None:
        injector, _injector = _injector, None
        structlog.reset_defaults()
        injector.close()
