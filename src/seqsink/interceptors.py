"""
Bridge from the standard library logging module to the Seq pipeline.
"""

import logging

import structlog

# Records from these loggers are produced while delivering to Seq; forwarding
# them would schedule more deliveries for every delivery.
_IGNORED_PREFIXES = ("httpx", "httpcore", "seqsink")


class RedirectStdLibHandler(logging.Handler):
    """Redirect standard library logging events to structlog."""

    _seqsink_managed = True

    def emit(self, record: logging.LogRecord) -> None:
        if record.name.startswith(_IGNORED_PREFIXES):
            return
        try:
            # Format message using stdlib's formatting (handles %s args)
            msg = record.getMessage()
            logger = structlog.get_logger(_name=record.name or "stdlib")
            if record.exc_info:
                logger.log(record.levelno, msg, exc_info=record.exc_info)
            else:
                logger.log(record.levelno, msg)
        except Exception:
            self.handleError(record)


def intercept_stdlib(level: int = logging.INFO) -> RedirectStdLibHandler:
    """Install the redirect handler on the root logger.

    Only handlers installed by a previous call are replaced; anything else
    attached to the root logger (pytest's caplog, monitoring agents) stays.
    """
    root_logger = logging.getLogger()
    release_stdlib()
    handler = RedirectStdLibHandler(level)
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    return handler


def release_stdlib() -> None:
    """Remove redirect handlers installed by intercept_stdlib()."""
    root_logger = logging.getLogger()
    root_logger.handlers = [h for h in root_logger.handlers if not getattr(h, "_seqsink_managed", False)]
