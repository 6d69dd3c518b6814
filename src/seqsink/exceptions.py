"""
Exception hierarchy for the Seq sink.

Two families:
- Configuration errors are raised synchronously while building a LogInjector.
- Delivery errors are raised and handled inside delivery threads; they are
  reported through the fallback logger and never reach the writer.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class SeqSinkError(Exception):
    """Root of all seqsink exceptions."""

    def __init__(
        self,
        message: str,
        *,
        code: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details or {}


# ================================
# Configuration Error
# ================================


class ConfigurationError(SeqSinkError, ValueError):
    """The Seq URL could not be parsed or has no hostname."""

    def __init__(self, *, url: str, reason: str) -> None:
        message = f"Invalid Seq URL {url!r}: {reason}"
        super().__init__(message, code="CONFIGURATION_ERROR", details={"url": url, "reason": reason})


# ================================
# Delivery Errors
# ================================


class DeliveryError(SeqSinkError):
    """Base class for failures while shipping one event to Seq."""

    pass


class TransportError(DeliveryError):
    """The request could not be sent or no response was received."""

    def __init__(self, *, endpoint: str, reason: str) -> None:
        message = f"Failed sending event to {endpoint}: {reason}"
        super().__init__(message, code="TRANSPORT_ERROR", details={"endpoint": endpoint, "reason": reason})


class DeliveryRejectedError(DeliveryError):
    """Seq answered with something other than 201 Created."""

    def __init__(self, *, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(
            f"Seq rejected event with status {status_code}: {message}",
            code="DELIVERY_REJECTED",
            details={"status_code": status_code, "message": message},
        )


class ResponseReadError(DeliveryError):
    """The body of a rejection response could not be read."""

    def __init__(self, *, status_code: int, reason: str) -> None:
        self.status_code = status_code
        super().__init__(
            f"Failed reading Seq response (status {status_code}): {reason}",
            code="RESPONSE_READ_ERROR",
            details={"status_code": status_code, "reason": reason},
        )
