"""
LogInjector: a structlog byte sink that ships every record to Seq.

Each write is accepted immediately and delivered by its own thread. Delivery
failures never reach the writer; they are reported on stderr through a
fallback logger that does not use the network.
"""

from __future__ import annotations

import sys
import threading
import time
from typing import Any, Optional
from urllib.parse import urlsplit

import httpx
import orjson
import structlog

from .encoding import LoggerConfig, apply_clef_keys, clef_processors
from .exceptions import ConfigurationError, DeliveryRejectedError, ResponseReadError, TransportError
from .formatters import ConsoleRenderer
from .sinks import BaseSink, Payload

DEFAULT_PORT = 5341
INGEST_PATH = "/api/events/raw"
CLEF_CONTENT_TYPE = "application/vnd.serilog.clef"
API_KEY_HEADER = "X-Seq-ApiKey"


class PendingCounter:
    """Count of deliveries started but not finished."""

    def __init__(self) -> None:
        self._count = 0
        self._cond = threading.Condition()

    @property
    def value(self) -> int:
        with self._cond:
            return self._count

    def add(self) -> None:
        with self._cond:
            self._count += 1

    def done(self) -> None:
        with self._cond:
            if self._count <= 0:
                raise RuntimeError("PendingCounter.done() called more times than add()")
            self._count -= 1
            if self._count == 0:
                self._cond.notify_all()

    def wait(self) -> None:
        with self._cond:
            self._cond.wait_for(lambda: self._count == 0)


def resolve_endpoint(url: str) -> str:
    """Reduce a Seq URL to ``scheme://host:port``, defaulting the port to 5341."""
    try:
        parts = urlsplit(url)
        hostname = parts.hostname
        port = parts.port
    except ValueError as exc:
        raise ConfigurationError(url=url, reason=str(exc)) from exc

    if not hostname:
        raise ConfigurationError(url=url, reason="invalid hostname")

    if ":" in hostname:
        hostname = f"[{hostname}]"
    return f"{parts.scheme}://{hostname}:{port or DEFAULT_PORT}"


def _fallback_logger(level: int) -> Any:
    return structlog.wrap_logger(
        structlog.PrintLogger(file=sys.stderr),
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            ConsoleRenderer(sys.stderr),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
    ).bind(logger="seqsink")


def _extract_error(content: bytes) -> str:
    """``Error`` field of a Seq error body, or an empty string."""
    try:
        body = orjson.loads(content)
    except orjson.JSONDecodeError:
        return ""
    if not isinstance(body, dict):
        return ""
    value = body.get("Error")
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value)


class LogInjector(BaseSink):
    """Asynchronous, best-effort Seq sink.

    Args:
        url: Seq server URL. Only scheme, host and port are kept.
        token: Seq API key; surrounding whitespace is ignored and an empty
            value sends no ``X-Seq-ApiKey`` header.
        timeout: Per-request timeout in seconds (None disables it).
        client: Optional pre-built httpx.Client. The injector does not
            close clients it did not create.

    Raises:
        ConfigurationError: If ``url`` cannot be parsed or has no hostname.
    """

    def __init__(
        self,
        url: str,
        token: str = "",
        *,
        timeout: Optional[float] = 10.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.endpoint = resolve_endpoint(url)
        self.token = token.strip()
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(timeout=timeout)
        self._pending = PendingCounter()
        self._fallback = _fallback_logger(LoggerConfig().level_number)
        self._closed = False

    @property
    def pending(self) -> int:
        return self._pending.value

    @property
    def ingest_url(self) -> str:
        return self.endpoint + INGEST_PATH

    def headers(self) -> dict[str, str]:
        headers = {"Content-Type": CLEF_CONTENT_TYPE}
        if self.token:
            headers[API_KEY_HEADER] = self.token
        return headers

    # -------------------------------------------------------------------------
    # Sink wiring
    # -------------------------------------------------------------------------

    def build(self, config: Optional[LoggerConfig] = None) -> Any:
        """Return a structlog logger that writes CLEF records into this sink.

        ``config.encoder`` is switched to CLEF keys in place; pass a copy if
        the original is still needed. A stderr console logger at the same
        level becomes the target for delivery failure reports.
        """
        config = config if config is not None else LoggerConfig()
        level = config.level_number

        self._fallback = _fallback_logger(level)

        apply_clef_keys(config.encoder)
        return structlog.wrap_logger(
            structlog.BytesLogger(file=self),
            processors=clef_processors(config.encoder),
            wrapper_class=structlog.make_filtering_bound_logger(level),
        )

    # -------------------------------------------------------------------------
    # Byte sink
    # -------------------------------------------------------------------------

    def write(self, data: Payload) -> int:
        """Schedule delivery of one record and report it as fully written.

        The outcome of the delivery is never reported here.
        """
        self._pending.add()
        payload = data.encode("utf-8") if isinstance(data, str) else bytes(data)

        try:
            threading.Thread(
                target=self._deliver,
                args=(payload,),
                name="seqsink-delivery",
                daemon=True,
            ).start()
        except RuntimeError:
            self._pending.done()
            raise

        return len(data) if isinstance(data, str) else len(payload)

    def _deliver(self, payload: bytes) -> None:
        try:
            self._post(payload)
        except TransportError as exc:
            self._fallback.error("Failed sending event to Seq", endpoint=self.endpoint, error=exc.details["reason"])
        except ResponseReadError as exc:
            self._fallback.error("Failed reading Seq response", status_code=exc.status_code, error=exc.details["reason"])
        except DeliveryRejectedError as exc:
            self._fallback.error("Seq rejected event", status_code=exc.status_code, message=exc.message)
        finally:
            self._pending.done()

    def _post(self, payload: bytes) -> None:
        """Send one event. Raises a DeliveryError subclass on failure."""
        if self._client.is_closed:
            raise TransportError(endpoint=self.endpoint, reason="HTTP client is closed")
        try:
            with self._client.stream("POST", self.ingest_url, content=payload, headers=self.headers()) as response:
                # Seq answers 201 Created for accepted events
                if response.status_code == httpx.codes.CREATED:
                    return
                try:
                    content = response.read()
                except httpx.HTTPError as exc:
                    raise ResponseReadError(status_code=response.status_code, reason=str(exc)) from exc
        except httpx.HTTPError as exc:
            raise TransportError(endpoint=self.endpoint, reason=str(exc) or type(exc).__name__) from exc
        except RuntimeError as exc:
            # httpx raises RuntimeError when close() wins the race with a send
            raise TransportError(endpoint=self.endpoint, reason=str(exc)) from exc

        raise DeliveryRejectedError(status_code=response.status_code, message=_extract_error(content))

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def wait(self) -> None:
        """Block until every scheduled delivery has finished."""
        # Let freshly started delivery threads get scheduled first
        time.sleep(0)
        self._pending.wait()

    drain = wait

    def close(self) -> None:
        """Drain outstanding deliveries, then close the HTTP client if owned."""
        self.wait()
        if self._closed:
            return
        self._closed = True
        if self._owns_client:
            self._client.close()
