import threading
import typing as t

import httpx
import pytest
import structlog

from seqsink import shutdown_logging


class RecordingHandler:
    """httpx.MockTransport handler standing in for a Seq server."""

    def __init__(
        self,
        status_code: int = 201,
        body: bytes = b"",
        error: Exception | None = None,
        stream: httpx.SyncByteStream | None = None,
    ):
        self.status_code = status_code
        self.body = body
        self.error = error
        self.stream = stream
        self.release = threading.Event()
        self.release.set()
        self.requests: list[httpx.Request] = []
        self._lock = threading.Lock()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.release.wait(timeout=5)
        with self._lock:
            self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.stream is not None:
            return httpx.Response(self.status_code, stream=self.stream)
        return httpx.Response(self.status_code, content=self.body)


@pytest.fixture
def make_client() -> t.Iterator[t.Callable[..., t.Tuple[httpx.Client, RecordingHandler]]]:
    clients: list[httpx.Client] = []

    def _make(**kwargs: t.Any) -> t.Tuple[httpx.Client, RecordingHandler]:
        handler = RecordingHandler(**kwargs)
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client, handler

    yield _make
    for client in clients:
        client.close()


@pytest.fixture(autouse=True)
def reset_logging() -> t.Iterator[None]:
    yield
    shutdown_logging()
    structlog.reset_defaults()
