"""
Byte sink abstraction.

structlog's BytesLogger only needs a file-like object with ``write`` and
``flush``. Anything implementing BaseSink can be handed to it as that file,
which keeps the logging pipeline independent from where records end up.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Union

Payload = Union[bytes, bytearray, memoryview, str]


class BaseSink(ABC):
    """Abstract base class for byte sinks."""

    @abstractmethod
    def write(self, data: Payload) -> int:
        """Accept one encoded record and return the number of bytes taken."""
        ...

    def flush(self) -> None:
        """Flush buffered output. Sinks that never buffer keep this no-op."""

    @abstractmethod
    def close(self) -> None:
        """Close the sink and release resources."""
        ...

    def __enter__(self) -> "BaseSink":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
