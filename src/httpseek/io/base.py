"""Base protocols and shared constants for the I/O layer."""

from typing import Optional, Protocol, runtime_checkable

from ..core.model import BLOCK_SIZE, RemoteObjectRef


RETRY_ATTEMPTS = 5          # total connection attempts per open/seek
MIN_OBJECT_LENGTH = 12      # smallest valid compressed object, in bytes
DEFAULT_CHUNK_SIZE = 64 * 1024


@runtime_checkable
class Connection(Protocol):
    """An open, forward-only byte source positioned at `start`."""

    start: int
    total_length: Optional[int]

    def readinto(self, buffer) -> int:
        """Fill up to len(buffer) bytes; return the count, 0 at end of body."""
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class Connector(Protocol):
    """Protocol for objects that open ranged connections."""

    def open(self, ref: RemoteObjectRef, start_offset: int = 0) -> Connection:
        ...


__all__ = [
    "BLOCK_SIZE", "RETRY_ATTEMPTS", "MIN_OBJECT_LENGTH", "DEFAULT_CHUNK_SIZE",
    "Connection", "Connector",
]
