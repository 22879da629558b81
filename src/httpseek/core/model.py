from __future__ import annotations
import io
from dataclasses import dataclass
from datetime import datetime
from urllib.parse import urlparse

import requests

SUPPORTED_SCHEMES = ("http", "https")
BLOCK_SIZE = 4 * 1024 * 1024          # 4 MiB, block granularity of the remote objects


@dataclass(frozen=True, slots=True)
class RemoteObjectRef:
    """A single remote object identified by its URL."""
    url: str

    def __post_init__(self) -> None:
        if self.scheme not in SUPPORTED_SCHEMES:
            raise ValueError(f"Unsupported URL scheme: {self.url!r}")
        if not self.authority:
            raise ValueError(f"URL has no host: {self.url!r}")

    @property
    def scheme(self) -> str:
        return urlparse(self.url).scheme.lower()

    @property
    def authority(self) -> str:
        return urlparse(self.url).netloc

    @property
    def path(self) -> str:
        return urlparse(self.url).path or "/"

    def __str__(self) -> str:
        return self.url


@dataclass(slots=True)
class ObjectMetadata:
    length: int
    last_modified: datetime
    exists: bool


@dataclass(slots=True)
class FileStatus:
    path: str
    length: int
    modification_time: datetime
    is_directory: bool = False
    replication: int = 1
    block_size: int = BLOCK_SIZE


class NotFoundError(FileNotFoundError):
    """Raised when the remote object does not answer a HEAD with 200."""
    pass


class ProtocolError(OSError):
    """Raised when the object is reachable but unusable (too small, bad range reply)."""
    pass


class RangeNotSupportedError(ProtocolError):
    """Raised when a ranged GET is answered from a different offset."""


class UnsupportedOperationError(io.UnsupportedOperation):
    """Raised by every mutating call on the read-only filesystem."""
    pass


class IllegalStateError(RuntimeError):
    """Raised when a stream is used outside the state the call requires."""
    pass


# Connection failures surface as the raw requests exception once retries run out.
TransientIOError = requests.RequestException
