"""Seekable read-only stream over HTTP range requests.

The transport only streams forward from the offset a request was opened at,
so a seek to any other offset drops the current connection and opens a new
ranged GET at the target. Seeking to the current offset costs nothing.
"""

import enum
import io
import logging
from typing import Optional, Union

from ..core.model import IllegalStateError, RemoteObjectRef
from .base import DEFAULT_CHUNK_SIZE, Connection, Connector
from .connector import RetryingConnector


logger = logging.getLogger(__name__)


class StreamState(enum.Enum):
    CLOSED = "closed"
    OPEN = "open"
    ERROR = "error"


class RangeStream:
    """Random-access reader over one remote object.

    Owns at most one live connection at a time. Not safe for concurrent use.
    """

    def __init__(
        self,
        ref: Union[RemoteObjectRef, str],
        connector: Optional[Connector] = None,
        *,
        length: Optional[int] = None,
    ):
        self.ref = ref if isinstance(ref, RemoteObjectRef) else RemoteObjectRef(ref)
        self._connector = connector if connector is not None else RetryingConnector()
        self.length = length
        self.state = StreamState.CLOSED
        self._position = 0
        self._connection: Optional[Connection] = None

    # ------------------------------------------------------------------ #
    def _connect(self, offset: int) -> Optional[Connection]:
        """Open a connection at `offset`; None when offset is at or past the known end."""
        if self.length is not None and offset >= self.length:
            logger.debug("%s: offset %d is at end of object, not connecting", self.ref, offset)
            return None
        connection = self._connector.open(self.ref, offset)
        if self.length is None and connection.total_length is not None:
            self.length = connection.total_length
        return connection

    def _release(self) -> None:
        connection, self._connection = self._connection, None
        if connection is not None:
            connection.close()

    def _require_open(self) -> None:
        if self.state is StreamState.CLOSED:
            raise IllegalStateError("stream not initialized")
        if self.state is StreamState.ERROR:
            raise IllegalStateError(f"stream for {self.ref} failed and must be closed")

    # ------------------------------------------------------------------ #
    def open(self) -> "RangeStream":
        if self.state is not StreamState.CLOSED:
            raise IllegalStateError(f"stream for {self.ref} is already {self.state.value}")
        # stays CLOSED if this raises
        self._connection = self._connect(0)
        self._position = 0
        self.state = StreamState.OPEN
        return self

    def readinto(self, buffer) -> int:
        """Read up to len(buffer) bytes; return the count, 0 at end of object."""
        self._require_open()
        view = memoryview(buffer).cast("B")
        if self.length is not None:
            view = view[: max(self.length - self._position, 0)]
        if not len(view) or self._connection is None:
            return 0

        n = self._connection.readinto(view)
        if n > 0:
            self._position += n
        return n

    def read(self, size: int = -1) -> bytes:
        """Read up to `size` bytes, or to end of object when `size` is negative."""
        if size is None or size < 0:
            chunks = []
            while True:
                chunk = self.read(DEFAULT_CHUNK_SIZE)
                if not chunk:
                    return b"".join(chunks)
                chunks.append(chunk)

        buf = bytearray(size)
        n = self.readinto(buf)
        return bytes(buf[:n])

    def read_byte(self) -> int:
        """Read exactly one byte and return it as an int in 0..255."""
        buf = bytearray(1)
        if self.readinto(buf) != 1:
            raise IOError("Failed to read http stream")
        return buf[0]

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        self._require_open()
        if whence == io.SEEK_SET:
            target = offset
        elif whence == io.SEEK_CUR:
            target = self._position + offset
        elif whence == io.SEEK_END:
            if self.length is None:
                raise IOError(f"Length of {self.ref} is unknown, cannot seek from end")
            target = self.length + offset
        else:
            raise ValueError(f"invalid whence ({whence!r})")

        if target < 0:
            raise IOError("Seek offset cannot be negative")
        if target == self._position:
            return self._position

        logger.debug("%s: seek %d -> %d", self.ref, self._position, target)
        self._release()
        self._position = target
        try:
            self._connection = self._connect(target)
        except Exception:
            self.state = StreamState.ERROR
            raise
        return self._position

    def tell(self) -> int:
        self._require_open()
        return self._position

    position = tell

    def seek_to_new_source(self, target: int) -> bool:
        """There are no replicas to fail over to; always False."""
        if self.state is StreamState.CLOSED:
            raise IllegalStateError("stream not initialized")
        return False

    def close(self) -> None:
        self._release()
        self.state = StreamState.CLOSED

    # ------------------------------------------------------------------ #
    @property
    def closed(self) -> bool:
        return self.state is StreamState.CLOSED

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def __enter__(self):
        if self.state is StreamState.CLOSED:
            self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def open_range_stream(
    url: Union[RemoteObjectRef, str],
    connector: Optional[Connector] = None,
    *,
    length: Optional[int] = None,
) -> RangeStream:
    """Create and open a RangeStream positioned at offset 0."""
    return RangeStream(url, connector, length=length).open()
