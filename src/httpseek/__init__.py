"""httpseek - seekable, read-only byte streams over HTTP range requests."""

from .core.model import (                                             # re-export
    RemoteObjectRef, ObjectMetadata, FileStatus,
    NotFoundError, ProtocolError, RangeNotSupportedError,
    UnsupportedOperationError, IllegalStateError, TransientIOError,
)
from .io import (
    open_stream, stat, stat_async,
    RangeStream, StreamState, RetryingConnector, MetadataProbe, AsyncMetadataProbe,
)
from .fs import HttpFileSystem


__all__ = [
    "open_stream", "stat", "stat_async",
    "RangeStream", "StreamState", "RetryingConnector", "MetadataProbe", "AsyncMetadataProbe",
    "HttpFileSystem",
    "RemoteObjectRef", "ObjectMetadata", "FileStatus",
    "NotFoundError", "ProtocolError", "RangeNotSupportedError",
    "UnsupportedOperationError", "IllegalStateError", "TransientIOError",
]
