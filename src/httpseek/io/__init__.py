"""I/O layer for httpseek - ranged connections, metadata probes and seekable streams."""

# Re-export these for import convenience
from .base import Connection, Connector, RETRY_ATTEMPTS, MIN_OBJECT_LENGTH, BLOCK_SIZE
from .connector import RangeConnection, RetryingConnector
from .probe import MetadataProbe
from .probe_async import AsyncMetadataProbe, close_global_client
from .stream import RangeStream, StreamState, open_range_stream


def _as_ref(source):
    from ..core.model import RemoteObjectRef

    return source if isinstance(source, RemoteObjectRef) else RemoteObjectRef(str(source))


def open_stream(source, *, length=None, **connector_options):
    """Open a RangeStream on a URL; options go to RetryingConnector."""
    return open_range_stream(_as_ref(source), RetryingConnector(**connector_options), length=length)


def stat(source, **probe_options):
    """Probe a URL and return its ObjectMetadata."""
    return MetadataProbe(**probe_options).stat(_as_ref(source))


async def stat_async(source, **probe_options):
    """Asynchronously probe a URL and return its ObjectMetadata."""
    return await AsyncMetadataProbe(**probe_options).stat(_as_ref(source))
