"""Asynchronous metadata probe using httpx, for stat'ing many objects at once."""

import logging
from typing import Optional

import httpx

from ..core.model import ObjectMetadata, RemoteObjectRef
from .probe import metadata_from_head


logger = logging.getLogger(__name__)

# Global async client
_client: Optional[httpx.AsyncClient] = None


def _get_client() -> httpx.AsyncClient:
    """Get or create the global httpx AsyncClient."""
    global _client
    if _client is None:
        _client = httpx.AsyncClient()
    return _client


class AsyncMetadataProbe:
    """HEAD-based metadata probe with the same status policy as MetadataProbe.

    `timeout` applies to every request, as for MetadataProbe: None means no
    timeout, whatever the client's own default is.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        *,
        timeout: Optional[float] = None,
        follow_redirects: bool = True,
    ):
        self._client = client
        self.timeout = timeout
        self.follow_redirects = follow_redirects
        self.requests_made = 0

    async def _head(self, ref: RemoteObjectRef) -> httpx.Response:
        self.requests_made += 1
        logger.debug("HEAD %s", ref.url)
        client = self._client if self._client is not None else _get_client()
        return await client.head(ref.url, timeout=self.timeout, follow_redirects=self.follow_redirects)

    async def stat(self, ref: RemoteObjectRef) -> ObjectMetadata:
        response = await self._head(ref)
        return metadata_from_head(ref, response.status_code, response.headers)

    async def exists(self, ref: RemoteObjectRef) -> bool:
        response = await self._head(ref)
        return response.status_code == 200


async def close_global_client():
    """Close the global httpx client. Call this at application shutdown."""
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
