"""Synchronous metadata probe (HEAD) using requests."""

import logging
from typing import Mapping, Optional

import requests

from ..core.model import NotFoundError, ObjectMetadata, ProtocolError, RemoteObjectRef
from ..core.util import parse_content_length, parse_http_date
from .base import MIN_OBJECT_LENGTH
from .connector import _get_session


logger = logging.getLogger(__name__)


def metadata_from_head(ref: RemoteObjectRef, status_code: int, headers: Mapping[str, str]) -> ObjectMetadata:
    """Map a HEAD reply onto ObjectMetadata, raising for absent or undersized objects."""
    if status_code != 200:
        raise NotFoundError(f"could not find file: {ref.path}")

    length = parse_content_length(headers)
    if length is None or length < MIN_OBJECT_LENGTH:
        raise ProtocolError(
            f"{ref.path} is too small to be a valid compressed file "
            f"({length if length is not None else 'unknown'} bytes)"
        )

    return ObjectMetadata(
        length=length,
        last_modified=parse_http_date(headers.get("last-modified")),
        exists=True,
    )


class MetadataProbe:
    """Fetch length, modification time and existence of a remote object."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        *,
        timeout: Optional[float] = None,
        follow_redirects: bool = True,
    ):
        self._session = session if session is not None else _get_session()
        self.timeout = timeout
        self.follow_redirects = follow_redirects
        self.requests_made = 0

    def _head(self, ref: RemoteObjectRef) -> requests.Response:
        self.requests_made += 1
        logger.debug("HEAD %s", ref.url)
        response = self._session.head(ref.url, timeout=self.timeout, allow_redirects=self.follow_redirects)
        response.close()
        return response

    def stat(self, ref: RemoteObjectRef) -> ObjectMetadata:
        response = self._head(ref)
        return metadata_from_head(ref, response.status_code, response.headers)

    def exists(self, ref: RemoteObjectRef) -> bool:
        return self._head(ref).status_code == 200
