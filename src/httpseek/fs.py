"""Read-only filesystem facade over http:// and https:// objects.

Serves block-compressed files that are read by seeking to block boundaries,
so the server must answer HEAD with Content-Length and honour Range.
"""

from __future__ import annotations
import logging
from typing import Optional
from urllib.parse import quote, urlparse

import requests

from .core.model import FileStatus, RemoteObjectRef, SUPPORTED_SCHEMES, UnsupportedOperationError
from .io.connector import RetryingConnector
from .io.probe import MetadataProbe
from .io.stream import RangeStream


logger = logging.getLogger(__name__)


class HttpFileSystem:
    """Stat and open objects below one scheme://authority root."""

    def __init__(
        self,
        uri: str,
        *,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        follow_redirects: bool = True,
    ):
        parsed = urlparse(uri)
        if parsed.scheme.lower() not in SUPPORTED_SCHEMES:
            raise ValueError(f"Unsupported URL scheme: {uri!r}")
        self.scheme = parsed.scheme.lower()
        self.authority = parsed.netloc
        self._session = session
        self._timeout = timeout
        self._follow_redirects = follow_redirects
        self._probe = MetadataProbe(session, timeout=timeout, follow_redirects=follow_redirects)

    @property
    def uri(self) -> str:
        return f"{self.scheme}://{self.authority}"

    @property
    def working_directory(self) -> str:
        return f"{self.uri}/"

    def set_working_directory(self, path: str) -> None:
        pass

    def make_url(self, path: str) -> RemoteObjectRef:
        """Qualify `path` against this filesystem's scheme and authority."""
        path = str(path)
        if "://" in path:
            if not path.lower().startswith(f"{self.scheme}://"):
                raise ValueError(f"Wrong filesystem for {path!r}, expected {self.uri}")
            return RemoteObjectRef(path)
        if not path.startswith("/"):
            path = "/" + path
        return RemoteObjectRef(f"{self.uri}{quote(path)}")

    # --- read side ---
    def stat(self, path: str) -> FileStatus:
        ref = self.make_url(path)
        meta = self._probe.stat(ref)
        return FileStatus(path=ref.url, length=meta.length, modification_time=meta.last_modified)

    get_file_status = stat

    def exists(self, path: str) -> bool:
        return self._probe.exists(self.make_url(path))

    def list_status(self, path: str) -> list[FileStatus]:
        return [self.stat(path)]

    def glob_status(self, pattern: str) -> list[FileStatus]:
        # no directory listing over plain HTTP: the pattern names one object
        return [self.stat(pattern)]

    def open(self, path: str, *, length: Optional[int] = None) -> RangeStream:
        ref = self.make_url(path)
        connector = RetryingConnector(
            self._session, timeout=self._timeout, follow_redirects=self._follow_redirects
        )
        logger.debug("Opening %s", ref)
        return RangeStream(ref, connector, length=length).open()

    # --- unsupported, read-only ---
    def _unsupported(self, operation: str):
        return UnsupportedOperationError(f"{operation} not supported on read-only filesystem {self.scheme}://")

    def create(self, path: str, *args, **kwargs):
        raise self._unsupported("create")

    def rename(self, src: str, dst: str):
        raise self._unsupported("rename")

    def delete(self, path: str, recursive: bool = False):
        raise self._unsupported("delete")

    def mkdirs(self, path: str, *args, **kwargs):
        raise self._unsupported("mkdirs")

    def append(self, path: str, *args, **kwargs):
        raise self._unsupported("append")
