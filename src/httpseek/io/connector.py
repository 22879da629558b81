"""Ranged HTTP connections with a bounded retry budget, using requests."""

import logging
from typing import Optional

import requests

from ..core.model import NotFoundError, RangeNotSupportedError, RemoteObjectRef
from ..core.util import parse_content_length, parse_content_range
from .base import RETRY_ATTEMPTS


logger = logging.getLogger(__name__)

# Module-level session for connection pooling
_session = None

ABSENT_STATUSES = (404, 410)
RANGE_NOT_SATISFIABLE = 416


def _get_session():
    """Get or create the global requests session."""
    global _session
    if _session is None:
        _session = requests.Session()
    return _session


def _total_length(response, start: int) -> Optional[int]:
    """Object length as announced by a GET response, if it says."""
    if response.status_code in (206, RANGE_NOT_SATISFIABLE):
        content_range = parse_content_range(response.headers.get("content-range"))
        if content_range is not None and content_range[2] is not None:
            return content_range[2]
    if response.status_code == RANGE_NOT_SATISFIABLE:
        return None
    content_length = parse_content_length(response.headers)
    if content_length is None:
        return None
    return start + content_length


class RangeConnection:
    """An open GET response whose first body byte is byte `start` of the object.

    A connection built with `response=None` sits at end of object and reads
    nothing.
    """

    def __init__(self, response: Optional[requests.Response], start: int, total_length: Optional[int] = None):
        self._response = response
        self._at_end = response is None
        self.start = start
        self.total_length = _total_length(response, start) if response is not None else total_length
        self.bytes_read = 0

    def readinto(self, buffer) -> int:
        if self._at_end:
            return 0
        if self._response is None:
            raise IOError("Connection is closed")
        n = self._response.raw.readinto(buffer)
        self.bytes_read += n
        return n

    def close(self) -> None:
        self._at_end = False
        if self._response is not None:
            self._response.close()
            self._response = None

    @property
    def closed(self) -> bool:
        return self._response is None and not self._at_end

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class RetryingConnector:
    """Open a ranged GET, retrying transport failures up to `attempts` times.

    Attempts are sequential with no delay. When the last attempt fails, its
    requests exception is raised as-is so the caller sees the real cause.
    404 and 410 raise NotFoundError at once; a 416 to a ranged request
    yields a connection that is already at end of object.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        *,
        attempts: int = RETRY_ATTEMPTS,
        timeout: Optional[float] = None,
        follow_redirects: bool = True,
    ):
        if attempts < 1:
            raise ValueError("attempts must be at least 1")
        self._session = session if session is not None else _get_session()
        self.attempts = attempts
        self.timeout = timeout
        self.follow_redirects = follow_redirects
        self.requests_made = 0
        self.connections_opened = 0

    def _request(self, ref: RemoteObjectRef, start_offset: int) -> requests.Response:
        headers = {"Accept-Encoding": "identity"}
        if start_offset > 0:
            headers["Range"] = f"bytes={start_offset}-"

        response = self._session.get(
            ref.url,
            headers=headers,
            stream=True,
            timeout=self.timeout,
            allow_redirects=self.follow_redirects,
        )
        if response.status_code in ABSENT_STATUSES:
            response.close()
            raise NotFoundError(f"could not find file: {ref.path}")
        if response.status_code == RANGE_NOT_SATISFIABLE and start_offset > 0:
            return response
        try:
            response.raise_for_status()
        except requests.HTTPError:
            response.close()
            raise
        return response

    def _check_range(self, ref: RemoteObjectRef, response: requests.Response, start_offset: int) -> None:
        if start_offset == 0:
            return
        if response.status_code != 206:
            response.close()
            raise RangeNotSupportedError(
                f"Range request for {ref.url} answered with status {response.status_code}"
            )
        content_range = parse_content_range(response.headers.get("content-range"))
        if content_range is not None and content_range[0] != start_offset:
            response.close()
            raise RangeNotSupportedError(
                f"Requested offset {start_offset} of {ref.url}, server sent {content_range[0]}"
            )

    def open(self, ref: RemoteObjectRef, start_offset: int = 0) -> RangeConnection:
        """Return a connection whose first byte is `start_offset`."""
        if start_offset < 0:
            raise IOError("Start offset cannot be negative")

        for attempt in range(1, self.attempts + 1):
            self.requests_made += 1
            logger.debug("GET %s from offset %d (attempt %d/%d)", ref.url, start_offset, attempt, self.attempts)
            try:
                response = self._request(ref, start_offset)
            except requests.RequestException as e:
                if attempt == self.attempts:
                    logger.warning("Giving up on %s after %d attempts: %s", ref.url, attempt, e)
                    raise
                logger.warning("Attempt %d/%d for %s failed: %s", attempt, self.attempts, ref.url, e)
                continue

            if response.status_code == RANGE_NOT_SATISFIABLE:
                # offset is at or past the end of the object
                total_length = _total_length(response, start_offset)
                response.close()
                logger.debug("%s: offset %d is past the end (length %s)", ref.url, start_offset, total_length)
                return RangeConnection(None, start_offset, total_length)

            self._check_range(ref, response, start_offset)
            self.connections_opened += 1
            return RangeConnection(response, start_offset)
