"""Shared fixtures: an HTTP server that honours open-ended Range requests."""

import pytest
import requests
from werkzeug import Request, Response

LAST_MODIFIED = "Wed, 21 Oct 2015 07:28:00 GMT"


def make_range_handler(
    data: bytes,
    *,
    last_modified: str | None = LAST_MODIFIED,
    honour_range: bool = True,
    chunked: bool = False,
    total_on_416: bool = True,
):
    """Build a werkzeug handler serving `data` with HEAD and `Range: bytes=N-` support.

    With `chunked`, GET bodies are streamed from a generator, so the reply
    has neither Content-Length nor Content-Range.
    """

    def body(start: int):
        if chunked:
            return (data[i:i + 64] for i in range(start, len(data), 64))
        return data[start:]

    def handler(request: Request) -> Response:
        headers = {"Accept-Ranges": "bytes" if honour_range else "none"}
        if last_modified:
            headers["Last-Modified"] = last_modified

        if request.method == "HEAD":
            headers["Content-Length"] = str(len(data))
            return Response(status=200, headers=headers)

        range_header = request.headers.get("Range")
        if range_header and honour_range:
            start = int(range_header.replace("bytes=", "").split("-")[0])
            if start >= len(data):
                unsatisfied = {"Content-Range": f"bytes */{len(data)}"} if total_on_416 else {}
                return Response(status=416, headers=unsatisfied)
            if not chunked:
                headers["Content-Range"] = f"bytes {start}-{len(data) - 1}/{len(data)}"
            return Response(body(start), status=206, headers=headers)

        return Response(body(0), status=200, headers=headers)

    return handler


class FlakySession(requests.Session):
    """requests.Session whose GETs raise ConnectionError on the given call numbers (1-based)."""

    def __init__(self, fail_on=()):
        super().__init__()
        self.fail_on = set(fail_on)
        self.calls = 0

    def get(self, url, **kwargs):
        self.calls += 1
        if self.calls in self.fail_on:
            raise requests.ConnectionError(f"simulated failure {self.calls}")
        return super().get(url, **kwargs)


class RecordingSession(requests.Session):
    """requests.Session that remembers every GET response and whether it was closed."""

    def __init__(self):
        super().__init__()
        self.responses = []
        self.closed_ids = set()

    def get(self, url, **kwargs):
        response = super().get(url, **kwargs)
        original_close = response.close

        def close():
            self.closed_ids.add(id(response))
            original_close()

        response.close = close
        self.responses.append(response)
        return response

    def all_closed(self) -> bool:
        return all(id(r) in self.closed_ids for r in self.responses)


@pytest.fixture
def payload() -> bytes:
    """10 KiB of non-repeating-per-offset test content."""
    return bytes((i * 7 + i // 256) % 256 for i in range(10 * 1024))


@pytest.fixture
def serve_object(httpserver):
    """Register `data` at `path` on the test server and return its URL."""

    def _serve(path: str, data: bytes, **handler_options) -> str:
        httpserver.expect_request(path).respond_with_handler(make_range_handler(data, **handler_options))
        return httpserver.url_for(path)

    return _serve


@pytest.fixture
def flaky_session():
    """Factory for FlakySession instances."""
    sessions = []

    def _make(fail_on=()):
        session = FlakySession(fail_on)
        sessions.append(session)
        return session

    yield _make
    for session in sessions:
        session.close()


@pytest.fixture
def recording_session():
    session = RecordingSession()
    yield session
    session.close()
