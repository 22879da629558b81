from __future__ import annotations
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, Iterable, Mapping

from .model import FileStatus

_CONTENT_RANGE_RE = re.compile(r"^\s*bytes\s+(?:(\d+)-(\d+)|\*)/(\d+|\*)\s*$", re.IGNORECASE)


def parse_http_date(value: str | None, default: datetime | None = None) -> datetime:
    """Parse an RFC 7231 date header; fall back to `default` (or now, UTC)."""
    if value:
        try:
            parsed = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            parsed = None
        if parsed is not None:
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed
    return default if default is not None else datetime.now(timezone.utc)


def parse_content_length(headers: Mapping[str, str]) -> int | None:
    value = headers.get("content-length")
    if value is None:
        return None
    try:
        length = int(value)
    except ValueError:
        return None
    return length if length >= 0 else None


def parse_content_range(value: str | None) -> tuple[int | None, int | None, int | None] | None:
    """Return (first, last, total) from a `Content-Range` header.

    `total` is None for `*`; `first` and `last` are None for the
    unsatisfied-range form `bytes */N` sent with a 416.
    """
    if not value:
        return None
    m = _CONTENT_RANGE_RE.match(value)
    if m is None:
        return None
    total = None if m.group(3) == "*" else int(m.group(3))
    if m.group(1) is None:
        return None, None, total
    return int(m.group(1)), int(m.group(2)), total


def status_asdict(status: FileStatus, *, fields: Iterable[str] | None = None) -> Dict[str, Any]:
    """Return a JSON-serialisable dict of a FileStatus, optionally filtered."""
    payload = {
        "path": status.path,
        "length": status.length,
        "modification_time": status.modification_time.isoformat(),
        "is_directory": status.is_directory,
        "replication": status.replication,
        "block_size": status.block_size,
    }
    if fields:
        wanted = set(fields)
        payload = {k: v for k, v in payload.items() if k in wanted}
    payload["success"] = True
    return payload
