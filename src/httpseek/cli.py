"""CLI implementation for httpseek."""

import asyncio
import base64
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import typer

from .core.model import FileStatus
from .core.util import status_asdict
from .io import open_stream, stat, stat_async, close_global_client
from .io.base import DEFAULT_CHUNK_SIZE

app = typer.Typer(add_completion=False, help="Stat and read remote objects over HTTP range requests.")


def iter_sources(files: list[str]) -> list[str]:
    """Get list of sources from files argument or stdin."""
    if "-" in files:
        # stdin mode
        return [ln.strip() for ln in sys.stdin if ln.strip()]
    elif files:
        return list(files)
    return []


def _record(src: str, res, fields) -> Dict[str, Any]:
    """Turn an ObjectMetadata or the exception raised for `src` into a JSON record."""
    if isinstance(res, Exception):
        return {"success": False, "url": src, "error": str(res) or type(res).__name__}
    status = FileStatus(path=src, length=res.length, modification_time=res.last_modified)
    return status_asdict(status, fields=fields)


async def _batch_stat(sources: list[str]) -> list:
    """Asynchronously stat a list of sources."""
    try:
        tasks = [stat_async(src) for src in sources]
        return await asyncio.gather(*tasks, return_exceptions=True)
    finally:
        await close_global_client()


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log requests to stderr")):
    """Stat and read remote objects over HTTP range requests."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@app.command("stat")
def stat_command(
    urls: list[str] = typer.Argument(None, help="URLs to stat, or '-' for stdin"),
    fields: Optional[str] = typer.Option(None, "--fields", help="Comma-separated subset of keys to emit"),
    jsonl: bool = typer.Option(False, "--jsonl", help="Force JSON-lines output"),
    output: Optional[Path] = typer.Option(None, "-o", "--output", help="Write to PATH instead of stdout"),
    sync: bool = typer.Option(False, "--sync", help="Force synchronous I/O"),
):
    """Report length and modification time of one or many remote objects."""
    sel_fields = set(fields.split(",")) if fields else None
    sources = iter_sources(urls or [])

    if not sources:
        typer.echo("No input URLs given.", err=True)
        raise typer.Exit(code=1)

    if sync:
        raw = []
        for src in sources:
            try:
                raw.append(stat(src))
            except Exception as e:
                raw.append(e)
    else:
        raw = asyncio.run(_batch_stat(sources))

    records = [_record(src, res, sel_fields) for src, res in zip(sources, raw)]

    # open output sink
    sink = open(output, "w", encoding="utf-8") if output else sys.stdout
    try:
        if len(sources) == 1 and not jsonl:
            json.dump(records[0], sink, indent=2)
            sink.write("\n")
        else:
            for obj in records:
                sink.write(json.dumps(obj))
                sink.write("\n")
    finally:
        if output:
            sink.close()

    if any(not r["success"] for r in records):
        raise typer.Exit(code=1)


def copy_range(stream, sink, offset: int, length: Optional[int], *, b64: bool = False) -> int:
    """Write `length` bytes (or everything) from `offset` to `sink`, chunk by chunk."""
    stream.seek(offset)
    copied = 0
    pending = b""  # Base64 carry, always < 3 bytes between chunks
    remaining = length
    while remaining is None or remaining > 0:
        size = DEFAULT_CHUNK_SIZE if remaining is None else min(remaining, DEFAULT_CHUNK_SIZE)
        chunk = stream.read(size)
        if not chunk:
            break
        copied += len(chunk)
        if remaining is not None:
            remaining -= len(chunk)
        if b64:
            pending += chunk
            cut = len(pending) - len(pending) % 3
            sink.write(base64.b64encode(pending[:cut]))
            pending = pending[cut:]
        else:
            sink.write(chunk)
    if b64:
        sink.write(base64.b64encode(pending) + b"\n")
    return copied


@app.command("read")
def read_command(
    url: str = typer.Argument(..., help="URL of the object to read"),
    offset: int = typer.Option(0, "--offset", min=0, help="Start reading at this byte"),
    length: Optional[int] = typer.Option(None, "--length", min=0, help="Number of bytes to read (default: to end)"),
    b64: bool = typer.Option(False, "--base64", help="Emit Base64 text instead of raw bytes"),
    output: Optional[Path] = typer.Option(None, "-o", "--output", help="Write to PATH instead of stdout"),
):
    """Copy a byte range of a remote object to stdout or a file."""
    sink = open(output, "wb") if output else typer.get_binary_stream("stdout")
    try:
        with open_stream(url) as stream:
            copy_range(stream, sink, offset, length, b64=b64)
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    finally:
        if output:
            sink.close()
        else:
            sink.flush()


if __name__ == "__main__":
    app()
