from __future__ import annotations

import logging
from contextlib import aclosing
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Dict, Iterable, List, Optional, Set, Tuple

import anyio
import orjson

from openship_discovery.errors import ArtifactAccessError

logger = logging.getLogger(__name__)

KEY_SEPARATOR = "::"
MISSING_KEY_PART = "undefined"

Record = Dict[str, Any]
KeyFn = Callable[[Record], str]
ErrorHook = Callable[[Dict[str, Any]], None]


def graph_key(record: Record) -> str:
    """Composite identity key `s::o` of a graph record."""
    return _key_part(record, "s") + KEY_SEPARATOR + _key_part(record, "o")


def _key_part(record: Record, field: str) -> str:
    if field not in record:
        return MISSING_KEY_PART
    v = record[field]
    if isinstance(v, str):
        return v
    return orjson.dumps(v).decode("utf-8")


async def iter_lines(path: str | Path) -> AsyncIterator[Tuple[int, bytes]]:
    """
    Yield (line_no, raw_line) from a file, one line per resumption.

    LF, CRLF and bare CR all end a line. Undecodable bytes are kept as-is
    (surrogateescape) so orjson reports them per line. Open/read failures raise
    ArtifactAccessError; the handle is closed on every exit path.
    """
    try:
        async with await anyio.open_file(
            path, "r", encoding="utf-8", errors="surrogateescape", newline=None
        ) as f:
            lineno = 0
            async for text in f:
                lineno += 1
                if text.endswith("\n"):
                    text = text[:-1]
                yield lineno, text.encode("utf-8", errors="surrogateescape")
    except OSError as e:
        raise ArtifactAccessError(path, f"{type(e).__name__}: {e}") from e


async def read_deduplicated(
    path: str | Path,
    *,
    key: KeyFn = graph_key,
    on_error: Optional[ErrorHook] = None,
) -> List[Record]:
    """
    Stream an NDJSON artifact and return its records deduplicated by key.

    - blank lines are skipped silently
    - a line that is not a JSON object is logged, passed to on_error, and dropped
    - the first record seen for a key wins; later duplicates are dropped silently
    - ArtifactAccessError propagates; no partial result is returned
    """
    seen: Set[str] = set()
    records: List[Record] = []

    async with aclosing(iter_lines(path)) as lines:
        async for lineno, line in lines:
            if _is_blank(line):
                continue
            try:
                obj = orjson.loads(line)
                if not isinstance(obj, dict):
                    raise ValueError("graph line must be a JSON object")
            except ValueError as e:
                _report_line_error(path, lineno, line, e, on_error)
                continue

            k = key(obj)
            if k in seen:
                continue
            seen.add(k)
            records.append(obj)

    return records


def _is_blank(line: bytes) -> bool:
    # unicode whitespace and BOM count as blank
    return not line.decode("utf-8", errors="replace").replace("\ufeff", "").strip()


def _report_line_error(
    path: str | Path,
    lineno: int,
    line: bytes,
    err: Exception,
    on_error: Optional[ErrorHook],
) -> None:
    payload = {
        "stage": "read_graph",
        "path": str(path),
        "line_no": lineno,
        "error": f"{type(err).__name__}: {err}",
        "line": line.decode("utf-8", errors="replace"),
    }
    logger.warning(
        "skipping malformed line %d in %s (%s): %r",
        lineno,
        payload["path"],
        payload["error"],
        payload["line"],
        extra={"diagnostic": payload},
    )
    if on_error is not None:
        on_error(payload)


def dumps_jsonl(records: Iterable[Record]) -> bytes:
    return b"".join(orjson.dumps(r) + b"\n" for r in records)
