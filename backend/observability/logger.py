"""
JSONL event logger.

- Write one JSON object per line
- Output to stdout
- No buffering, no batching
- No side effects beyond logging
"""

from __future__ import annotations

import json
import sys
import time
from typing import Any, Mapping, Callable


# ------------------------------------------------------------------
# Explicit output sink (patchable in tests)
# ------------------------------------------------------------------

def _stdout_print(line: str) -> None:
    sys.stdout.write(line + "\n")
    sys.stdout.flush()

_print: Callable[[str], None] = _stdout_print

# When False, events are rendered as "EVENT_TYPE key=value ..." for local dev
_json_enabled: bool = True


def configure(*, enable_json: bool) -> None:
    """Select JSONL (default) or plain key=value rendering."""
    global _json_enabled  # pylint: disable=global-statement
    _json_enabled = enable_json


def now_ms() -> int:
    """Wall-clock milliseconds for event timestamps."""
    return time.time_ns() // 1_000_000


def log_event(event: Mapping[str, Any]) -> None:
    """
    Write a single event line to stdout.

    The caller supplies a fully-formed event dict (event_type plus context
    such as cycle_id, phase, session_id). ts_ms is filled in when missing.

    This function:
    - Serializes to JSON
    - Writes exactly one line
    - Flushes immediately (no buffering)
    - Never raises
    """
    payload: dict[str, Any] = dict(event)
    payload.setdefault("ts_ms", now_ms())

    if not _json_enabled:
        _print(_render_plain(payload))
        return

    try:
        line = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        # Last-resort fallback, logging must never crash the engine
        fallback: dict[str, Any] = {
            "ts_ms": payload.get("ts_ms"),
            "event_type": "LOGGER_SERIALIZATION_ERROR",
            "error": str(e),
            "original_event_repr": repr(event),
        }
        line = json.dumps(fallback, ensure_ascii=False, separators=(",", ":"))

    _print(line)


def _render_plain(payload: Mapping[str, Any]) -> str:
    head = str(payload.get("event_type", "EVENT"))
    rest = " ".join(
        f"{k}={v!r}" for k, v in payload.items() if k != "event_type"
    )
    return f"{head} {rest}".rstrip()
