"""
Cycle catalog loading.

Reads a JSON document holding either a list of cycle objects or
{"cycles": [...]}. Malformed entries are logged and skipped so one bad
record cannot take a whole session down.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from observability.logger import log_event
from playback.cycle import Cycle


def load_catalog(path: str | Path) -> list[Cycle]:
    """
    Load cycles from a JSON file, preserving file order.

    Raises:
        OSError if the file cannot be read.
        ValueError if the document is not valid JSON or has the wrong shape.
    """
    with open(path, encoding="utf-8") as f:
        document = json.load(f)

    return parse_catalog(document, source=str(path))


def parse_catalog(document: Any, *, source: str = "<memory>") -> list[Cycle]:
    """Build cycles from an already-decoded catalog document."""
    if isinstance(document, dict):
        entries = document.get("cycles")
    else:
        entries = document

    if not isinstance(entries, list):
        raise ValueError(f"{source}: expected a list of cycles or {{'cycles': [...]}}")

    cycles: list[Cycle] = []
    for index, entry in enumerate(entries):
        try:
            cycles.append(Cycle.from_dict(entry))
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            log_event({
                "event_type": "CATALOG_ENTRY_INVALID",
                "source": source,
                "index": index,
                "exception": type(exc).__name__,
                "message": str(exc),
            })

    log_event({
        "event_type": "CATALOG_LOADED",
        "source": source,
        "cycles": len(cycles),
        "skipped": len(entries) - len(cycles),
    })
    return cycles
