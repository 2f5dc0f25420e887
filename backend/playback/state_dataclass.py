"""
Authoritative playback state container.

Rules:
- This dataclass is a pure data model.
- It is replaced wholesale by its single writer (CyclePlayer), never
  partially mutated.
- No behavior, no helpers, no derived logic.
"""

from __future__ import annotations

from dataclasses import dataclass

from playback.cycle import Cycle
from playback.enums.phase import Phase


@dataclass(frozen=True)
class PlaybackState:
    """Immutable snapshot of what one CyclePlayer is doing."""

    phase: Phase = Phase.IDLE
    is_playing: bool = False

    # Message of the last fatal cycle failure; cleared on the next play_cycle()
    error: str | None = None

    current_cycle: Cycle | None = None
