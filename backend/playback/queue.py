"""
Session cycle queue.

Pure index arithmetic over an ordered list of cycles: no I/O, no timers,
no knowledge of how playback happens.

Cursor semantics:
- cursor is always in [0, len(cycles)]
- cursor == len(cycles) means the session is complete
"""

from __future__ import annotations

import math
from typing import Sequence

from playback.cycle import Cycle


class SessionQueueManager:
    """Ordered cycles plus a cursor."""

    def __init__(self, cycles: Sequence[Cycle], *, start_index: int = 0) -> None:
        if not 0 <= start_index <= len(cycles):
            raise ValueError(
                f"start_index {start_index} outside [0, {len(cycles)}]"
            )
        self._cycles: tuple[Cycle, ...] = tuple(cycles)
        self._start_index = start_index
        self._cursor = start_index

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def cycles(self) -> tuple[Cycle, ...]:
        return self._cycles

    @property
    def current_index(self) -> int:
        return self._cursor

    @property
    def is_complete(self) -> bool:
        return self._cursor >= len(self._cycles)

    @property
    def progress_percent(self) -> int:
        """0-100, rounded half-up. An empty queue reports 0."""
        if not self._cycles:
            return 0
        return int(math.floor(self._cursor / len(self._cycles) * 100 + 0.5))

    def __len__(self) -> int:
        return len(self._cycles)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_current_cycle(self) -> Cycle | None:
        """The cycle at the cursor, or None once complete."""
        if self.is_complete:
            return None
        return self._cycles[self._cursor]

    def get_next_cycle(self) -> Cycle | None:
        """Peek at the cycle after the current one without moving."""
        next_index = self._cursor + 1
        if next_index >= len(self._cycles):
            return None
        return self._cycles[next_index]

    # ------------------------------------------------------------------
    # Moves
    # ------------------------------------------------------------------

    def mark_cycle_complete(self) -> None:
        """Advance past the current cycle. No-op once complete."""
        self._advance()

    def skip_to_next(self) -> None:
        """
        Advance without completing.

        Identical to mark_cycle_complete() at the queue level; the
        distinction only matters to the caller's analytics.
        """
        self._advance()

    def jump_to(self, index: int) -> bool:
        """
        Move the cursor to index.

        Out-of-range indices are ignored. Returns True if the cursor moved.
        """
        if 0 <= index < len(self._cycles):
            self._cursor = index
            return True
        return False

    def reset(self) -> None:
        """Return to the starting index."""
        self._cursor = self._start_index

    def _advance(self) -> None:
        if not self.is_complete:
            self._cursor += 1
