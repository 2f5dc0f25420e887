"""
Cycle event definitions.

Rules:
- Events are immutable value objects emitted by CyclePlayer.
- They are notifications for observers (UI, gateway), never inputs.
- Handlers are called synchronously in subscription order.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from playback.cycle import Cycle
from playback.enums.phase import Phase


class CycleEventType(str, Enum):
    """Stable discriminants for cycle notifications."""

    PHASE_PROMPT = "phase:prompt"
    PHASE_PAUSE = "phase:pause"
    PHASE_VOICE_1 = "phase:voice1"
    PHASE_VOICE_2 = "phase:voice2"
    CYCLE_COMPLETE = "cycle:complete"
    CYCLE_ERROR = "cycle:error"


# Event announcing entry into each non-idle phase
PHASE_EVENT_TYPES: dict[Phase, CycleEventType] = {
    Phase.PROMPT: CycleEventType.PHASE_PROMPT,
    Phase.PAUSE: CycleEventType.PHASE_PAUSE,
    Phase.VOICE_1: CycleEventType.PHASE_VOICE_1,
    Phase.VOICE_2: CycleEventType.PHASE_VOICE_2,
}


@dataclass(frozen=True)
class CycleEvent:
    """A phase transition or terminal outcome of one cycle."""
    event_type: CycleEventType
    cycle: Cycle
    phase: Phase
    ts_ms: int
    error: str | None = None

    def to_message(self) -> dict[str, object]:
        """JSON-safe rendering for the client protocol."""
        return {
            "type": "CYCLE_EVENT",
            "event": self.event_type.value,
            "cycle_id": self.cycle.id,
            "phase": self.phase.value,
            "ts_ms": self.ts_ms,
            "error": self.error,
        }


CycleEventHandler = Callable[[CycleEvent], None]
