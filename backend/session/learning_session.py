"""
Learning session loop.

Responsibilities:
- Ask the queue what is scheduled; play it when it is cached or can be
  streamed, otherwise ask the degradation controller for a substitute
- Move the queue cursor only for the scheduled cycle
- Record successful plays for recent-item avoidance
- Keep going after per-cycle failures

Non-responsibilities:
- No phase sequencing or watchdogs (CyclePlayer / Segment)
- No transport (PlayerGateway)

Rules:
- A substitute played at a degraded level never advances the queue
- PlaybackError never escapes play_next() or run()
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum

from constants import FAILED_CYCLE_BACKOFF_MS, ms_to_seconds
from observability.logger import log_event
from observability.metrics import timed
from playback.cycle import Cycle
from playback.cycle_player import CyclePlayer
from playback.enums.degradation import DegradationLevel
from playback.errors import PlaybackAborted, PlaybackError
from playback.offline import OfflineDegradationController
from playback.queue import SessionQueueManager


class SessionStatus(str, Enum):
    """Coarse lifecycle of a learning session."""

    IDLE = "idle"
    PLAYING = "playing"
    STOPPED = "stopped"
    COMPLETE = "complete"


class CycleOutcome(str, Enum):
    """How one play_next() attempt ended."""

    COMPLETED = "completed"
    FAILED = "failed"
    ABORTED = "aborted"


@dataclass(frozen=True)
class PlayResult:
    """Result of one play_next() attempt."""
    cycle: Cycle
    outcome: CycleOutcome
    level: DegradationLevel
    scheduled: bool
    error: str | None = None


class LearningSession:
    """Drives a queue of cycles through one CyclePlayer."""

    def __init__(
        self,
        *,
        session_id: str,
        queue: SessionQueueManager,
        degradation: OfflineDegradationController,
        player: CyclePlayer,
        failure_backoff_ms: int = FAILED_CYCLE_BACKOFF_MS,
    ) -> None:
        self._session_id = session_id
        self._queue = queue
        self._degradation = degradation
        self._player = player
        self._failure_backoff_s = ms_to_seconds(failure_backoff_ms)

        self._status = SessionStatus.IDLE
        self._active = False
        self._skip_requested = False
        self._in_flight: Cycle | None = None

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def queue(self) -> SessionQueueManager:
        return self._queue

    @property
    def degradation(self) -> OfflineDegradationController:
        return self._degradation

    @property
    def player(self) -> CyclePlayer:
        return self._player

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------

    async def play_next(self) -> PlayResult | None:
        """
        Play one cycle.

        Returns None when the degradation controller has nothing at all to
        offer; otherwise a PlayResult describing the attempt.
        """
        scheduled = self._queue.get_current_cycle()
        if scheduled is not None and self._degradation.can_play_cycle(scheduled):
            # Cached, or streamable while online
            self._degradation.resume_normal()
            cycle: Cycle | None = scheduled
        else:
            cycle = self._degradation.get_next_playable_cycle(scheduled)
        if cycle is None:
            return None

        level = self._degradation.degradation_level
        is_scheduled = scheduled is not None and cycle is scheduled
        self._in_flight = cycle

        try:
            with timed(
                "cycle_playback",
                session_id=self._session_id,
                cycle_id=cycle.id,
                details={"level": level.value, "scheduled": is_scheduled},
            ):
                await self._player.play_cycle(cycle)

        except PlaybackAborted as exc:
            skipped = self._skip_requested
            self._skip_requested = False
            if skipped and is_scheduled:
                self._queue.skip_to_next()
            return PlayResult(cycle, CycleOutcome.ABORTED, level, is_scheduled, exc.reason)

        except PlaybackError as exc:
            self._skip_requested = False
            log_event({
                "event_type": "SESSION_CYCLE_FAILED",
                "session_id": self._session_id,
                "cycle_id": cycle.id,
                "level": level.value,
                "error_type": type(exc).__name__,
                "error": str(exc),
            })
            if is_scheduled:
                self._queue.skip_to_next()
            return PlayResult(cycle, CycleOutcome.FAILED, level, is_scheduled, str(exc))

        finally:
            self._in_flight = None

        self._degradation.mark_cycle_as_played(cycle)
        if is_scheduled:
            self._queue.mark_cycle_complete()

        log_event({
            "event_type": "SESSION_CYCLE_COMPLETE",
            "session_id": self._session_id,
            "cycle_id": cycle.id,
            "level": level.value,
            "scheduled": is_scheduled,
            "progress_percent": self._queue.progress_percent,
        })
        return PlayResult(cycle, CycleOutcome.COMPLETED, level, is_scheduled)

    async def run(self) -> SessionStatus:
        """
        Play until the queue is complete, stop() is called, or nothing is
        playable. Returns the final status.
        """
        if self._active:
            return self._status

        self._active = True
        self._status = SessionStatus.PLAYING
        self._degradation.refresh_cached_pool()
        log_event({
            "event_type": "SESSION_STARTED",
            "session_id": self._session_id,
            "cycles": len(self._queue),
            "start_index": self._queue.current_index,
        })

        try:
            while self._active and not self._queue.is_complete:
                result = await self.play_next()
                if result is None:
                    log_event({
                        "event_type": "SESSION_NOTHING_PLAYABLE",
                        "session_id": self._session_id,
                        "index": self._queue.current_index,
                    })
                    self._status = SessionStatus.IDLE
                    break
                if result.outcome is CycleOutcome.FAILED:
                    await asyncio.sleep(self._failure_backoff_s)
        finally:
            self._active = False

        if self._queue.is_complete:
            self._status = SessionStatus.COMPLETE
        log_event({
            "event_type": "SESSION_ENDED",
            "session_id": self._session_id,
            "status": self._status.value,
            "progress_percent": self._queue.progress_percent,
        })
        return self._status

    # ------------------------------------------------------------------
    # Controls
    # ------------------------------------------------------------------

    def stop(self) -> None:
        """Stop the loop and the cycle in flight. Idempotent."""
        if self._active:
            self._active = False
            self._status = SessionStatus.STOPPED
        self._player.stop(reason="session_stopped")

    def skip(self) -> None:
        """
        Abandon the cycle in flight and move on.

        When idle, advances the queue directly.
        """
        log_event({
            "event_type": "SESSION_SKIP",
            "session_id": self._session_id,
            "cycle_id": self._in_flight.id if self._in_flight else None,
        })
        if self._in_flight is not None:
            self._skip_requested = True
            self._player.stop(reason="skipped")
        else:
            self._queue.skip_to_next()

    def jump_to(self, index: int) -> bool:
        """
        Move the queue cursor; a cycle in flight is abandoned without
        advancing. Returns False for an out-of-range index.
        """
        if not self._queue.jump_to(index):
            return False
        log_event({
            "event_type": "SESSION_JUMP",
            "session_id": self._session_id,
            "index": index,
        })
        if self._in_flight is not None:
            self._player.stop(reason="jump")
        return True
