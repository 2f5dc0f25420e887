"""
Single-segment playback race.

One Segment guards one play_audio() call. Its result cell settles exactly
once; the first of these paths wins and every later one is ignored:

1. ENDED      device signals end-of-media             -> success
2. STALLED    position frozen between two samples     -> success (skip forward)
3. SAFETY     absolute ceiling elapsed                -> success (skip forward)
4. ERROR      device error event                      -> MediaError
5. ABORTED    stop() / superseded                     -> PlaybackAborted
6. PLAY_FAILED device.play() raised                   -> MediaError

Cleanup (watchdog cancellation, listener removal, object URL revocation)
runs exactly once, on whichever path settles first.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Callable

from constants import (
    SEGMENT_SAFETY_TIMEOUT_MS,
    STALL_CHECK_INTERVAL_MS,
    ms_to_seconds,
)
from observability.logger import log_event
from playback.device import DeviceEvent, OutputDevice
from playback.enums.media_error import MediaErrorKind
from playback.errors import MediaError, PlaybackAborted, PlaybackError


class SegmentOutcome(str, Enum):
    """Which path settled a segment."""

    ENDED = "ENDED"
    STALLED = "STALLED"
    SAFETY_TIMEOUT = "SAFETY_TIMEOUT"
    ERROR = "ERROR"
    ABORTED = "ABORTED"
    PLAY_FAILED = "PLAY_FAILED"


# Outcomes that count as a finished segment
SUCCESS_OUTCOMES: frozenset[SegmentOutcome] = frozenset({
    SegmentOutcome.ENDED,
    SegmentOutcome.STALLED,
    SegmentOutcome.SAFETY_TIMEOUT,
})


ReleaseUrlFn = Callable[[str], None]


class Segment:
    """
    Settle-once result cell plus the watchdogs that race to settle it.

    Lifecycle:
    1. Segment(...) inside a running event loop
    2. arm() registers listeners and starts watchdog tasks
    3. caller loads + plays the device, then awaits wait()
    4. any settle path cancels watchdogs, detaches listeners, revokes URL
    """

    def __init__(
        self,
        *,
        device: OutputDevice,
        label: str,
        object_url: str | None = None,
        release_url: ReleaseUrlFn | None = None,
        stall_check_interval_s: float = ms_to_seconds(STALL_CHECK_INTERVAL_MS),
        safety_timeout_s: float = ms_to_seconds(SEGMENT_SAFETY_TIMEOUT_MS),
    ) -> None:
        self._device = device
        self._label = label
        self._object_url = object_url
        self._release_url = release_url
        self._stall_check_interval_s = stall_check_interval_s
        self._safety_timeout_s = safety_timeout_s

        self._result: asyncio.Future[SegmentOutcome] = (
            asyncio.get_running_loop().create_future()
        )
        self._tasks: list[asyncio.Task[None]] = []
        self._cleaned_up = False
        self.outcome: SegmentOutcome | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def settled(self) -> bool:
        """True once any path has won."""
        return self.outcome is not None

    def arm(self) -> None:
        """Register device listeners and start both watchdogs."""
        self._device.add_listener(DeviceEvent.ENDED, self._on_ended)
        self._device.add_listener(DeviceEvent.ERROR, self._on_error)
        self._tasks.append(asyncio.create_task(self._stall_watch()))
        self._tasks.append(asyncio.create_task(self._safety_timer()))

    async def wait(self) -> SegmentOutcome:
        """
        Wait for settlement.

        Returns the success outcome, or raises the error that settled it.
        """
        return await self._result

    def abort(self, reason: str = "stopped") -> None:
        """Settle as cancelled. No-op if already settled."""
        self._reject(SegmentOutcome.ABORTED, PlaybackAborted(reason))

    def fail_to_start(self, exc: Exception) -> None:
        """Settle with the failure raised while starting playback."""
        if isinstance(exc, MediaError):
            error = exc
        else:
            error = MediaError(MediaErrorKind.UNKNOWN, detail=str(exc) or type(exc).__name__)
        self._reject(SegmentOutcome.PLAY_FAILED, error)

    # ------------------------------------------------------------------
    # Race participants
    # ------------------------------------------------------------------

    def _on_ended(self) -> None:
        self._resolve(SegmentOutcome.ENDED)

    def _on_error(self) -> None:
        info = self._device.error
        if info is None:
            error = MediaError(MediaErrorKind.UNKNOWN)
        else:
            error = MediaError.from_code(info.code, info.message or None)
        self._reject(SegmentOutcome.ERROR, error)

    async def _stall_watch(self) -> None:
        last_time = -1.0
        while not self.settled:
            await asyncio.sleep(self._stall_check_interval_s)
            if self.settled:
                return
            current = self._device.current_time
            if current > 0 and current == last_time and not self._device.paused:
                log_event({
                    "event_type": "SEGMENT_STALL_SKIP",
                    "segment": self._label,
                    "position_s": current,
                })
                self._resolve(SegmentOutcome.STALLED)
                return
            last_time = current

    async def _safety_timer(self) -> None:
        await asyncio.sleep(self._safety_timeout_s)
        if self.settled:
            return
        log_event({
            "event_type": "SEGMENT_SAFETY_TIMEOUT",
            "segment": self._label,
            "timeout_s": self._safety_timeout_s,
        })
        self._resolve(SegmentOutcome.SAFETY_TIMEOUT)

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    def _resolve(self, outcome: SegmentOutcome) -> None:
        if self.settled:
            return
        self.outcome = outcome
        self._cleanup()
        self._result.set_result(outcome)

    def _reject(self, outcome: SegmentOutcome, error: PlaybackError) -> None:
        if self.settled:
            return
        self.outcome = outcome
        self._cleanup()
        self._result.set_exception(error)

    def _cleanup(self) -> None:
        if self._cleaned_up:
            return
        self._cleaned_up = True

        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        for task in self._tasks:
            if task is not current and not task.done():
                task.cancel()
        self._tasks.clear()

        self._device.remove_listener(DeviceEvent.ENDED, self._on_ended)
        self._device.remove_listener(DeviceEvent.ERROR, self._on_error)

        if self._object_url is not None and self._release_url is not None:
            self._release_url(self._object_url)
