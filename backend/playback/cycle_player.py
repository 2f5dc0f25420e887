"""
Cycle phase state machine.

Responsibilities:
- Drive one Cycle through PROMPT -> PAUSE -> VOICE_1 -> VOICE_2 -> IDLE
- Resolve each audio reference and play it through the shared device
- Own PlaybackState (single writer) and publish cycle events
- Enforce single-flight: a new cycle supersedes the one in flight

Non-responsibilities:
- No choice of which cycle to play (queue / degradation controller)
- No device or object URL lifetime (AudioResourceManager)
- No watchdog internals (Segment)
"""

from __future__ import annotations

import asyncio
from dataclasses import replace

from constants import (
    SEGMENT_SAFETY_TIMEOUT_MS,
    STALL_CHECK_INTERVAL_MS,
    ms_to_seconds,
)
from observability.logger import log_event, now_ms
from playback.audio_resources import AudioResourceManager
from playback.cycle import Cycle
from playback.enums.phase import Phase
from playback.errors import (
    PlaybackAborted,
    PlaybackError,
    SourceNotFoundError,
)
from playback.events import (
    PHASE_EVENT_TYPES,
    CycleEvent,
    CycleEventHandler,
    CycleEventType,
)
from playback.playback_config import (
    DEFAULT_PLAYBACK_CONFIG,
    PlaybackConfig,
    calculate_pause_duration,
)
from playback.segment import Segment, SegmentOutcome
from playback.sources import AudioResolver, AudioSource, BlobSource, UrlSource
from playback.state_dataclass import PlaybackState


class CyclePlayer:
    """
    Plays cycles one at a time on a single output device.

    Guarantees:
    - Phases of one play_cycle() run strictly in order
    - At most one cycle is in flight; play_cycle() cancels (not awaits)
      the previous one, whose call raises PlaybackAborted
    - An aborted run never completes successfully and never writes state
    - stop() is synchronous, idempotent and safe from any phase
    """

    def __init__(
        self,
        *,
        resources: AudioResourceManager,
        resolve_audio: AudioResolver,
        config: PlaybackConfig = DEFAULT_PLAYBACK_CONFIG,
        stall_check_interval_ms: int = STALL_CHECK_INTERVAL_MS,
        segment_safety_timeout_ms: int = SEGMENT_SAFETY_TIMEOUT_MS,
    ) -> None:
        self._resources = resources
        self._resolve_audio = resolve_audio
        self._config = config
        self._stall_check_interval_s = ms_to_seconds(stall_check_interval_ms)
        self._safety_timeout_s = ms_to_seconds(segment_safety_timeout_ms)

        self._state = PlaybackState()
        self._handlers: list[CycleEventHandler] = []

        # Bumped by every play_cycle() and stop(); a run whose id is no
        # longer current has been aborted.
        self._run_id = 0
        self._abort_reason = "stopped"

        self._segment: Segment | None = None
        self._delay: asyncio.Future[None] | None = None
        self._delay_handle: asyncio.TimerHandle | None = None

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def state(self) -> PlaybackState:
        """Current immutable playback snapshot."""
        return self._state

    @property
    def config(self) -> PlaybackConfig:
        """Active pacing configuration."""
        return self._config

    def set_config(self, config: PlaybackConfig) -> None:
        """Replace pacing; takes effect at the next PAUSE phase."""
        self._config = config

    # ------------------------------------------------------------------
    # Event subscription
    # ------------------------------------------------------------------

    def on(self, handler: CycleEventHandler) -> None:
        """Subscribe to cycle events."""
        if handler not in self._handlers:
            self._handlers.append(handler)

    def off(self, handler: CycleEventHandler) -> None:
        """Unsubscribe. Unknown handlers are ignored."""
        if handler in self._handlers:
            self._handlers.remove(handler)

    # ------------------------------------------------------------------
    # Cycle playback
    # ------------------------------------------------------------------

    async def play_cycle(self, cycle: Cycle) -> None:
        """
        Play a full cycle.

        Raises:
            SourceNotFoundError: the resolver had nothing for an audio id
            MediaError: the device failed a segment
            PlaybackAborted: stop() was called or another cycle superseded this one
        """
        if self._is_busy():
            log_event({
                "event_type": "CYCLE_SUPERSEDED",
                "cycle_id": self._state.current_cycle.id if self._state.current_cycle else None,
                "next_cycle_id": cycle.id,
            })
            self.stop(reason="superseded")

        self._run_id += 1
        run_id = self._run_id
        self._set_state(
            PlaybackState(phase=Phase.IDLE, is_playing=True, error=None, current_cycle=cycle)
        )
        log_event({"event_type": "CYCLE_STARTED", "cycle_id": cycle.id})

        try:
            await self._play_side(run_id, cycle, Phase.PROMPT, "known", cycle.known.audio_id)

            self._enter_phase(run_id, cycle, Phase.PAUSE)
            await self._wait(run_id, calculate_pause_duration(cycle.pause_duration_ms, self._config))

            await self._play_side(
                run_id, cycle, Phase.VOICE_1, "voice1", cycle.target.voice1_audio_id
            )
            await self._play_side(
                run_id, cycle, Phase.VOICE_2, "voice2", cycle.target.voice2_audio_id
            )
        except PlaybackAborted:
            log_event({
                "event_type": "CYCLE_ABORTED",
                "cycle_id": cycle.id,
                "reason": self._abort_reason,
            })
            raise
        except PlaybackError as exc:
            self._fail(run_id, cycle, exc)
            raise

        self._ensure_current(run_id)
        self._set_state(replace(self._state, phase=Phase.IDLE, is_playing=False))
        log_event({"event_type": "CYCLE_COMPLETE", "cycle_id": cycle.id})
        self._emit(CycleEventType.CYCLE_COMPLETE, cycle, Phase.IDLE)

    async def play_audio(self, source: AudioSource, *, label: str = "audio") -> SegmentOutcome:
        """
        Play one audio segment to completion on the shared device.

        Anything already playing (a standalone segment or a whole cycle) is
        stopped first. Returns which path finished the segment (ended /
        stalled / safety timeout). Raises MediaError or PlaybackAborted
        otherwise.
        """
        if self._is_busy():
            log_event({
                "event_type": "AUDIO_SUPERSEDED",
                "cycle_id": self._state.current_cycle.id if self._state.current_cycle else None,
                "label": label,
            })
            self.stop(reason="superseded")

        return await self._play_segment(source, label=label)

    async def _play_segment(self, source: AudioSource, *, label: str) -> SegmentOutcome:
        device = self._resources.acquire_device()

        object_url: str | None = None
        if isinstance(source, BlobSource):
            object_url = self._resources.create_object_url(source.data, source.mime_type)
            src = object_url
        elif isinstance(source, UrlSource):
            src = source.url
        else:
            raise TypeError(f"Unsupported audio source: {type(source).__name__}")

        segment = Segment(
            device=device,
            label=label,
            object_url=object_url,
            release_url=self._resources.revoke_object_url,
            stall_check_interval_s=self._stall_check_interval_s,
            safety_timeout_s=self._safety_timeout_s,
        )
        self._segment = segment
        segment.arm()

        try:
            try:
                device.load(src)
                await device.play()
            except Exception as exc:  # pylint: disable=broad-exception-caught
                segment.fail_to_start(exc)
            return await segment.wait()
        finally:
            if self._segment is segment:
                self._segment = None

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    def stop(self, *, reason: str = "stopped") -> None:
        """
        Stop playback immediately.

        Cancels the pause delay and the active segment (which clears its
        watchdogs and listeners), pauses and rewinds the device, revokes the
        live object URL and forces IDLE. No-op when nothing is playing.
        """
        if not self._is_busy():
            return

        self._run_id += 1
        self._abort_reason = reason

        if self._segment is not None:
            self._segment.abort(reason)
            self._segment = None

        self._cancel_delay(reason)

        device = self._resources.device
        if device is not None:
            device.pause()
            device.seek(0.0)

        self._resources.revoke_object_url()

        self._set_state(replace(self._state, phase=Phase.IDLE, is_playing=False))
        log_event({
            "event_type": "PLAYBACK_STOPPED",
            "reason": reason,
            "cycle_id": self._state.current_cycle.id if self._state.current_cycle else None,
        })

    def dispose(self) -> None:
        """Stop, drop subscribers and release audio resources."""
        self.stop(reason="disposed")
        self._handlers.clear()
        self._resources.release()

    # ------------------------------------------------------------------
    # Internal: phases
    # ------------------------------------------------------------------

    async def _play_side(
        self,
        run_id: int,
        cycle: Cycle,
        phase: Phase,
        side: str,
        audio_id: str,
    ) -> None:
        self._enter_phase(run_id, cycle, phase)

        try:
            source = await self._resolve_audio(audio_id)
        except PlaybackError:
            raise
        except Exception as exc:  # pylint: disable=broad-exception-caught
            self._ensure_current(run_id)
            log_event({
                "event_type": "AUDIO_RESOLVER_ERROR",
                "cycle_id": cycle.id,
                "audio_id": audio_id,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            raise SourceNotFoundError(side, audio_id) from exc

        self._ensure_current(run_id)
        if source is None:
            raise SourceNotFoundError(side, audio_id)

        outcome = await self._play_segment(source, label=f"{cycle.id}:{side}")
        self._ensure_current(run_id)

        if outcome is not SegmentOutcome.ENDED:
            log_event({
                "event_type": "SEGMENT_SKIPPED_FORWARD",
                "cycle_id": cycle.id,
                "side": side,
                "outcome": outcome.value,
            })

    def _enter_phase(self, run_id: int, cycle: Cycle, phase: Phase) -> None:
        self._ensure_current(run_id)
        self._set_state(replace(self._state, phase=phase))
        self._emit(PHASE_EVENT_TYPES[phase], cycle, phase)

    async def _wait(self, run_id: int, duration_ms: int) -> None:
        loop = asyncio.get_running_loop()
        delay: asyncio.Future[None] = loop.create_future()

        def _elapsed() -> None:
            if not delay.done():
                delay.set_result(None)

        self._delay = delay
        self._delay_handle = loop.call_later(ms_to_seconds(duration_ms), _elapsed)
        try:
            await delay
        finally:
            if self._delay is delay:
                self._clear_delay_handle()
                self._delay = None

        self._ensure_current(run_id)

    def _cancel_delay(self, reason: str) -> None:
        self._clear_delay_handle()
        if self._delay is not None and not self._delay.done():
            self._delay.set_exception(PlaybackAborted(reason))
        self._delay = None

    def _clear_delay_handle(self) -> None:
        if self._delay_handle is not None:
            self._delay_handle.cancel()
            self._delay_handle = None

    def _ensure_current(self, run_id: int) -> None:
        if run_id != self._run_id:
            raise PlaybackAborted(self._abort_reason)

    def _fail(self, run_id: int, cycle: Cycle, exc: PlaybackError) -> None:
        if run_id != self._run_id:
            return
        message = str(exc)
        self._set_state(
            PlaybackState(phase=Phase.IDLE, is_playing=False, error=message, current_cycle=cycle)
        )
        log_event({
            "event_type": "CYCLE_FAILED",
            "cycle_id": cycle.id,
            "error_type": type(exc).__name__,
            "error": message,
        })
        self._emit(CycleEventType.CYCLE_ERROR, cycle, Phase.IDLE, error=message)

    def _is_busy(self) -> bool:
        return (
            self._state.is_playing
            or self._segment is not None
            or self._delay is not None
        )

    # ------------------------------------------------------------------
    # Internal: state + events
    # ------------------------------------------------------------------

    def _set_state(self, state: PlaybackState) -> None:
        self._state = state

    def _emit(
        self,
        event_type: CycleEventType,
        cycle: Cycle,
        phase: Phase,
        error: str | None = None,
    ) -> None:
        event = CycleEvent(
            event_type=event_type,
            cycle=cycle,
            phase=phase,
            ts_ms=now_ms(),
            error=error,
        )
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception as exc:  # pylint: disable=broad-exception-caught
                log_event({
                    "event_type": "CYCLE_EVENT_HANDLER_ERROR",
                    "cycle_event": event_type.value,
                    "cycle_id": cycle.id,
                    "exception": type(exc).__name__,
                    "message": str(exc),
                })
