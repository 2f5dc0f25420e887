"""
Player gateway.

Responsibilities:
- Owns PlayerSession lifecycle (one gateway == one WebSocket connection)
- Wires the playback engine for the session: remote device, resource
  manager, cycle player, queue, degradation controller, learning session
- Routes inbound JSON control messages and media reports
- Publishes PLAYBACK_STATE, CYCLE_EVENT and DEGRADATION messages through
  the session's control queue

NOT responsible for:
- Phase sequencing, watchdogs or fallback choice
- Socket I/O (server.routes flushes GatewayResult)

Client -> server:
    START        {"index"?}
    STOP
    SKIP
    JUMP         {"index"}
    CONNECTIVITY {"online"}
    SET_CONFIG   {"preset"?, "pause_multiplier"?, "turbo_mode"?, "adaptive_pause"?}
    MEDIA_TIME / MEDIA_ENDED / MEDIA_ERROR (see session.remote_device)
"""

from __future__ import annotations

import asyncio
import json
import random
from dataclasses import dataclass, replace
from typing import Any, Sequence, TYPE_CHECKING
from uuid import uuid4

from observability.logger import log_event
from playback.audio_resources import AudioResourceManager
from playback.cycle import Cycle
from playback.cycle_player import CyclePlayer
from playback.enums.degradation import DegradationLevel
from playback.events import CycleEvent, CycleEventType
from playback.object_urls import ObjectUrlStore
from playback.offline import OfflineDegradationController
from playback.playback_config import (
    BEGINNER_CONFIG,
    TURBO_CONFIG,
    create_playback_config,
)
from playback.queue import SessionQueueManager
from session.audio_library import LocalAudioLibrary
from session.connection_status import ConnectionStatus
from session.learning_session import LearningSession
from session.player_session import PlayerSession
from session.remote_device import RemoteOutputDevice

if TYPE_CHECKING:
    from config import AppConfig


PLAYBACK_PRESETS: dict[str, dict[str, Any]] = {
    "default": {},
    "turbo": TURBO_CONFIG,
    "beginner": BEGINNER_CONFIG,
}

_CONFIG_FIELDS = ("pause_multiplier", "turbo_mode", "adaptive_pause")


def _new_session_id() -> str:
    return f"sess_{uuid4().hex[:12]}"


# ------------------------------------------------------------------
# Gateway result
# ------------------------------------------------------------------

@dataclass(frozen=True)
class GatewayResult:
    """
    Return value for gateway boundary methods.

    outbound_json:
        JSON messages to send to the client, in order
    """
    outbound_json: tuple[dict[str, Any], ...] = ()


# ------------------------------------------------------------------
# PlayerGateway
# ------------------------------------------------------------------

class PlayerGateway:
    """One gateway == one player session."""

    def __init__(
        self,
        *,
        config: AppConfig,
        catalog: Sequence[Cycle],
        url_store: ObjectUrlStore,
        rng: random.Random | None = None,
    ) -> None:
        self._config = config
        self._catalog = tuple(catalog)
        self._url_store = url_store
        self._rng = rng
        self.session: PlayerSession | None = None
        self._last_level: DegradationLevel | None = None

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    async def on_ws_connect(self) -> GatewayResult:
        """Called when a WebSocket connection is established."""
        session_id = _new_session_id()
        session = PlayerSession(session_id=session_id)
        session.connection_status = ConnectionStatus.UP
        self.session = session

        device = RemoteOutputDevice(
            send_control=session.enqueue_control,
            session_id=session_id,
        )

        # Both collaborators read connectivity from the controller
        library = LocalAudioLibrary(
            cache_dir=self._config.audio_cache_dir,
            base_url=self._config.audio_base_url,
            is_online=lambda: degradation.is_online,
        )
        degradation = OfflineDegradationController(
            get_cached_cycles=lambda: self._catalog,
            is_cycle_cached=library.is_cycle_cached,
            recent_avoid_count=self._config.recent_avoid_count,
            rng=self._rng,
        )

        player = CyclePlayer(
            resources=AudioResourceManager(
                device_factory=lambda: device,
                url_store=self._url_store,
            ),
            resolve_audio=library.resolve_audio,
            config=create_playback_config(pause_multiplier=self._config.pause_multiplier),
            stall_check_interval_ms=self._config.stall_check_interval_ms,
            segment_safety_timeout_ms=self._config.segment_safety_timeout_ms,
        )
        player.on(self._on_cycle_event)

        session.device = device
        session.player = player
        session.degradation = degradation
        session.learning = LearningSession(
            session_id=session_id,
            queue=SessionQueueManager(self._catalog),
            degradation=degradation,
            player=player,
        )

        log_event({
            "event_type": "SESSION_CREATED",
            **session.log_context(),
            "cycles": len(self._catalog),
        })

        init_msg: dict[str, Any] = {
            "type": "SESSION_INIT",
            "session_id": session_id,
            "cycles": len(self._catalog),
            "config": {
                "pause_multiplier": player.config.pause_multiplier,
                "turbo_mode": player.config.turbo_mode,
            },
        }
        session.enqueue_control(init_msg)
        session.enqueue_control(self._state_message())
        return self.drain_outbound()

    async def on_ws_disconnect(self, reason: str | None = None) -> GatewayResult:
        """Called when the WebSocket disconnects."""
        session = self.session
        if session is None:
            log_event({
                "event_type": "WS_DISCONNECT_WITHOUT_SESSION",
                "reason": reason,
            })
            return GatewayResult()

        if session.learning is not None:
            session.learning.stop()

        task = session.run_task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        session.run_task = None

        if session.player is not None:
            session.player.dispose()

        session.connection_status = ConnectionStatus.DOWN
        log_event({
            "event_type": "SESSION_CLOSED",
            **session.log_context(),
            "reason": reason,
        })
        return self.drain_outbound()

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    async def wait_outbound(self) -> None:
        """Block until the session has control messages pending."""
        if self.session is None:
            raise RuntimeError("wait_outbound() before on_ws_connect()")
        await self.session.control_pending()

    def drain_outbound(self) -> GatewayResult:
        """Everything the session queued since the last drain."""
        if self.session is None:
            return GatewayResult()
        return GatewayResult(outbound_json=self.session.drain_control())

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    async def on_json_message(self, payload: str) -> GatewayResult:
        """Route one inbound JSON message."""
        session = self.session
        if session is None:
            log_event({
                "event_type": "MESSAGE_WITHOUT_SESSION",
                "payload_preview": payload[:100],
            })
            return GatewayResult()

        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            log_event({
                "event_type": "JSON_DECODE_ERROR",
                "session_id": session.session_id,
                "error": str(e),
                "payload_preview": payload[:100],
            })
            return GatewayResult()

        if not isinstance(data, dict):
            log_event({
                "event_type": "INVALID_MESSAGE_SHAPE",
                "session_id": session.session_id,
                "payload_preview": payload[:100],
            })
            return GatewayResult()

        msg_type = data.get("type")

        if msg_type in ("MEDIA_TIME", "MEDIA_ENDED", "MEDIA_ERROR"):
            try:
                self._route_media_report(msg_type, data)
            except (TypeError, ValueError) as e:
                log_event({
                    "event_type": "INVALID_MEDIA_REPORT",
                    "session_id": session.session_id,
                    "msg_type": msg_type,
                    "error": str(e),
                })
            return self.drain_outbound()

        if msg_type == "START":
            self._handle_start(data.get("index"))
        elif msg_type == "STOP":
            self._learning().stop()
        elif msg_type == "SKIP":
            self._learning().skip()
        elif msg_type == "JUMP":
            self._handle_jump(data.get("index"))
        elif msg_type == "CONNECTIVITY":
            online = data.get("online")
            if not isinstance(online, bool):
                log_event({
                    "event_type": "INVALID_MESSAGE_SHAPE",
                    "session_id": session.session_id,
                    "msg_type": msg_type,
                    "online": repr(online),
                })
                return GatewayResult()
            self._handle_connectivity(online)
        elif msg_type == "SET_CONFIG":
            self._handle_set_config(data)
        else:
            log_event({
                "event_type": "UNKNOWN_MESSAGE_TYPE",
                "msg_type": msg_type,
                "session_id": session.session_id,
            })
            return GatewayResult()

        session.enqueue_control(self._state_message())
        return self.drain_outbound()

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _route_media_report(self, msg_type: str, data: dict[str, Any]) -> None:
        device = self._device()
        src = data.get("src")
        if msg_type == "MEDIA_TIME":
            device.on_media_time(
                current_time=float(data.get("current_time", 0.0)),
                paused=bool(data.get("paused", False)),
                src=src,
            )
        elif msg_type == "MEDIA_ENDED":
            device.on_media_ended(src=src)
        else:
            device.on_media_error(
                code=int(data.get("code", 0)),
                message=str(data.get("message", "")),
                src=src,
            )

    def _handle_start(self, index: Any) -> None:
        session = self._session()
        if index is not None:
            self._handle_jump(index)

        if session.run_task is not None and not session.run_task.done():
            log_event({
                "event_type": "START_IGNORED_ALREADY_RUNNING",
                "session_id": session.session_id,
            })
            return

        session.run_task = asyncio.create_task(self._run_learning())

    def _handle_jump(self, index: Any) -> None:
        if not isinstance(index, int) or not self._learning().jump_to(index):
            self._enqueue_error("INVALID_INDEX", f"No cycle at index {index!r}")

    def _handle_connectivity(self, online: bool) -> None:
        degradation = self._degradation()
        degradation.set_online(online)
        degradation.refresh_cached_pool()
        self._publish_degradation(force=True)

    def _handle_set_config(self, data: dict[str, Any]) -> None:
        player = self._player()
        preset = data.get("preset")
        overrides: dict[str, Any] = {}
        if preset is not None:
            if preset not in PLAYBACK_PRESETS:
                self._enqueue_error("INVALID_CONFIG", f"Unknown preset {preset!r}")
                return
            overrides.update(PLAYBACK_PRESETS[preset])
        overrides.update({k: data[k] for k in _CONFIG_FIELDS if k in data})

        try:
            new_config = (
                create_playback_config(**overrides)
                if preset is not None
                else replace(player.config, **overrides)
            )
        except (TypeError, ValueError) as exc:
            self._enqueue_error("INVALID_CONFIG", str(exc))
            return

        player.set_config(new_config)
        log_event({
            "event_type": "PLAYBACK_CONFIG_CHANGED",
            "session_id": self._session().session_id,
            "pause_multiplier": new_config.pause_multiplier,
            "turbo_mode": new_config.turbo_mode,
        })

    async def _run_learning(self) -> None:
        session = self._session()
        learning = self._learning()
        try:
            status = await learning.run()
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "event_type": "SESSION_RUN_ERROR",
                "session_id": session.session_id,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            return
        session.enqueue_control(self._state_message())
        log_event({
            "event_type": "SESSION_RUN_FINISHED",
            "session_id": session.session_id,
            "status": status.value,
        })

    # ------------------------------------------------------------------
    # Engine notifications
    # ------------------------------------------------------------------

    def _on_cycle_event(self, event: CycleEvent) -> None:
        session = self._session()
        session.enqueue_control(event.to_message())
        if event.event_type is CycleEventType.PHASE_PROMPT:
            self._publish_degradation()
        session.enqueue_control(self._state_message())

    def _publish_degradation(self, *, force: bool = False) -> None:
        degradation = self._degradation()
        level = degradation.degradation_level
        if not force and level is self._last_level:
            return
        self._last_level = level
        self._session().enqueue_control({
            "type": "DEGRADATION",
            "level": level.value,
            "message": degradation.get_degradation_message(),
            "is_online": degradation.is_online,
            "is_infinite_play": degradation.is_infinite_play,
        })

    def _state_message(self) -> dict[str, Any]:
        learning = self._learning()
        state = self._player().state
        queue = learning.queue
        return {
            "type": "PLAYBACK_STATE",
            "phase": state.phase.value,
            "is_playing": state.is_playing,
            "error": state.error,
            "cycle_id": state.current_cycle.id if state.current_cycle else None,
            "index": queue.current_index,
            "progress_percent": queue.progress_percent,
            "is_complete": queue.is_complete,
            "status": learning.status.value,
        }

    def _enqueue_error(self, code: str, message: str) -> None:
        session = self._session()
        log_event({
            "event_type": "CLIENT_REQUEST_REJECTED",
            "session_id": session.session_id,
            "code": code,
            "message": message,
        })
        session.enqueue_control({"type": "ERROR", "code": code, "message": message})

    # ------------------------------------------------------------------
    # Accessors (session must be connected)
    # ------------------------------------------------------------------

    def _session(self) -> PlayerSession:
        assert self.session is not None, "Session must exist"
        return self.session

    def _learning(self) -> LearningSession:
        learning = self._session().learning
        assert learning is not None, "LearningSession must be wired"
        return learning

    def _player(self) -> CyclePlayer:
        player = self._session().player
        assert player is not None, "CyclePlayer must be wired"
        return player

    def _degradation(self) -> OfflineDegradationController:
        degradation = self._session().degradation
        assert degradation is not None, "Degradation controller must be wired"
        return degradation

    def _device(self) -> RemoteOutputDevice:
        device = self._session().device
        assert device is not None, "Remote device must be wired"
        return device
