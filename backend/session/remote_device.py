"""
Remote output device.

The audio element lives in the client. This device mirrors it on the
server: commands go out as control messages, and the client's media
reports come back in and are dispatched to the segment's listeners.

Outbound (server -> client):
    AUDIO_LOAD   {"src"}
    AUDIO_PLAY   {"src"}
    AUDIO_PAUSE
    AUDIO_SEEK   {"position_s"}
    AUDIO_UNLOAD

Inbound (client -> server, routed by PlayerGateway):
    MEDIA_TIME   {"src", "current_time", "paused"}
    MEDIA_ENDED  {"src"}
    MEDIA_ERROR  {"src", "code", "message"}

Reports naming a src other than the loaded one are stale and dropped.
"""

from __future__ import annotations

from typing import Any, Callable

from observability.logger import log_event
from playback.device import BaseOutputDevice


SendControlFn = Callable[[dict[str, Any]], None]


class RemoteOutputDevice(BaseOutputDevice):
    """OutputDevice driven over the session's control channel."""

    def __init__(self, *, send_control: SendControlFn, session_id: str | None = None) -> None:
        super().__init__()
        self._send_control = send_control
        self._session_id = session_id

    # ------------------------------------------------------------------
    # OutputDevice commands
    # ------------------------------------------------------------------

    def load(self, src: str) -> None:
        self._src = src
        self._error = None
        self._current_time = 0.0
        self._paused = True
        self._send_control({"type": "AUDIO_LOAD", "src": src})

    async def play(self) -> None:
        if self._src is None:
            raise RuntimeError("play() called with no source loaded")
        self._paused = False
        self._send_control({"type": "AUDIO_PLAY", "src": self._src})

    def pause(self) -> None:
        if self._src is None:
            return
        self._paused = True
        self._send_control({"type": "AUDIO_PAUSE"})

    def seek(self, position_s: float) -> None:
        if self._src is None:
            return
        self._current_time = position_s
        self._send_control({"type": "AUDIO_SEEK", "position_s": position_s})

    def unload(self) -> None:
        if self._src is None:
            return
        self._src = None
        self._current_time = 0.0
        self._paused = True
        self._send_control({"type": "AUDIO_UNLOAD"})

    # ------------------------------------------------------------------
    # Client reports
    # ------------------------------------------------------------------

    def on_media_time(self, *, current_time: float, paused: bool, src: str | None = None) -> None:
        if self._is_stale(src, "MEDIA_TIME"):
            return
        self._report_time(current_time, paused)

    def on_media_ended(self, *, src: str | None = None) -> None:
        if self._is_stale(src, "MEDIA_ENDED"):
            return
        self._report_ended()

    def on_media_error(self, *, code: int, message: str = "", src: str | None = None) -> None:
        if self._is_stale(src, "MEDIA_ERROR"):
            return
        log_event({
            "event_type": "REMOTE_MEDIA_ERROR",
            "session_id": self._session_id,
            "src": self._src,
            "code": code,
            "message": message,
        })
        self._report_error(code, message)

    def _is_stale(self, src: str | None, report: str) -> bool:
        if self._src is None or (src is not None and src != self._src):
            log_event({
                "event_type": "STALE_MEDIA_REPORT",
                "session_id": self._session_id,
                "report": report,
                "src": src,
                "loaded_src": self._src,
            })
            return True
        return False
