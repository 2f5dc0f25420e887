"""
Audio output device contract.

This module defines the *interface only*: no watchdogs, no settle logic,
no URL lifetime management live here.

Key invariants:
- Exactly one device instance exists per AudioResourceManager and it is
  reused for every segment. Recreating it would require re-establishing a
  user-gesture unlock on touch platforms.
- The device reports completion and failure through listeners; it never
  decides what happens next.
- Error codes follow HTML MediaError numbering (see constants.py).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from observability.logger import log_event


class DeviceEvent(str, Enum):
    """Notifications an output device can dispatch."""

    ENDED = "ended"
    ERROR = "error"


DeviceListener = Callable[[], None]


@dataclass(frozen=True)
class DeviceErrorInfo:
    """Last error reported by the device."""
    code: int
    message: str = ""


class OutputDevice(ABC):
    """
    Abstract single-channel audio output.

    Implementations are responsible for:
    - Loading a source URL and starting/pausing playback
    - Reporting playback position and paused flag
    - Dispatching ENDED / ERROR to registered listeners

    Non-responsibilities:
    - No stall detection or timeouts (owned by the segment)
    - No object URL creation or revocation
    """

    @abstractmethod
    def load(self, src: str) -> None:
        """Point the device at a new source and reset its error state."""
        raise NotImplementedError

    @abstractmethod
    async def play(self) -> None:
        """
        Start playback of the loaded source.

        Contract:
        - Returns once playback has started; completion is signalled via
          the ENDED listener.
        - Raises if playback cannot be started.
        """
        raise NotImplementedError

    @abstractmethod
    def pause(self) -> None:
        """Pause playback. Idempotent."""
        raise NotImplementedError

    @abstractmethod
    def seek(self, position_s: float) -> None:
        """Move the playback position."""
        raise NotImplementedError

    @abstractmethod
    def unload(self) -> None:
        """Detach the current source."""
        raise NotImplementedError

    @property
    @abstractmethod
    def current_time(self) -> float:
        """Playback position in seconds."""
        raise NotImplementedError

    @property
    @abstractmethod
    def paused(self) -> bool:
        """True unless the device is actively playing."""
        raise NotImplementedError

    @property
    @abstractmethod
    def error(self) -> DeviceErrorInfo | None:
        """Last error since load(), if any."""
        raise NotImplementedError

    @abstractmethod
    def add_listener(self, event: DeviceEvent, listener: DeviceListener) -> None:
        """Register a listener."""
        raise NotImplementedError

    @abstractmethod
    def remove_listener(self, event: DeviceEvent, listener: DeviceListener) -> None:
        """Remove a listener. Unknown listeners are ignored."""
        raise NotImplementedError


class BaseOutputDevice(OutputDevice):
    """
    Listener bookkeeping and position/error fields shared by concrete devices.

    Subclasses implement load/play/pause/seek/unload and call the _report_*
    helpers when the underlying player reports progress.
    """

    def __init__(self) -> None:
        self._listeners: dict[DeviceEvent, list[DeviceListener]] = {
            DeviceEvent.ENDED: [],
            DeviceEvent.ERROR: [],
        }
        self._current_time: float = 0.0
        self._paused: bool = True
        self._error: DeviceErrorInfo | None = None
        self._src: str | None = None

    # ------------------------------------------------------------------
    # Read-only status
    # ------------------------------------------------------------------

    @property
    def current_time(self) -> float:
        return self._current_time

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def error(self) -> DeviceErrorInfo | None:
        return self._error

    @property
    def src(self) -> str | None:
        """Currently loaded source URL."""
        return self._src

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, event: DeviceEvent, listener: DeviceListener) -> None:
        self._listeners[event].append(listener)

    def remove_listener(self, event: DeviceEvent, listener: DeviceListener) -> None:
        try:
            self._listeners[event].remove(listener)
        except ValueError:
            pass

    def listener_count(self, event: DeviceEvent) -> int:
        """Registered listeners for an event (observability / tests)."""
        return len(self._listeners[event])

    # ------------------------------------------------------------------
    # Reporting helpers for subclasses
    # ------------------------------------------------------------------

    def _report_time(self, current_time: float, paused: bool) -> None:
        self._current_time = current_time
        self._paused = paused

    def _report_ended(self) -> None:
        self._paused = True
        self._dispatch(DeviceEvent.ENDED)

    def _report_error(self, code: int, message: str = "") -> None:
        self._error = DeviceErrorInfo(code=code, message=message)
        self._paused = True
        self._dispatch(DeviceEvent.ERROR)

    def _dispatch(self, event: DeviceEvent) -> None:
        # Snapshot: listeners detach themselves while settling
        for listener in list(self._listeners[event]):
            try:
                listener()
            except Exception as exc:  # pylint: disable=broad-exception-caught
                log_event({
                    "event_type": "DEVICE_LISTENER_ERROR",
                    "device_event": event.value,
                    "exception": type(exc).__name__,
                    "message": str(exc),
                })
