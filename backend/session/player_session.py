"""
Player session container.

- Owns the per-connection playback objects (player, queue, degradation
  controller, learning session, remote device)
- Owns connection status (mutable, gateway-controlled)
- Owned and mutated by PlayerGateway
- Buffers outbound control messages for the transport
- Contains no playback logic
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any

from playback.cycle_player import CyclePlayer
from playback.offline import OfflineDegradationController
from session.connection_status import ConnectionStatus
from session.learning_session import LearningSession
from session.remote_device import RemoteOutputDevice


@dataclass
class PlayerSession:
    """Mutable runtime container for a single client connection."""

    # ------------------------------------------------------------------
    # Identity / lifecycle
    # ------------------------------------------------------------------

    session_id: str
    created_at: float = field(default_factory=time.time)

    # ------------------------------------------------------------------
    # Connection / gateway-controlled state
    # ------------------------------------------------------------------

    connection_status: ConnectionStatus = ConnectionStatus.DOWN

    # ------------------------------------------------------------------
    # Playback components (wired by PlayerGateway)
    # ------------------------------------------------------------------

    device: RemoteOutputDevice | None = None
    player: CyclePlayer | None = None
    degradation: OfflineDegradationController | None = None
    learning: LearningSession | None = None
    run_task: asyncio.Task[Any] | None = None

    def __post_init__(self) -> None:
        self._control_out: deque[dict[str, Any]] = deque()
        self._control_ready = asyncio.Event()

    # ------------------------------------------------------------------
    # Observability helpers (read-only)
    # ------------------------------------------------------------------

    def log_context(self) -> dict[str, Any]:
        """Standard logging context for this session."""
        return {
            "session_id": self.session_id,
            "connection_status": self.connection_status.value,
        }

    # ------------------------------------------------------------------
    # Control channel
    # ------------------------------------------------------------------

    def enqueue_control(self, msg: dict[str, Any]) -> None:
        """
        Enqueue a control message for delivery to the client.

        Messages are buffered in FIFO order and later retrieved via
        drain_control(). Wakes any control_pending() waiter.
        """
        self._control_out.append(msg)
        self._control_ready.set()

    def drain_control(self) -> tuple[dict[str, Any], ...]:
        """
        Drain all pending control messages.

        Returns a FIFO-ordered tuple; empty if nothing is pending. After
        this call, the control queue is empty.
        """
        self._control_ready.clear()
        if not self._control_out:
            return ()
        out = tuple(self._control_out)
        self._control_out.clear()
        return out

    async def control_pending(self) -> None:
        """
        Block until at least one control message is pending.

        Does not drain: the transport drains under its own send lock so
        batches leave in enqueue order.
        """
        await self._control_ready.wait()
