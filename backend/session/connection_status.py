"""
Connection status tracking for player sessions.

connection_status: DOWN | UP

This is pure data owned by PlayerGateway. It describes the client's
WebSocket, not the client's internet connectivity (which the client
reports separately and feeds the degradation controller).
"""
from enum import Enum

class ConnectionStatus(Enum):
    """WebSocket lifecycle status, independent of playback phase."""
    DOWN = "DOWN"  # Not connected
    UP = "UP"      # Active WebSocket connection
