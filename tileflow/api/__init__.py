"""
API Module - Browser-facing bridge.

Exposes client sessions over REST and a WebSocket so a thin rendering
surface in the browser can draw the slide and settle phases.

All state is session-scoped and in memory.
"""

from .schemas import (
    DirectionName,
    EndSessionResponse,
    ErrorCode,
    ErrorResponse,
    FrameResponse,
    HealthResponse,
    MoveRequest,
    SessionListResponse,
    SessionResponse,
    SnapshotInfo,
    TileInfo,
)
from .app import create_app

__all__ = [
    "DirectionName",
    "EndSessionResponse",
    "ErrorCode",
    "ErrorResponse",
    "FrameResponse",
    "HealthResponse",
    "MoveRequest",
    "SessionListResponse",
    "SessionResponse",
    "SnapshotInfo",
    "TileInfo",
    "create_app",
]
