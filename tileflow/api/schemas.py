"""
Pydantic Schemas for the API bridge.

These models define the contract between the browser rendering surface
and the client. Ops are sent as plain dicts (see reconcile.ops to_dict).

Error Codes:
- SESSION_NOT_FOUND: Session does not exist or has ended
- VALIDATION_ERROR: Request body is malformed (e.g. unknown direction)
- TRANSPORT_ERROR: The rules service could not be reached or answered badly
- INTERNAL_ERROR: Unexpected failure
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class DirectionName(str, Enum):
    """Move directions."""
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"


class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class SnapshotInfo(BaseModel):
    """Board and status as last committed."""
    board: list[list[int]]
    score: int = 0
    won: bool = False
    game_over: bool = False
    message: Optional[str] = Field(None, description="Win or game-over banner text")


class TileInfo(BaseModel):
    """One tracked tile identity."""
    tile_id: str
    row: int
    col: int
    value: int


# =============================================================================
# Request Models
# =============================================================================

class MoveRequest(BaseModel):
    """Request one move."""
    direction: DirectionName


# =============================================================================
# Response Models
# =============================================================================

class FrameResponse(BaseModel):
    """
    Result of a new-game or move request.

    A move sent while a transition is in flight is dropped:
    accepted=false, dropped=true, no ops.
    """
    session_id: str
    accepted: bool
    dropped: bool = False
    snapshot: Optional[SnapshotInfo] = None
    ops: list[dict[str, Any]] = Field(default_factory=list)
    full_redraw: bool = False
    inconsistencies: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class SessionResponse(BaseModel):
    """Current view of a session."""
    session_id: str
    busy: bool
    created_at: float
    snapshot: Optional[SnapshotInfo] = None
    tiles: list[TileInfo] = Field(default_factory=list)


class SessionListResponse(BaseModel):
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    success: bool
    session_id: str


class ErrorResponse(BaseModel):
    """Standard error body."""
    error: str
    error_code: ErrorCode
    details: Optional[dict[str, Any]] = None


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    active_sessions: int = 0
