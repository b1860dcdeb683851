"""
FastAPI Application - Bridge between the browser and the game client.

Endpoints:
    POST   /api/v1/sessions                  Create session and start a game
    GET    /api/v1/sessions                  List active sessions
    GET    /api/v1/sessions/{id}             Get session view
    DELETE /api/v1/sessions/{id}             End session
    POST   /api/v1/sessions/{id}/new-game    Start a new game
    POST   /api/v1/sessions/{id}/move        Request one move
    WS     /api/v1/sessions/{id}/ws          Animation events and input

Move Flow:
    1. POST /move (or {"type": "move"} on the WebSocket)
    2. If a transition is in flight the move is dropped (accepted=false)
    3. Otherwise the rules service is called, the boards are reconciled,
       and slide/settle events are pushed on the WebSocket as they happen
    4. The response carries the ops once the identity table is committed

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Optional, Union
import asyncio
import json
import logging

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..animation.surface import status_message
from ..board.snapshot import GameSnapshot
from ..config import ClientConfig
from ..session import Session, SessionManager, TransitionResult
from .schemas import (
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

logger = logging.getLogger(__name__)


def create_app(manager: Optional[SessionManager] = None, config: Optional[ClientConfig] = None):
    """
    Create the FastAPI application.

    Args:
        manager: Optional SessionManager (creates one from config if not provided)
        config: Optional ClientConfig (read from the environment if not provided)

    Returns:
        FastAPI application instance
    """
    config = config or (manager.config if manager else ClientConfig.from_env())
    sessions = manager or SessionManager(config)

    app = FastAPI(
        title="Tileflow Client API",
        description="""
Board reconciliation bridge for a remote tile-merging puzzle service.

The browser sends directions; the bridge asks the rules service for the
next board, works out which tile went where, and streams the two-phase
animation over the session WebSocket.

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | Session does not exist |
| `VALIDATION_ERROR` | Request body is malformed |
| `TRANSPORT_ERROR` | Rules service unreachable or answered badly |
| `INTERNAL_ERROR` | Unexpected failure |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # WebSocket connections per session
    ws_connections: dict[str, list[WebSocket]] = {}

    # Strong references to fire-and-forget tasks
    background: set[asyncio.Task] = set()

    # Per watched session: one queue of outgoing messages, drained in order
    # by a single sender task
    outboxes: dict[str, asyncio.Queue] = {}
    senders: dict[str, asyncio.Task] = {}

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    def session_not_found(session_id: str) -> JSONResponse:
        return make_error_response(
            ErrorCode.SESSION_NOT_FOUND,
            f"Session {session_id} not found",
            status_code=404,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return make_error_response(
            ErrorCode.VALIDATION_ERROR,
            "Invalid request",
            status_code=422,
            details={"errors": [
                {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
                for err in exc.errors()
            ]},
        )

    @app.exception_handler(Exception)
    async def internal_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s", request.url.path)
        return make_error_response(
            ErrorCode.INTERNAL_ERROR,
            "Internal server error",
            status_code=500,
        )

    def spawn(coro) -> Optional[asyncio.Task]:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Outside the event loop (e.g. cleanup from a sync caller): nobody to notify
            coro.close()
            return None
        task = loop.create_task(coro)
        background.add(task)
        task.add_done_callback(collect)
        return task

    def collect(task: asyncio.Task):
        background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background task failed: %r", exc, exc_info=exc)

    def publish(session_id: str, message: dict):
        """Queue a message for the session's WebSockets, keeping emit order."""
        outbox = outboxes.get(session_id)
        if outbox is not None:
            outbox.put_nowait(message)

    async def drain(session_id: str, outbox: asyncio.Queue):
        while True:
            message = await outbox.get()
            await broadcast_to_session(session_id, message)

    def open_outbox(session_id: str):
        if session_id not in outboxes:
            outbox: asyncio.Queue = asyncio.Queue()
            outboxes[session_id] = outbox
            senders[session_id] = spawn(drain(session_id, outbox))

    def close_outbox(session_id: str):
        outboxes.pop(session_id, None)
        sender = senders.pop(session_id, None)
        if sender is not None:
            sender.cancel()

    def drop_connections(session_id: str):
        """Stop streaming to a session and close its WebSockets."""
        close_outbox(session_id)
        for ws in ws_connections.pop(session_id, []):
            spawn(ws.close())

    async def broadcast_to_session(session_id: str, message: dict):
        """Send a message to every WebSocket watching a session."""
        dead = []
        for ws in list(ws_connections.get(session_id, [])):
            try:
                await ws.send_json(message)
            except (WebSocketDisconnect, RuntimeError):
                dead.append(ws)
        for ws in dead:
            if ws in ws_connections.get(session_id, []):
                ws_connections[session_id].remove(ws)

    def register(session: Session) -> Session:
        """Forward the session's surface events to its WebSockets."""
        session_id = session.session_id
        session.surface.subscribe(lambda event: publish(session_id, event))
        return session

    def frame_or_error(session_id: str, result: TransitionResult) -> Union[FrameResponse, JSONResponse]:
        if result.transport_failed:
            return make_error_response(
                ErrorCode.TRANSPORT_ERROR,
                result.errors[0] if result.errors else "Rules service unavailable",
                status_code=502,
                details={"session_id": session_id},
            )
        return _frame(session_id, result)

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=FrameResponse,
        status_code=201,
        responses={502: {"model": ErrorResponse, "description": "Rules service unavailable"}},
        tags=["Sessions"],
        summary="Create a session and start a new game",
    )
    async def create_session() -> Union[FrameResponse, JSONResponse]:
        """
        Create a session and start its first game.

        The session survives a failed first request; retry with
        `POST /new-game`. Sessions idle past the configured limit are
        ended first.
        """
        for stale_id in sessions.cleanup_stale_sessions():
            drop_connections(stale_id)
        session = register(sessions.create_session())
        result = await session.client.new_game()
        return frame_or_error(session.session_id, result)

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List active sessions",
    )
    async def list_sessions() -> SessionListResponse:
        active = sessions.list_active_sessions()
        return SessionListResponse(sessions=active, count=len(active))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get session view",
    )
    async def get_session(session_id: str) -> Union[SessionResponse, JSONResponse]:
        """Current snapshot, busy flag and tracked tile identities."""
        session = sessions.get_session(session_id)
        if not session:
            return session_not_found(session_id)
        return _session_view(session)

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a session",
    )
    async def end_session(session_id: str) -> EndSessionResponse:
        success = sessions.end_session(session_id)
        drop_connections(session_id)
        return EndSessionResponse(success=success, session_id=session_id)

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{session_id}/new-game",
        response_model=FrameResponse,
        responses={
            404: {"model": ErrorResponse, "description": "Session not found"},
            502: {"model": ErrorResponse, "description": "Rules service unavailable"},
        },
        tags=["Game"],
        summary="Start a new game",
    )
    async def new_game(session_id: str) -> Union[FrameResponse, JSONResponse]:
        """Start a new game. Always accepted, even mid-animation."""
        session = sessions.get_session(session_id)
        if not session:
            return session_not_found(session_id)
        session.touch()
        result = await session.client.new_game()
        return frame_or_error(session_id, result)

    @app.post(
        "/api/v1/sessions/{session_id}/move",
        response_model=FrameResponse,
        responses={
            404: {"model": ErrorResponse, "description": "Session not found"},
            422: {"model": ErrorResponse, "description": "Unknown direction"},
            502: {"model": ErrorResponse, "description": "Rules service unavailable"},
        },
        tags=["Game"],
        summary="Request one move",
    )
    async def move(session_id: str, body: MoveRequest) -> Union[FrameResponse, JSONResponse]:
        """
        Request one move.

        **Request Body:**
        ```json
        {"direction": "left"}
        ```

        Dropped (`accepted=false`, `dropped=true`) while a transition is
        in flight.
        """
        session = sessions.get_session(session_id)
        if not session:
            return session_not_found(session_id)
        session.touch()
        result = await session.client.move(body.direction.value)
        return frame_or_error(session_id, result)

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    @app.websocket("/api/v1/sessions/{session_id}/ws")
    async def websocket_endpoint(websocket: WebSocket, session_id: str):
        """
        WebSocket for animation events and input.

        Messages from server:
        - state_update: Session view on connect
        - clear: Board cleared for a new game
        - slide: Phase 1 ops
        - settle: Phase 2 merges, spawns and removals
        - status: Score and win / game-over banner
        - notify: Transient error notification
        - frame: Result of a move or new_game sent on this socket
        - error: Malformed message

        Messages from client:
        - ping
        - move: {"type": "move", "direction": "left"}
        - new_game: {"type": "new_game"}
        """
        session = sessions.get_session(session_id)
        if not session:
            await websocket.close(code=4404)
            return

        await websocket.accept()
        ws_connections.setdefault(session_id, []).append(websocket)
        open_outbox(session_id)

        async def run(coro):
            result = await coro
            # Queued behind the surface events the transition emitted
            publish(session_id, {
                "type": "frame",
                "payload": _frame(session_id, result).model_dump(),
            })

        try:
            await websocket.send_json({
                "type": "state_update",
                "payload": _session_view(session).model_dump(),
            })

            while True:
                data = await websocket.receive_text()
                try:
                    message = json.loads(data)
                except json.JSONDecodeError:
                    await websocket.send_json({
                        "type": "error",
                        "payload": {"message": "Invalid JSON"},
                    })
                    continue

                kind = message.get("type") if isinstance(message, dict) else None
                if kind == "ping":
                    await websocket.send_json({"type": "pong"})
                elif kind == "move":
                    try:
                        direction = MoveRequest(direction=message.get("direction")).direction
                    except ValueError:
                        await websocket.send_json({
                            "type": "error",
                            "payload": {"message": f"Unknown direction: {message.get('direction')!r}"},
                        })
                        continue
                    session.touch()
                    # Runs as a task so later keypresses are observed (and dropped) meanwhile
                    spawn(run(session.client.move(direction.value)))
                elif kind == "new_game":
                    session.touch()
                    spawn(run(session.client.new_game()))
                else:
                    await websocket.send_json({
                        "type": "error",
                        "payload": {"message": f"Unknown message type: {kind!r}"},
                    })
        except WebSocketDisconnect:
            logger.debug("WebSocket closed for session %s", session_id)
        finally:
            if websocket in ws_connections.get(session_id, []):
                ws_connections[session_id].remove(websocket)
            if not ws_connections.get(session_id):
                ws_connections.pop(session_id, None)
                close_outbox(session_id)

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        return HealthResponse(
            status="healthy",
            service="tileflow-client",
            version=__version__,
            active_sessions=len(sessions.list_active_sessions()),
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Tileflow Client API",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/health",
        }

    app.state.sessions = sessions
    return app


# =============================================================================
# Conversion Helpers
# =============================================================================

def _snapshot_info(snapshot: Optional[GameSnapshot]) -> Optional[SnapshotInfo]:
    if snapshot is None:
        return None
    return SnapshotInfo(
        board=[list(row) for row in snapshot.board],
        score=snapshot.score,
        won=snapshot.won,
        game_over=snapshot.game_over,
        message=status_message(snapshot),
    )


def _frame(session_id: str, result: TransitionResult) -> FrameResponse:
    return FrameResponse(
        session_id=session_id,
        accepted=result.success,
        dropped=result.dropped,
        snapshot=_snapshot_info(result.snapshot),
        ops=[op.to_dict() for op in result.ops],
        full_redraw=result.full_redraw,
        inconsistencies=result.inconsistencies,
        errors=result.errors,
    )


def _session_view(session: Session) -> SessionResponse:
    client = session.client
    return SessionResponse(
        session_id=session.session_id,
        busy=client.is_busy(),
        created_at=session.created_at,
        snapshot=_snapshot_info(client.snapshot),
        tiles=[
            TileInfo(
                tile_id=identity.tile_id,
                row=identity.cell[0],
                col=identity.cell[1],
                value=identity.value,
            )
            for identity in client.tracker.table
        ],
    )
