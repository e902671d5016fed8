"""Game lifecycle and state API routes.

Provides endpoints for:
- Starting and resetting a run
- Pinning or releasing the arena
- Resizing the drawing surface
- Reading the current game state
- Streaming rendered frames over a WebSocket
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Request, WebSocket
from pydantic import BaseModel, Field

import structlog

from rps_arena.api.ws_handler import websocket_endpoint
from rps_arena.core.arena import ArenaShape, ArenaSize
from rps_arena.core.engine import EngineStateError

logger = structlog.get_logger()

router = APIRouter()


# -------------------------------------------------------------------------
# Request/Response Models
# -------------------------------------------------------------------------


class GameStateResponse(BaseModel):
    """Response model for game state endpoints."""

    state: str = Field(..., description='Engine state: "idle", "running" or "stopped_won"')
    frame: int = Field(..., description="Frames advanced in the current run")
    arena: dict[str, Any] = Field(..., description="Arena shape, size and pixel extents")
    counts: dict[str, int] = Field(..., description="Live agents per color")
    agent_count: int = Field(..., description="Total live agents")
    particle_count: int = Field(..., description="Live transient particles")
    battles: int = Field(..., description="Battles resolved in the current run")
    winner: Optional[str] = Field(default=None, description="Winner of the finished run")


class ArenaRequest(BaseModel):
    """Request model for pinning the arena."""

    shape: ArenaShape
    size: ArenaSize


class SurfaceRequest(BaseModel):
    """Request model for resizing the drawing surface."""

    width: float = Field(..., gt=0, allow_inf_nan=False, description="Surface width in pixels")
    height: float = Field(..., gt=0, allow_inf_nan=False, description="Surface height in pixels")


def _state_response(request: Request) -> GameStateResponse:
    snapshot = request.app.state.app_state.engine.snapshot()
    return GameStateResponse(
        state=snapshot.state,
        frame=snapshot.frame,
        arena=snapshot.arena,
        counts=snapshot.counts,
        agent_count=snapshot.agent_count,
        particle_count=snapshot.particle_count,
        battles=snapshot.battles,
        winner=snapshot.winner,
    )


# -------------------------------------------------------------------------
# Lifecycle
# -------------------------------------------------------------------------


@router.post("/game/start", response_model=GameStateResponse)
async def start_game(request: Request) -> GameStateResponse:
    """Start a new run with a fresh population.

    Raises:
        HTTPException: 409 if a run is already in progress.
    """
    engine = request.app.state.app_state.engine
    try:
        engine.start()
    except EngineStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc))

    return _state_response(request)


@router.post("/game/reset", response_model=GameStateResponse)
async def reset_game(request: Request) -> GameStateResponse:
    """Abort the current run, if any, and clear the arena."""
    request.app.state.app_state.engine.reset()
    return _state_response(request)


@router.get("/game/state", response_model=GameStateResponse)
async def get_game_state(request: Request) -> GameStateResponse:
    """Get the current engine state, arena and population counts."""
    return _state_response(request)


# -------------------------------------------------------------------------
# Arena and surface
# -------------------------------------------------------------------------


@router.put("/game/arena", response_model=GameStateResponse)
async def pin_arena(body: ArenaRequest, request: Request) -> GameStateResponse:
    """Use a fixed arena for the following runs instead of a random one.

    Raises:
        HTTPException: 409 while a run is in progress.
    """
    engine = request.app.state.app_state.engine
    try:
        engine.set_arena(body.shape, body.size)
    except EngineStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc))

    return _state_response(request)


@router.delete("/game/arena")
async def release_arena(request: Request) -> dict[str, str]:
    """Go back to a random arena on each start."""
    request.app.state.app_state.engine.release_arena()
    logger.info("arena_released")
    return {"status": "success", "message": "Arena selection is random again"}


@router.put("/game/surface", response_model=GameStateResponse)
async def resize_surface(body: SurfaceRequest, request: Request) -> GameStateResponse:
    """Resize the drawing surface; the arena keeps its shape and size class.

    Raises:
        HTTPException: 422 if the surface would leave no room for the arena.
    """
    app_state = request.app.state.app_state
    try:
        app_state.surface.resize(body.width, body.height)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    app_state.engine.on_surface_resized()

    logger.info("surface_resized", width=body.width, height=body.height, source="api")
    return _state_response(request)


# -------------------------------------------------------------------------
# WebSocket /ws/arena-stream
# -------------------------------------------------------------------------


@router.websocket("/ws/arena-stream")
async def arena_stream(websocket: WebSocket) -> None:
    """WebSocket endpoint for real-time arena streaming.

    Protocol:
        - Server → Client: JSON frame messages (display lists) and a
          game_over message when a run ends
        - Client → Server: optional "ping" or a resize request
    """
    app_state = websocket.app.state.app_state
    await websocket_endpoint(websocket, app_state)
