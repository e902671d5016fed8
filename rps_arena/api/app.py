"""FastAPI application factory with dependency injection.

This module provides the create_app() factory function that creates a
configured FastAPI application. The app receives the SimulationEngine and
its drawing surface from main.py rather than creating them itself.
"""

from __future__ import annotations

import time
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rps_arena import __version__
from rps_arena.api.ws_handler import ConnectionManager
from rps_arena.core.engine import SimulationEngine
from rps_arena.render.canvas import DrawingSurface


class AppState:
    """Application state container for dependency injection.

    This class holds references to shared components that need to be
    accessed by API routes.
    """

    def __init__(
        self,
        engine: SimulationEngine,
        surface: DrawingSurface,
        start_time: float,
        ws_manager: ConnectionManager,
    ) -> None:
        """Initialize app state.

        Args:
            engine: The attached SimulationEngine instance.
            surface: Drawing surface the engine renders into.
            start_time: Server start timestamp for uptime calculation.
            ws_manager: WebSocket connection manager for frame streaming.
        """
        self.engine = engine
        self.surface = surface
        self.start_time = start_time
        self.ws_manager = ws_manager


def create_app(
    engine: SimulationEngine,
    surface: DrawingSurface,
    ws_manager: Optional[ConnectionManager] = None,
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        engine: SimulationEngine instance, already attached to the surface.
        surface: Drawing surface shared with the engine.
        ws_manager: WebSocket connection manager for frame streaming.

    Returns:
        Configured FastAPI application.
    """
    app = FastAPI(
        title="RPS Arena",
        description="Rock-paper-scissors particle battle simulation",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Setup CORS for development (allow all origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if ws_manager is None:
        ws_manager = ConnectionManager()

    app.state.app_state = AppState(
        engine=engine,
        surface=surface,
        start_time=time.time(),
        ws_manager=ws_manager,
    )

    from rps_arena.api.routes_game import router as game_router

    app.include_router(game_router, prefix="/api", tags=["game"])

    @app.get("/", tags=["health"])
    async def root() -> dict[str, str]:
        """Root endpoint - basic health check."""
        return {
            "status": "ok",
            "service": "RPS Arena API",
            "version": __version__,
        }

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        """Health check endpoint for Docker and monitoring."""
        engine_ref = app.state.app_state.engine
        return {
            "status": "healthy",
            "engine_state": engine_ref.state.value,
            "frame": str(engine_ref.frame_counter),
            "uptime_seconds": str(round(time.time() - app.state.app_state.start_time, 2)),
        }

    return app
