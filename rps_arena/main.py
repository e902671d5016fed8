"""RPS Arena entry point — simulation engine with FastAPI server.

This module wires the engine to a display-list canvas, streams rendered
frames to WebSocket clients, and serves the control API with uvicorn.

Can be run directly via `python -m rps_arena.main`.
"""

from __future__ import annotations

import asyncio
import random
import signal
from typing import Optional

import structlog
import uvicorn

from rps_arena import __version__
from rps_arena.api.app import create_app
from rps_arena.api.ws_handler import ConnectionManager, FrameStreamer
from rps_arena.config import Settings
from rps_arena.core.colors import GameColor
from rps_arena.core.engine import SimulationEngine
from rps_arena.core.scheduler import AsyncioFrameScheduler
from rps_arena.render.canvas import DisplayListCanvas, DrawingSurface


def configure_logging(level: str = "info") -> None:
    """Configure structured logging for the whole process."""
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(min_level=level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


logger = structlog.get_logger()


class ArenaRunner:
    """Manages engine and server lifecycle and graceful shutdown."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings()
        self.engine: Optional[SimulationEngine] = None
        self.uvicorn_server: Optional[uvicorn.Server] = None
        self.shutdown_event = asyncio.Event()

    async def run(self) -> None:
        """Initialize and run the engine with the FastAPI server.

        Sets up:
        - Drawing surface and display-list canvas
        - WebSocket connection manager and frame streamer
        - Frame scheduler and SimulationEngine
        - FastAPI application

        Then serves until a shutdown signal arrives.
        """
        settings = self.settings
        logger.info("rps_arena_starting", version=__version__)
        logger.info(
            "settings_loaded",
            frame_interval_ms=settings.frame_interval_ms,
            agents_per_color=settings.agents_per_color,
            random_seed=settings.random_seed,
        )

        surface = DrawingSurface(width=settings.surface_width, height=settings.surface_height)

        ws_manager = ConnectionManager()
        streamer = FrameStreamer(ws_manager, every_frames=settings.stream_every_frames)
        canvas = DisplayListCanvas(on_frame=streamer.on_frame)
        logger.info("frame_streaming_initialized", every_frames=streamer.every_frames)

        scheduler = AsyncioFrameScheduler(frame_interval_ms=settings.frame_interval_ms)
        engine = SimulationEngine(
            settings=settings,
            scheduler=scheduler,
            rng=random.Random(settings.random_seed),
        )
        self.engine = engine

        def _on_game_end(winner: GameColor) -> None:
            streamer.publish_game_over(winner, engine.frame_counter)

        engine.attach(surface, canvas, on_end=_on_game_end)
        logger.info("simulation_engine_initialized")

        app = create_app(engine=engine, surface=surface, ws_manager=ws_manager)
        logger.info("fastapi_app_created")

        config = uvicorn.Config(
            app,
            host=settings.host,
            port=settings.port,
            log_level=settings.log_level,
            access_log=False,
        )
        self.uvicorn_server = uvicorn.Server(config)
        logger.info("uvicorn_configured", host=settings.host, port=settings.port)

        def handle_shutdown(sig: int) -> None:
            logger.info("shutdown_signal_received", signal=sig)
            self.shutdown_event.set()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, lambda s=sig: handle_shutdown(s))

        if settings.auto_start:
            engine.start()

        server_task = asyncio.create_task(self.uvicorn_server.serve())
        logger.info(
            "services_running",
            engine=engine.state.value,
            api_server=f"http://{settings.host}:{settings.port}",
            docs=f"http://{settings.host}:{settings.port}/docs",
        )

        # Uvicorn exiting on its own also ends the run
        shutdown_task = asyncio.create_task(self.shutdown_event.wait())
        await asyncio.wait({server_task, shutdown_task}, return_when=asyncio.FIRST_COMPLETED)

        logger.info("initiating_graceful_shutdown")
        engine.teardown()
        self.uvicorn_server.should_exit = True
        shutdown_task.cancel()

        try:
            await asyncio.wait_for(server_task, timeout=5.0)
        except asyncio.TimeoutError:
            logger.warning("shutdown_timeout")
            server_task.cancel()

        logger.info("all_services_stopped")


async def main() -> None:
    """Main entry point."""
    settings = Settings()
    configure_logging(settings.log_level)

    runner = ArenaRunner(settings)
    try:
        await runner.run()
    except KeyboardInterrupt:
        logger.info("keyboard_interrupt_received")
    except Exception as exc:
        logger.error("fatal_error", error=str(exc), error_type=type(exc).__name__)
        raise


def run() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
