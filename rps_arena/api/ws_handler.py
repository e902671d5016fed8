"""WebSocket handler for real-time arena streaming.

Provides:
- ConnectionManager for managing active WebSocket connections
- FrameStreamer, which turns rendered display lists and the win
  notification into broadcast messages
- JSON message builders for frame and game-over messages
- WebSocket endpoint that also accepts surface resize requests
"""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING, Any

from fastapi import WebSocket, WebSocketDisconnect
import structlog

from rps_arena.core.colors import GameColor
from rps_arena.render.canvas import Command

if TYPE_CHECKING:
    from rps_arena.api.app import AppState

logger = structlog.get_logger()


class ConnectionManager:
    """Manages active WebSocket connections.

    Handles connection lifecycle and broadcasting messages to all
    connected clients.
    """

    def __init__(self) -> None:
        """Initialize the connection manager."""
        self.active_connections: list[WebSocket] = []

    async def connect(self, websocket: WebSocket) -> None:
        """Accept a new WebSocket connection.

        Args:
            websocket: The WebSocket connection to accept.
        """
        await websocket.accept()
        self.active_connections.append(websocket)
        logger.info(
            "ws_client_connected",
            total_connections=len(self.active_connections),
            origin=websocket.headers.get("origin", "unknown"),
        )

    def disconnect(self, websocket: WebSocket) -> None:
        """Remove a WebSocket connection.

        Args:
            websocket: The WebSocket connection to remove.
        """
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)
            logger.info(
                "ws_client_disconnected",
                total_connections=len(self.active_connections),
            )

    async def broadcast_text(self, message: str) -> None:
        """Broadcast a text message to all connected clients.

        Args:
            message: Text message to send to all clients.

        Note:
            Removes disconnected clients automatically.
        """
        disconnected: list[WebSocket] = []

        for connection in list(self.active_connections):
            try:
                await connection.send_text(message)
            except Exception as exc:
                logger.warning(
                    "ws_broadcast_error",
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                disconnected.append(connection)

        for connection in disconnected:
            self.disconnect(connection)


def build_frame_message(frame: int, commands: list[Command]) -> str:
    """Serialize one rendered frame.

    Format:
        {"type": "frame", "frame": <int>, "commands": [<command>, ...]}

    Each command is a dict with an "op" key ("clear", "fill_rect",
    "stroke_rect", "fill_circle", "stroke_circle", "fill_polygon",
    "stroke_polygon", "fill_text") plus that operation's parameters.
    Coordinates are rounded to 0.1 px to keep messages small.
    """
    compact = [_round_floats(command) for command in commands]
    return json.dumps({"type": "frame", "frame": frame, "commands": compact}, separators=(",", ":"))


def build_game_over_message(winner: GameColor, frame: int) -> str:
    return json.dumps({"type": "game_over", "winner": winner.value, "frame": frame})


def _round_floats(value: Any) -> Any:
    if isinstance(value, float):
        return round(value, 1)
    if isinstance(value, dict):
        return {key: _round_floats(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_round_floats(item) for item in value]
    return value


class FrameStreamer:
    """Pushes rendered frames and the win notification to stream clients.

    The engine renders synchronously inside a frame tick; broadcasting is
    async, so each message is handed to the event loop as a task.
    """

    def __init__(self, manager: ConnectionManager, every_frames: int = 2) -> None:
        """Initialize the streamer.

        Args:
            manager: Connection manager to broadcast through.
            every_frames: Broadcast one of every N rendered frames.
        """
        self.manager = manager
        self.every_frames = max(1, every_frames)
        self._tasks: set[asyncio.Task[None]] = set()

    def on_frame(self, frame: int, commands: list[Command]) -> None:
        """Frame listener for DisplayListCanvas."""
        if not self.manager.active_connections or frame % self.every_frames != 0:
            return
        self._dispatch(build_frame_message(frame, commands))

    def publish_game_over(self, winner: GameColor, frame: int) -> None:
        """Announce the winner of the finished run to every client."""
        logger.info("game_over_broadcast", winner=winner.value, frame=frame)
        self._dispatch(build_game_over_message(winner, frame))

    def _dispatch(self, message: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("ws_broadcast_skipped", reason="no_running_loop")
            return

        task = loop.create_task(self.manager.broadcast_text(message))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)


def handle_client_message(app_state: AppState, data: str) -> None:
    """Apply a message sent by a stream client.

    Clients may send "ping" to keep the connection open, or a resize
    request: {"type": "resize", "width": <px>, "height": <px>}.
    Anything else is logged and ignored.
    """
    if not data or data == "ping":
        return

    try:
        message = json.loads(data)
    except json.JSONDecodeError:
        logger.debug("ws_client_message", message=data)
        return

    if not isinstance(message, dict) or message.get("type") != "resize":
        logger.debug("ws_client_message", message=data)
        return

    try:
        app_state.surface.resize(float(message["width"]), float(message["height"]))
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning("ws_resize_rejected", message=data, error=str(exc))
        return

    app_state.engine.on_surface_resized()
    logger.info(
        "surface_resized",
        width=app_state.surface.width,
        height=app_state.surface.height,
        source="ws",
    )


async def websocket_endpoint(websocket: WebSocket, app_state: AppState) -> None:
    """WebSocket endpoint for arena streaming.

    Args:
        websocket: The WebSocket connection.
        app_state: Shared application state (engine, surface, manager).

    Note:
        Frames are pushed from the engine; the receive loop only handles
        pings and resize requests and detects disconnects.
    """
    manager: ConnectionManager = app_state.ws_manager
    await manager.connect(websocket)

    try:
        while True:
            data = await websocket.receive_text()
            handle_client_message(app_state, data)

    except WebSocketDisconnect:
        manager.disconnect(websocket)
        logger.info("ws_client_disconnected_gracefully")
    except Exception as exc:
        logger.error(
            "ws_endpoint_error",
            error=str(exc),
            error_type=type(exc).__name__,
        )
        manager.disconnect(websocket)
