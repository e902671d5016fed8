"""Tests for the arena WebSocket stream."""

from __future__ import annotations

import asyncio
import json
import random
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from rps_arena.api.app import AppState, create_app
from rps_arena.api.ws_handler import (
    ConnectionManager,
    FrameStreamer,
    build_frame_message,
    build_game_over_message,
    handle_client_message,
)
from rps_arena.config import Settings
from rps_arena.core.arena import ArenaShape, ArenaSize
from rps_arena.core.colors import GameColor
from rps_arena.core.engine import SimulationEngine
from rps_arena.core.scheduler import ManualScheduler
from rps_arena.render.canvas import DisplayListCanvas, DrawingSurface


@pytest.fixture
def app_state() -> AppState:
    """Create app state around an idle engine."""
    surface = DrawingSurface(600, 600)
    engine = SimulationEngine(Settings(), ManualScheduler(), rng=random.Random(2))
    engine.attach(surface, DisplayListCanvas(), on_end=lambda color: None)
    return AppState(engine=engine, surface=surface, start_time=0.0, ws_manager=ConnectionManager())


def test_build_frame_message_rounds_coordinates() -> None:
    commands = [{"op": "fill_circle", "x": 10.123, "y": 5.0, "r": 12.5, "color": "#fff", "alpha": 1.0}]

    message = json.loads(build_frame_message(7, commands))

    assert message["type"] == "frame"
    assert message["frame"] == 7
    assert message["commands"][0]["x"] == 10.1
    assert commands[0]["x"] == 10.123


def test_build_frame_message_rounds_nested_points() -> None:
    commands = [{"op": "fill_polygon", "points": [[1.26, 2.0]], "color": "#fff", "alpha": 1.0}]

    message = json.loads(build_frame_message(1, commands))

    assert message["commands"][0]["points"] == [[1.3, 2.0]]


def test_build_game_over_message() -> None:
    message = json.loads(build_game_over_message(GameColor.RED, 42))

    assert message == {"type": "game_over", "winner": "red", "frame": 42}


def test_handle_resize_message(app_state: AppState) -> None:
    app_state.engine.set_arena(ArenaShape.SQUARE, ArenaSize.LARGE)

    handle_client_message(app_state, json.dumps({"type": "resize", "width": 300, "height": 500}))

    assert app_state.surface.width == 300
    assert app_state.engine.arena.width == pytest.approx(280.0)


@pytest.mark.parametrize(
    "data",
    [
        "ping",
        "",
        "not json",
        json.dumps({"type": "hello"}),
        json.dumps({"type": "resize", "width": -5, "height": 100}),
        json.dumps({"type": "resize", "width": 100}),
        '{"type": "resize", "width": NaN, "height": 600}',
        '{"type": "resize", "width": Infinity, "height": 600}',
        json.dumps({"type": "resize", "width": 15, "height": 600}),
    ],
)
def test_other_messages_leave_surface_alone(app_state: AppState, data: str) -> None:
    handle_client_message(app_state, data)

    assert (app_state.surface.width, app_state.surface.height) == (600, 600)


@pytest.mark.asyncio
async def test_broadcast_drops_failed_connections() -> None:
    manager = ConnectionManager()
    healthy = MagicMock()
    healthy.send_text = AsyncMock()
    broken = MagicMock()
    broken.send_text = AsyncMock(side_effect=RuntimeError("closed"))
    manager.active_connections = [healthy, broken]

    await manager.broadcast_text("hello")

    healthy.send_text.assert_awaited_once_with("hello")
    assert manager.active_connections == [healthy]


@pytest.mark.asyncio
async def test_streamer_sends_every_nth_frame() -> None:
    manager = ConnectionManager()
    manager.broadcast_text = AsyncMock()  # type: ignore[method-assign]
    manager.active_connections = [MagicMock()]
    streamer = FrameStreamer(manager, every_frames=2)

    for frame in range(1, 5):
        streamer.on_frame(frame, [{"op": "clear", "width": 10, "height": 10}])
    await asyncio.sleep(0)

    frames = [json.loads(call.args[0])["frame"] for call in manager.broadcast_text.await_args_list]
    assert frames == [2, 4]


@pytest.mark.asyncio
async def test_streamer_skips_without_clients() -> None:
    manager = ConnectionManager()
    manager.broadcast_text = AsyncMock()  # type: ignore[method-assign]
    streamer = FrameStreamer(manager, every_frames=1)

    streamer.on_frame(1, [])
    await asyncio.sleep(0)

    manager.broadcast_text.assert_not_awaited()


@pytest.mark.asyncio
async def test_streamer_publishes_game_over() -> None:
    manager = ConnectionManager()
    manager.broadcast_text = AsyncMock()  # type: ignore[method-assign]
    streamer = FrameStreamer(manager)

    streamer.publish_game_over(GameColor.GREEN, 120)
    await asyncio.sleep(0)

    sent = json.loads(manager.broadcast_text.await_args.args[0])
    assert sent == {"type": "game_over", "winner": "green", "frame": 120}


def test_streamer_without_loop_is_silent() -> None:
    manager = ConnectionManager()
    manager.active_connections = [MagicMock()]
    streamer = FrameStreamer(manager, every_frames=1)

    streamer.on_frame(1, [])

    assert streamer._tasks == set()


def test_websocket_connect_and_resize(app_state: AppState) -> None:
    client = TestClient(create_app(engine=app_state.engine, surface=app_state.surface))

    with client.websocket_connect("/api/ws/arena-stream") as websocket:
        websocket.send_text("ping")
        websocket.send_text(json.dumps({"type": "resize", "width": 800, "height": 700}))

    # Resize handling happens on the server side before the disconnect
    assert (app_state.surface.width, app_state.surface.height) == (800.0, 700.0)


def test_rejected_resize_keeps_arena(app_state: AppState) -> None:
    before = app_state.engine.arena

    handle_client_message(app_state, '{"type": "resize", "width": NaN, "height": 600}')

    assert app_state.engine.arena == before
