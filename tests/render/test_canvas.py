"""Tests for the drawing surface and the display-list canvas."""

from __future__ import annotations

import pytest

from rps_arena.render.canvas import Command, DisplayListCanvas, DrawingSurface


def test_surface_center_and_resize() -> None:
    surface = DrawingSurface(width=800, height=600)
    assert surface.center == (400.0, 300.0)

    surface.resize(200, 100)
    assert (surface.width, surface.height) == (200, 100)


@pytest.mark.parametrize("width,height", [(0, 100), (100, -1)])
def test_surface_rejects_non_positive_extents(width: float, height: float) -> None:
    surface = DrawingSurface(width=800, height=600)

    with pytest.raises(ValueError):
        surface.resize(width, height)

    assert (surface.width, surface.height) == (800, 600)


def test_canvas_records_one_frame() -> None:
    canvas = DisplayListCanvas()

    canvas.begin_frame(100, 50)
    canvas.fill_circle(10.0, 20.0, 5.0, "#ffffff", alpha=0.5)
    canvas.stroke_polygon([(0.0, 0.0), (1.0, 1.0)], "#000000", line_width=2.0)
    canvas.fill_text("Blue: 3", 10.0, 20.0, "#3b82f6", align="left")
    canvas.end_frame()

    assert canvas.frame == 1
    assert [c["op"] for c in canvas.last_frame] == ["clear", "fill_circle", "stroke_polygon", "fill_text"]
    assert canvas.last_frame[1] == {
        "op": "fill_circle",
        "x": 10.0,
        "y": 20.0,
        "r": 5.0,
        "color": "#ffffff",
        "alpha": 0.5,
    }
    assert canvas.last_frame[2]["points"] == [[0.0, 0.0], [1.0, 1.0]]


def test_canvas_notifies_listener() -> None:
    received: list[tuple[int, list[Command]]] = []
    canvas = DisplayListCanvas(on_frame=lambda frame, commands: received.append((frame, commands)))

    for _ in range(2):
        canvas.begin_frame(10, 10)
        canvas.fill_rect(0.0, 0.0, 5.0, 5.0, "#000000")
        canvas.end_frame()

    assert [frame for frame, _ in received] == [1, 2]
    assert received[1][1][1]["op"] == "fill_rect"


def test_end_frame_without_begin_is_ignored() -> None:
    received: list[int] = []
    canvas = DisplayListCanvas(on_frame=lambda frame, commands: received.append(frame))

    canvas.end_frame()

    assert canvas.frame == 0
    assert received == []


def test_begin_frame_discards_unfinished_frame() -> None:
    canvas = DisplayListCanvas()

    canvas.begin_frame(10, 10)
    canvas.fill_rect(0.0, 0.0, 1.0, 1.0, "#000000")
    canvas.begin_frame(20, 20)
    canvas.end_frame()

    assert canvas.last_frame == [{"op": "clear", "width": 20, "height": 20}]


@pytest.mark.parametrize("width", [float("nan"), float("inf")])
def test_surface_rejects_non_finite_extents(width: float) -> None:
    surface = DrawingSurface(width=800, height=600)

    with pytest.raises(ValueError):
        surface.resize(width, 600)

    assert surface.width == 800


def test_surface_min_extent() -> None:
    surface = DrawingSurface(width=800, height=600, min_extent=20.0)

    with pytest.raises(ValueError):
        surface.resize(20, 600)

    surface.resize(21, 600)
    assert surface.width == 21


def test_surface_validates_on_creation() -> None:
    with pytest.raises(ValueError):
        DrawingSurface(width=-1, height=600)
