"""Tests for arena geometry and boundary handling."""

from __future__ import annotations

import math
import random

import pytest

from rps_arena.core.agent import Agent
from rps_arena.core.arena import (
    ArenaConfig,
    ArenaShape,
    ArenaSize,
    apply_boundary,
    base_extent,
    circular_radius,
    clamp_to_bounding_box,
    create_arena_config,
    hexagon_outline,
    random_arena,
    reflect_circular,
    reflect_square,
    square_bounds,
    triangle_outline,
)
from rps_arena.core.colors import GameColor


@pytest.fixture
def square() -> ArenaConfig:
    """Large square arena, 400 px wide."""
    return create_arena_config(ArenaShape.SQUARE, ArenaSize.LARGE, 400.0)


@pytest.fixture
def circle() -> ArenaConfig:
    return create_arena_config(ArenaShape.CIRCLE, ArenaSize.LARGE, 400.0)


def make_agent(x: float, y: float, vx: float = 0.0, vy: float = 0.0) -> Agent:
    return Agent(id=1, color=GameColor.BLUE, x=x, y=y, vx=vx, vy=vy, size=20.0)


def test_base_extent_uses_smaller_side() -> None:
    assert base_extent(800, 600) == 580
    assert base_extent(300, 500, margin=10) == 290


@pytest.mark.parametrize(
    "size,expected_width",
    [(ArenaSize.SMALL, 280.0), (ArenaSize.MEDIUM, 340.0), (ArenaSize.LARGE, 400.0)],
)
def test_size_multipliers(size: ArenaSize, expected_width: float) -> None:
    arena = create_arena_config(ArenaShape.SQUARE, size, 400.0)
    assert arena.width == pytest.approx(expected_width)
    assert arena.height == pytest.approx(expected_width)


@pytest.mark.parametrize("shape", [ArenaShape.HEXAGON, ArenaShape.TRIANGLE])
def test_polygon_aspect_ratio(shape: ArenaShape) -> None:
    arena = create_arena_config(shape, ArenaSize.LARGE, 400.0)
    assert arena.height == pytest.approx(400.0 * 0.866)


def test_create_arena_config_accepts_raw_values() -> None:
    arena = create_arena_config("circle", "small", 100.0)  # type: ignore[arg-type]
    assert arena.shape is ArenaShape.CIRCLE
    assert arena.size is ArenaSize.SMALL


def test_create_arena_config_rejects_unknown_shape() -> None:
    with pytest.raises(ValueError):
        create_arena_config("octagon", ArenaSize.LARGE, 400.0)  # type: ignore[arg-type]

    with pytest.raises(ValueError):
        create_arena_config(ArenaShape.SQUARE, "huge", 400.0)  # type: ignore[arg-type]


def test_arena_label() -> None:
    arena = create_arena_config(ArenaShape.HEXAGON, ArenaSize.LARGE, 400.0)
    assert arena.label == "Hexagon Large"


def test_random_arena_is_reproducible() -> None:
    first = [random_arena(random.Random(3), 500.0) for _ in range(5)]
    second = [random_arena(random.Random(3), 500.0) for _ in range(5)]
    assert first == second


def test_random_arena_covers_all_shapes() -> None:
    rng = random.Random(11)
    shapes = {random_arena(rng, 500.0).shape for _ in range(200)}
    assert shapes == set(ArenaShape)


def test_square_bounds_inset_by_half_size(square: ArenaConfig) -> None:
    left, right, top, bottom = square_bounds(square, 300.0, 300.0, 20.0)
    assert (left, right, top, bottom) == (110.0, 490.0, 110.0, 490.0)


def test_reflect_square_bounces_off_right_edge(square: ArenaConfig) -> None:
    agent = make_agent(495.0, 300.0, vx=3.0, vy=1.0)
    reflect_square(agent, square, 300.0, 300.0)

    assert agent.x == 490.0
    assert agent.vx == -3.0
    assert agent.vy == 1.0


def test_reflect_square_touching_edge_counts_as_hit(square: ArenaConfig) -> None:
    agent = make_agent(110.0, 300.0, vx=-2.0)
    reflect_square(agent, square, 300.0, 300.0)

    assert agent.x == 110.0
    assert agent.vx == 2.0


def test_reflect_square_corner_flips_both_axes(square: ArenaConfig) -> None:
    agent = make_agent(100.0, 500.0, vx=-1.0, vy=2.0)
    reflect_square(agent, square, 300.0, 300.0)

    assert (agent.x, agent.y) == (110.0, 490.0)
    assert (agent.vx, agent.vy) == (1.0, -2.0)


def test_reflect_circular_inside_is_untouched(circle: ArenaConfig) -> None:
    agent = make_agent(350.0, 300.0, vx=2.0, vy=0.5)
    reflect_circular(agent, circle, 300.0, 300.0)

    assert (agent.x, agent.y, agent.vx, agent.vy) == (350.0, 300.0, 2.0, 0.5)


def test_reflect_circular_places_agent_on_boundary(circle: ArenaConfig) -> None:
    radius = circular_radius(circle, 20.0)
    agent = make_agent(300.0 + radius + 5.0, 300.0, vx=2.0, vy=1.0)
    reflect_circular(agent, circle, 300.0, 300.0)

    assert agent.x == pytest.approx(300.0 + radius)
    assert agent.y == pytest.approx(300.0)
    # Radial component flipped, tangential kept
    assert agent.vx == pytest.approx(-2.0)
    assert agent.vy == pytest.approx(1.0)


def test_reflect_circular_diagonal_keeps_speed(circle: ArenaConfig) -> None:
    agent = make_agent(500.0, 500.0, vx=1.0, vy=2.0)
    speed = agent.speed
    reflect_circular(agent, circle, 300.0, 300.0)

    distance = math.hypot(agent.x - 300.0, agent.y - 300.0)
    assert distance == pytest.approx(circular_radius(circle, 20.0))
    assert agent.speed == pytest.approx(speed)


@pytest.mark.parametrize("shape", [ArenaShape.CIRCLE, ArenaShape.HEXAGON, ArenaShape.TRIANGLE])
def test_round_shapes_share_circular_boundary(shape: ArenaShape) -> None:
    arena = create_arena_config(shape, ArenaSize.MEDIUM, 400.0)
    agent = make_agent(900.0, 300.0, vx=1.0)
    apply_boundary(agent, arena, 300.0, 300.0)

    assert math.hypot(agent.x - 300.0, agent.y - 300.0) == pytest.approx(circular_radius(arena, 20.0))


def test_apply_boundary_rejects_unknown_shape() -> None:
    arena = ArenaConfig(shape="octagon", size=ArenaSize.LARGE, width=400.0, height=400.0)  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        apply_boundary(make_agent(0.0, 0.0), arena, 300.0, 300.0)


def test_clamp_to_bounding_box(square: ArenaConfig) -> None:
    agent = make_agent(-50.0, 1000.0, vx=1.0, vy=1.0)
    clamp_to_bounding_box(agent, square, 300.0, 300.0)

    assert (agent.x, agent.y) == (110.0, 490.0)
    assert (agent.vx, agent.vy) == (1.0, 1.0)


def test_outlines() -> None:
    hexagon = hexagon_outline(0.0, 0.0, 10.0)
    assert len(hexagon) == 6
    assert hexagon[0] == pytest.approx((10.0, 0.0))

    triangle = triangle_outline(0.0, 0.0, 10.0)
    assert len(triangle) == 3
    assert triangle[0] == (0.0, -10.0)
    for x, y in triangle:
        assert math.hypot(x, y) == pytest.approx(10.0)
