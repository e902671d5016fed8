"""Arena geometry — shapes, sizes, pixel extents and boundary handling.

The arena is always centered on the drawing surface. Square arenas reflect
agents per axis against their edges. Circle, hexagon and triangle arenas all
share the circular reflection routine: the polygons differ only in the
outline that gets drawn, so agents near a hexagon corner or triangle edge can
sit outside the drawn outline while staying inside the circle.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from rps_arena.core.agent import Agent


class ArenaShape(str, Enum):
    SQUARE = "square"
    CIRCLE = "circle"
    HEXAGON = "hexagon"
    TRIANGLE = "triangle"


class ArenaSize(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


SIZE_MULTIPLIERS: dict[ArenaSize, float] = {
    ArenaSize.SMALL: 0.7,
    ArenaSize.MEDIUM: 0.85,
    ArenaSize.LARGE: 1.0,
}

# height / width
ASPECT_RATIOS: dict[ArenaShape, float] = {
    ArenaShape.SQUARE: 1.0,
    ArenaShape.CIRCLE: 1.0,
    ArenaShape.HEXAGON: 0.866,
    ArenaShape.TRIANGLE: 0.866,
}


@dataclass(frozen=True)
class ArenaConfig:
    """Shape, size class and resolved pixel extents of one arena."""

    shape: ArenaShape
    size: ArenaSize
    width: float
    height: float

    @property
    def label(self) -> str:
        """Human-readable description, e.g. "Hexagon Large"."""
        return f"{self.shape.value.capitalize()} {self.size.value.capitalize()}"


def base_extent(surface_width: float, surface_height: float, margin: float = 20.0) -> float:
    """Largest arena extent that fits the drawing surface, minus a margin.

    Raises:
        ValueError: If the result is not a finite positive extent.
    """
    extent = min(surface_width, surface_height) - margin
    if not math.isfinite(extent) or extent <= 0:
        raise ValueError(
            f"Surface {surface_width}x{surface_height} leaves no room for a {margin} px margin"
        )
    return extent


def create_arena_config(shape: ArenaShape, size: ArenaSize, extent: float) -> ArenaConfig:
    """Resolve an arena's pixel extents.

    Args:
        shape: Arena shape.
        size: Arena size class.
        extent: Base extent derived from the drawing surface.

    Returns:
        ArenaConfig with width = extent * size multiplier and height scaled
        by the shape's aspect ratio.

    Raises:
        ValueError: If shape or size is not a known member.
    """
    try:
        multiplier = SIZE_MULTIPLIERS[ArenaSize(size)]
        aspect = ASPECT_RATIOS[ArenaShape(shape)]
    except (KeyError, ValueError) as exc:
        raise ValueError(f"Unsupported arena {shape!r}/{size!r}") from exc

    width = extent * multiplier
    return ArenaConfig(shape=ArenaShape(shape), size=ArenaSize(size), width=width, height=width * aspect)


def random_arena(rng: random.Random, extent: float) -> ArenaConfig:
    """Pick a shape and a size uniformly at random."""
    shape = rng.choice(list(ArenaShape))
    size = rng.choice(list(ArenaSize))
    return create_arena_config(shape, size, extent)


# -------------------------------------------------------------------------
# Boundary handling
# -------------------------------------------------------------------------


def square_bounds(
    arena: ArenaConfig, center_x: float, center_y: float, size: float
) -> tuple[float, float, float, float]:
    """Edges an agent center must stay within, as (left, right, top, bottom)."""
    half_w = arena.width / 2.0
    half_h = arena.height / 2.0
    inset = size / 2.0
    return (
        center_x - half_w + inset,
        center_x + half_w - inset,
        center_y - half_h + inset,
        center_y + half_h - inset,
    )


def circular_radius(arena: ArenaConfig, size: float) -> float:
    """Largest distance from the arena center an agent center may reach."""
    return arena.width / 2.0 - size / 2.0


def reflect_square(agent: Agent, arena: ArenaConfig, center_x: float, center_y: float) -> None:
    """Bounce an agent off the square's edges, one axis at a time.

    Touching an edge counts as hitting it: the velocity component along that
    axis is negated and the position is clamped back onto the edge.
    """
    left, right, top, bottom = square_bounds(arena, center_x, center_y, agent.size)

    if agent.x <= left or agent.x >= right:
        agent.vx = -agent.vx
        agent.x = max(left, min(right, agent.x))

    if agent.y <= top or agent.y >= bottom:
        agent.vy = -agent.vy
        agent.y = max(top, min(bottom, agent.y))


def reflect_circular(agent: Agent, arena: ArenaConfig, center_x: float, center_y: float) -> None:
    """Bounce an agent off a circle of radius width / 2 around the arena center.

    The velocity is mirrored about the radial normal and the agent is placed
    back on the boundary along the same radius.
    """
    dx = agent.x - center_x
    dy = agent.y - center_y
    distance = math.hypot(dx, dy)
    radius = circular_radius(arena, agent.size)

    # Zero distance has no normal; the agent is at the center and inside anyway
    if distance <= radius or distance == 0.0:
        return

    nx = dx / distance
    ny = dy / distance

    dot = agent.vx * nx + agent.vy * ny
    agent.vx -= 2.0 * dot * nx
    agent.vy -= 2.0 * dot * ny

    agent.x = center_x + nx * radius
    agent.y = center_y + ny * radius


BoundaryHandler = Callable[[Agent, ArenaConfig, float, float], None]

BOUNDARY_HANDLERS: dict[ArenaShape, BoundaryHandler] = {
    ArenaShape.SQUARE: reflect_square,
    ArenaShape.CIRCLE: reflect_circular,
    ArenaShape.HEXAGON: reflect_circular,
    ArenaShape.TRIANGLE: reflect_circular,
}


def apply_boundary(agent: Agent, arena: ArenaConfig, center_x: float, center_y: float) -> None:
    """Keep an agent inside the arena using the handler for its shape.

    Raises:
        ValueError: If the arena shape has no registered handler.
    """
    handler = BOUNDARY_HANDLERS.get(arena.shape)
    if handler is None:
        raise ValueError(f"No boundary handler for arena shape {arena.shape!r}")
    handler(agent, arena, center_x, center_y)


def clamp_to_bounding_box(
    agent: Agent, arena: ArenaConfig, center_x: float, center_y: float
) -> None:
    """Clamp an agent center into the arena's bounding box inset by its radius."""
    left, right, top, bottom = square_bounds(arena, center_x, center_y, agent.size)
    agent.x = max(left, min(right, agent.x))
    agent.y = max(top, min(bottom, agent.y))


# -------------------------------------------------------------------------
# Outlines (rendering only)
# -------------------------------------------------------------------------


def hexagon_outline(center_x: float, center_y: float, radius: float) -> list[tuple[float, float]]:
    """Six vertices at 60° steps, starting on the positive x axis."""
    return [
        (
            center_x + radius * math.cos(i * math.pi / 3.0),
            center_y + radius * math.sin(i * math.pi / 3.0),
        )
        for i in range(6)
    ]


def triangle_outline(center_x: float, center_y: float, radius: float) -> list[tuple[float, float]]:
    """Equilateral triangle pointing up, inscribed in the given radius."""
    cos30 = math.cos(math.pi / 6.0)
    sin30 = math.sin(math.pi / 6.0)
    return [
        (center_x, center_y - radius),
        (center_x - radius * cos30, center_y + radius * sin30),
        (center_x + radius * cos30, center_y + radius * sin30),
    ]
