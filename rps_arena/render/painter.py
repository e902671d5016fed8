"""Frame painter — draws the arena, particles, agents and overlays.

Painting only reads simulation state. The draw order is fixed: arena first,
then particles behind the agents, then the population counters and the
arena label on top.
"""

from __future__ import annotations

from typing import Callable, Iterable, Mapping

from rps_arena.core.agent import Agent
from rps_arena.core.arena import ArenaConfig, ArenaShape, hexagon_outline, triangle_outline
from rps_arena.core.colors import PALETTE, GameColor
from rps_arena.core.particles import Particle, ParticleKind
from rps_arena.render.canvas import DrawingSurface, RenderContext

ARENA_BORDER_COLOR = "#fbbf24"
ARENA_BORDER_WIDTH = 3.0
ARENA_FILL_COLOR = "rgba(255, 255, 255, 0.1)"
SPARK_CORE_COLOR = "#ffffff"
LABEL_COLOR = "#6b7280"
SCORE_FONT = "14px Inter, sans-serif"
LABEL_FONT = "12px Inter, sans-serif"


# -------------------------------------------------------------------------
# Arena
# -------------------------------------------------------------------------


def _draw_square(ctx: RenderContext, arena: ArenaConfig, cx: float, cy: float) -> None:
    x = cx - arena.width / 2.0
    y = cy - arena.height / 2.0
    ctx.fill_rect(x, y, arena.width, arena.height, ARENA_FILL_COLOR)
    ctx.stroke_rect(x, y, arena.width, arena.height, ARENA_BORDER_COLOR, ARENA_BORDER_WIDTH)


def _draw_circle(ctx: RenderContext, arena: ArenaConfig, cx: float, cy: float) -> None:
    radius = arena.width / 2.0
    ctx.fill_circle(cx, cy, radius, ARENA_FILL_COLOR)
    ctx.stroke_circle(cx, cy, radius, ARENA_BORDER_COLOR, ARENA_BORDER_WIDTH)


def _draw_hexagon(ctx: RenderContext, arena: ArenaConfig, cx: float, cy: float) -> None:
    points = hexagon_outline(cx, cy, arena.width / 2.0)
    ctx.fill_polygon(points, ARENA_FILL_COLOR)
    ctx.stroke_polygon(points, ARENA_BORDER_COLOR, ARENA_BORDER_WIDTH)


def _draw_triangle(ctx: RenderContext, arena: ArenaConfig, cx: float, cy: float) -> None:
    points = triangle_outline(cx, cy, arena.width / 2.0)
    ctx.fill_polygon(points, ARENA_FILL_COLOR)
    ctx.stroke_polygon(points, ARENA_BORDER_COLOR, ARENA_BORDER_WIDTH)


ARENA_PAINTERS: dict[ArenaShape, Callable[[RenderContext, ArenaConfig, float, float], None]] = {
    ArenaShape.SQUARE: _draw_square,
    ArenaShape.CIRCLE: _draw_circle,
    ArenaShape.HEXAGON: _draw_hexagon,
    ArenaShape.TRIANGLE: _draw_triangle,
}


def draw_arena(ctx: RenderContext, surface: DrawingSurface, arena: ArenaConfig) -> None:
    """Draw the arena fill and outline centered on the surface.

    Raises:
        ValueError: If the arena shape has no painter.
    """
    painter = ARENA_PAINTERS.get(arena.shape)
    if painter is None:
        raise ValueError(f"No painter for arena shape {arena.shape!r}")
    cx, cy = surface.center
    painter(ctx, arena, cx, cy)


# -------------------------------------------------------------------------
# Particles
# -------------------------------------------------------------------------


def _draw_collision_spark(ctx: RenderContext, particle: Particle) -> None:
    alpha = particle.alpha
    ctx.fill_circle(particle.x, particle.y, particle.size, PALETTE[particle.color], alpha)
    # Bright core
    ctx.fill_circle(particle.x, particle.y, particle.size * 0.4, SPARK_CORE_COLOR, alpha * 0.8)


def _draw_split_spark(ctx: RenderContext, particle: Particle) -> None:
    ctx.fill_circle(particle.x, particle.y, particle.size / 2.0, PALETTE[particle.color], particle.alpha)


PARTICLE_PAINTERS: dict[ParticleKind, Callable[[RenderContext, Particle], None]] = {
    ParticleKind.COLLISION: _draw_collision_spark,
    ParticleKind.SPLIT: _draw_split_spark,
}


def draw_particles(ctx: RenderContext, particles: Iterable[Particle]) -> None:
    """Draw every particle with its kind-specific look.

    Raises:
        ValueError: If a particle kind has no painter.
    """
    for particle in particles:
        painter = PARTICLE_PAINTERS.get(particle.kind)
        if painter is None:
            raise ValueError(f"No painter for particle kind {particle.kind!r}")
        painter(ctx, particle)


# -------------------------------------------------------------------------
# Agents and overlays
# -------------------------------------------------------------------------


def draw_agents(ctx: RenderContext, agents: Iterable[Agent]) -> None:
    for agent in agents:
        ctx.fill_circle(agent.x, agent.y, agent.radius, PALETTE[agent.color])


def draw_score(ctx: RenderContext, counts: Mapping[GameColor, int]) -> None:
    """Draw one "Color: count" line per population in the top-left corner."""
    y = 20.0
    for color in GameColor:
        ctx.fill_text(f"{color.label}: {counts.get(color, 0)}", 10.0, y, PALETTE[color], SCORE_FONT, "left")
        y += 20.0


def draw_arena_label(ctx: RenderContext, surface: DrawingSurface, arena: ArenaConfig) -> None:
    ctx.fill_text(
        arena.label,
        surface.width - 10.0,
        surface.height - 10.0,
        LABEL_COLOR,
        LABEL_FONT,
        "right",
    )


def paint_frame(
    ctx: RenderContext,
    surface: DrawingSurface,
    arena: ArenaConfig,
    agents: Iterable[Agent],
    particles: Iterable[Particle],
    counts: Mapping[GameColor, int],
) -> None:
    """Render one complete frame.

    Args:
        ctx: Rendering context to draw into.
        surface: Drawing surface, for the clear extents and the arena center.
        arena: Current arena.
        agents: Live agents.
        particles: Live particles.
        counts: Live agent count per color.
    """
    ctx.begin_frame(surface.width, surface.height)
    draw_arena(ctx, surface, arena)
    draw_particles(ctx, particles)
    draw_agents(ctx, agents)
    draw_score(ctx, counts)
    draw_arena_label(ctx, surface, arena)
    ctx.end_frame()
