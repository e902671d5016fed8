"""Simulation engine — lifecycle, frame loop and battle resolution.

This module provides the SimulationEngine class which owns the agents and
particles of a run and advances them one frame at a time: force field,
integration, boundaries, particles, collisions and battles, rendering, and
the win check.
"""

from __future__ import annotations

import math
import random
from enum import Enum
from typing import Callable, Optional

import structlog

from rps_arena.config import Settings
from rps_arena.core.agent import Agent
from rps_arena.core.agent_pool import AgentPool
from rps_arena.core.arena import (
    ArenaConfig,
    ArenaShape,
    ArenaSize,
    base_extent,
    clamp_to_bounding_box,
    create_arena_config,
    random_arena,
)
from rps_arena.core.colors import GameColor, battle_winner
from rps_arena.core.particles import Particle, collision_burst, split_burst, update_particles
from rps_arena.core.physics import ArenaPhysics
from rps_arena.core.scheduler import FrameScheduler
from rps_arena.core.telemetry import EngineSnapshot, collect_snapshot
from rps_arena.render.canvas import DrawingSurface, RenderContext
from rps_arena.render.painter import paint_frame

logger = structlog.get_logger()

GameEndCallback = Callable[[GameColor], None]


class EngineState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED_WON = "stopped_won"


class EngineStateError(RuntimeError):
    """Raised when a lifecycle call is not valid in the engine's current state."""


class SimulationEngine:
    """Runs one battle at a time between the three color populations.

    Coordinates:
    - Lifecycle (idle → running → stopped_won, reset back to idle)
    - Arena selection and population seeding
    - Per-frame physics, particles, battles and rendering
    - The single end-of-run notification to the host
    """

    def __init__(
        self,
        settings: Settings,
        scheduler: FrameScheduler,
        rng: Optional[random.Random] = None,
        physics: Optional[ArenaPhysics] = None,
    ) -> None:
        """Initialize the engine in the idle state.

        Args:
            settings: Application settings with simulation constants.
            scheduler: Frame scheduler the engine uses for its own continuation.
            rng: Random source for arenas, seeding, splits and particles.
                Defaults to a Random seeded from settings.random_seed.
            physics: Physics rules. Defaults to one built from settings.
        """
        self.settings = settings
        self.scheduler = scheduler
        self.rng = rng if rng is not None else random.Random(settings.random_seed)
        self.physics = physics or ArenaPhysics(
            interaction_radius=settings.interaction_radius,
            attraction_force=settings.attraction_force,
            repulsion_force=settings.repulsion_force,
            base_speed=settings.base_speed,
            speed_cap_factor=settings.speed_cap_factor,
        )

        # Cells must be at least as wide as the largest query distance
        self.pool = AgentPool(cell_size=max(self.physics.interaction_radius, settings.agent_size))
        self.particles: list[Particle] = []

        self.state = EngineState.IDLE
        self.surface: Optional[DrawingSurface] = None
        self.context: Optional[RenderContext] = None
        self.on_end: Optional[GameEndCallback] = None

        self.arena = create_arena_config(ArenaShape.SQUARE, ArenaSize.MEDIUM, 500.0)
        self._forced_arena: Optional[tuple[ArenaShape, ArenaSize]] = None

        # Per-run counters
        self.frame_counter = 0
        self.battle_count = 0
        self.winner: Optional[GameColor] = None

        # Bumped on every start/reset so stale continuations can detect themselves
        self._run_token = 0

    # -------------------------------------------------------------------------
    # Host-facing lifecycle
    # -------------------------------------------------------------------------

    def attach(
        self,
        surface: DrawingSurface,
        context: RenderContext,
        on_end: GameEndCallback,
    ) -> None:
        """Connect the engine to a drawing surface and the host's win callback.

        Args:
            surface: Surface whose extents size the arena.
            context: Rendering context frames are drawn into.
            on_end: Called once with the winning color when a run ends.

        Raises:
            ValueError: If the surface leaves no room for the arena margin.
        """
        # Later resizes must leave a positive arena
        surface.min_extent = max(surface.min_extent, self.settings.surface_margin)
        self.surface = surface
        self.context = context
        self.on_end = on_end
        self.on_surface_resized()
        logger.info("engine_attached", surface_width=surface.width, surface_height=surface.height)

    def start(self, *, seed_population: bool = True) -> None:
        """Begin a new run.

        Args:
            seed_population: When False the run starts with an empty pool and
                the caller adds agents with spawn_agent() before the first
                frame. Used for staged scenarios.

        Raises:
            EngineStateError: If the engine is not attached or already running.
        """
        if self.surface is None or self.context is None:
            raise EngineStateError("Engine must be attached before start()")
        if self.state is EngineState.RUNNING:
            raise EngineStateError("Engine is already running; reset() first")

        self._run_token += 1
        self.scheduler.cancel()
        self.pool.clear()
        self.particles = []
        self.frame_counter = 0
        self.battle_count = 0
        self.winner = None

        self.arena = self._choose_arena()
        logger.info(
            "arena_selected",
            shape=self.arena.shape.value,
            size=self.arena.size.value,
            width=round(self.arena.width, 1),
            height=round(self.arena.height, 1),
            forced=self._forced_arena is not None,
        )

        if seed_population:
            self._seed_population()

        self.state = EngineState.RUNNING
        logger.info("engine_started", agents=len(self.pool), run=self._run_token)
        self._schedule_next()

    def reset(self) -> None:
        """Abort the current run and return to idle.

        Clears agents and particles, cancels the pending frame, and clears
        the drawing surface. Safe to call in any state.
        """
        self._run_token += 1
        self.scheduler.cancel()
        self.state = EngineState.IDLE
        self.pool.clear()
        self.particles = []
        self.frame_counter = 0
        self.battle_count = 0
        self.winner = None

        if self.surface is not None and self.context is not None:
            self.context.begin_frame(self.surface.width, self.surface.height)
            self.context.end_frame()

        logger.info("engine_reset", run=self._run_token)

    def teardown(self) -> None:
        """Release the engine on host shutdown.

        Same as reset(), and the win callback is dropped so nothing can
        reach the host afterwards.
        """
        self.reset()
        self.on_end = None
        logger.info("engine_teardown")

    def set_arena(self, shape: ArenaShape, size: ArenaSize) -> ArenaConfig:
        """Pin the arena used by every following start() instead of a random one.

        Returns:
            The resolved arena, already applied to the idle engine.

        Raises:
            EngineStateError: If a run is in progress; an arena is fixed for
                the duration of a run.
            ValueError: If shape or size is not a known member.
        """
        if self.state is EngineState.RUNNING:
            raise EngineStateError("Cannot change the arena while a run is in progress")

        self.arena = create_arena_config(shape, size, self._base_extent())
        self._forced_arena = (self.arena.shape, self.arena.size)
        logger.info("arena_pinned", shape=self.arena.shape.value, size=self.arena.size.value)
        return self.arena

    def release_arena(self) -> None:
        """Go back to picking a random arena on each start()."""
        self._forced_arena = None

    def on_surface_resized(self) -> None:
        """Recompute the arena's pixel extents after the surface changed size.

        Shape and size class stay the same; agents and particles are not
        touched.
        """
        self.arena = create_arena_config(self.arena.shape, self.arena.size, self._base_extent())
        logger.debug(
            "arena_resized",
            width=round(self.arena.width, 1),
            height=round(self.arena.height, 1),
        )

    # -------------------------------------------------------------------------
    # Read-only views
    # -------------------------------------------------------------------------

    @property
    def agents(self) -> list[Agent]:
        return self.pool.agents()

    def population(self) -> dict[GameColor, int]:
        """Live agent count per color."""
        return self.pool.count_by_color()

    def snapshot(self) -> EngineSnapshot:
        return collect_snapshot(self)

    def spawn_agent(
        self,
        color: GameColor,
        x: float,
        y: float,
        vx: float = 0.0,
        vy: float = 0.0,
    ) -> Agent:
        """Add a single agent of the configured size to the current run."""
        return self.pool.spawn(x=x, y=y, color=color, vx=vx, vy=vy, size=self.settings.agent_size)

    # -------------------------------------------------------------------------
    # Frame loop
    # -------------------------------------------------------------------------

    def advance_frame(self) -> None:
        """Advance the simulation by one frame.

        Steps, in this order:
        1. Force field (chase prey, flee predators, speed cap)
        2. Integration
        3. Boundary handling
        4. Particle update
        5. Collisions and battles
        6. Rendering
        7. Win check, then either stop or schedule the next frame

        Note:
            Does nothing unless the engine is running.
        """
        if self.state is not EngineState.RUNNING:
            return

        self.frame_counter += 1

        self._apply_forces()
        self._move_agents()
        self.particles = update_particles(
            self.particles,
            gravity=self.settings.particle_gravity,
            damping=self.settings.particle_damping,
            life_decrement=self.settings.particle_life_decrement,
        )
        self._resolve_collisions()
        self._render()

        if self.frame_counter % self.settings.stats_interval_frames == 0:
            self._log_statistics()

        self._check_win_condition()

        if self.state is EngineState.RUNNING:
            self._schedule_next()

    def _schedule_next(self) -> None:
        token = self._run_token
        self.scheduler.schedule(lambda: self._tick(token))

    def _tick(self, token: int) -> None:
        # A continuation scheduled by a run that has since been reset or restarted
        if token != self._run_token:
            return
        self.advance_frame()

    def _apply_forces(self) -> None:
        """Apply the color force field to every agent.

        Forces depend only on positions, which this step does not change, so
        every agent sees the same start-of-frame layout.
        """
        self.pool.rebuild_spatial_grid()
        radius = self.physics.interaction_radius

        for agent in self.pool:
            neighbors = self.pool.nearby(agent.x, agent.y, radius)
            self.physics.apply_force(agent, self.physics.force_from(agent, neighbors))

    def _move_agents(self) -> None:
        """Integrate every agent, then keep every agent inside the arena."""
        agents = self.pool.agents()
        for agent in agents:
            self.physics.integrate(agent)

        cx, cy = self._center()
        for agent in agents:
            self.physics.apply_bounds(agent, self.arena, cx, cy)

    def _resolve_collisions(self) -> None:
        """Detect colliding pairs and resolve battles between different colors.

        Pairs are visited in ascending id order. An agent marked as a loser
        is skipped for the rest of the scan. Losers are removed and clones
        added only after the whole scan.

        Note:
            Candidates come from a grid with cells one agent diameter wide;
            two agents can only touch when their centers are closer than that.
        """
        to_remove: set[int] = set()
        births: list[tuple[GameColor, float, float, float, float]] = []

        battles = 0
        for a, b in self.pool.candidate_pairs(cell_size=self.settings.agent_size):
            if a.id in to_remove or b.id in to_remove:
                continue
            # Same-colored agents pass through each other
            if a.color == b.color:
                continue
            if not a.is_colliding(b):
                continue

            self.physics.resolve_bounce(a, b)
            self.particles.extend(
                collision_burst(a, b, self.rng, count=self.settings.collision_particle_count)
            )

            winner_color = battle_winner(a.color, b.color)
            winner, loser = (a, b) if winner_color is a.color else (b, a)

            self.particles.extend(split_burst(winner, self.rng, count=self.settings.split_particle_count))
            to_remove.add(loser.id)
            births.append(self._split_clone(winner))
            battles += 1

        if battles:
            self.battle_count += battles
            logger.debug("battles_resolved", frame=self.frame_counter, battles=battles)

        if to_remove:
            self.pool.remove_many(to_remove)
        for color, x, y, vx, vy in births:
            self.spawn_agent(color, x, y, vx, vy)

    def _split_clone(self, winner: Agent) -> tuple[GameColor, float, float, float, float]:
        """Position and velocity of the clone a battle winner splits off."""
        angle = self.rng.random() * math.pi * 2.0
        offset = self.settings.split_offset
        jitter = self.settings.split_jitter
        return (
            winner.color,
            winner.x + math.cos(angle) * offset,
            winner.y + math.sin(angle) * offset,
            winner.vx + (self.rng.random() - 0.5) * jitter,
            winner.vy + (self.rng.random() - 0.5) * jitter,
        )

    def _render(self) -> None:
        if self.surface is None or self.context is None:
            return
        paint_frame(
            self.context,
            self.surface,
            self.arena,
            self.pool,
            self.particles,
            self.pool.count_by_color(),
        )

    def _check_win_condition(self) -> None:
        """Stop the run once a single color is left.

        With no agents at all nobody has won: the run stops and returns to
        idle without notifying the host.
        """
        counts = self.pool.count_by_color()
        alive = [color for color, count in counts.items() if count > 0]

        if len(alive) == 1:
            self._finish(alive[0])
        elif not alive:
            self._run_token += 1
            self.scheduler.cancel()
            self.state = EngineState.IDLE
            logger.warning("no_survivors", frame=self.frame_counter, battles=self.battle_count)

    def _finish(self, winner: GameColor) -> None:
        self.state = EngineState.STOPPED_WON
        self.scheduler.cancel()
        self.winner = winner

        logger.info(
            "game_won",
            winner=winner.value,
            frame=self.frame_counter,
            battles=self.battle_count,
            survivors=len(self.pool),
        )

        if self.on_end is None:
            return
        try:
            self.on_end(winner)
        except Exception as exc:
            logger.error(
                "game_end_callback_failed",
                winner=winner.value,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise

    def _log_statistics(self) -> None:
        counts = self.pool.count_by_color()
        logger.info(
            "simulation_stats",
            frame=self.frame_counter,
            particles=len(self.particles),
            battles=self.battle_count,
            **{color.value: count for color, count in counts.items()},
        )

    # -------------------------------------------------------------------------
    # Arena and seeding
    # -------------------------------------------------------------------------

    def _base_extent(self) -> float:
        if self.surface is None:
            return base_extent(
                self.settings.surface_width,
                self.settings.surface_height,
                self.settings.surface_margin,
            )
        return base_extent(self.surface.width, self.surface.height, self.settings.surface_margin)

    def _center(self) -> tuple[float, float]:
        if self.surface is None:
            return (self.settings.surface_width / 2.0, self.settings.surface_height / 2.0)
        return self.surface.center

    def _choose_arena(self) -> ArenaConfig:
        extent = self._base_extent()
        if self._forced_arena is not None:
            shape, size = self._forced_arena
            return create_arena_config(shape, size, extent)
        return random_arena(self.rng, extent)

    def _seed_population(self) -> None:
        """Create one group per color around its anchor.

        Blue starts near the top edge, red near the bottom-left corner and
        green near the bottom-right corner.
        """
        cx, cy = self._center()
        half_w = self.arena.width / 2.0
        half_h = self.arena.height / 2.0
        inset = self.settings.anchor_inset

        anchors = {
            GameColor.BLUE: (cx, cy - half_h + inset),
            GameColor.RED: (cx - half_w + inset, cy + half_h - inset),
            GameColor.GREEN: (cx + half_w - inset, cy + half_h - inset),
        }

        for color, anchor in anchors.items():
            self._spawn_group(color, anchor)

        logger.info(
            "population_seeded",
            per_color=self.settings.agents_per_color,
            total=len(self.pool),
        )

    def _spawn_group(self, color: GameColor, anchor: tuple[float, float]) -> None:
        cx, cy = self._center()
        speed = self.settings.base_speed

        for _ in range(self.settings.agents_per_color):
            angle = self.rng.random() * math.pi * 2.0
            distance = self.rng.random() * self.settings.spread_radius
            heading = self.rng.random() * math.pi * 2.0

            agent = self.spawn_agent(
                color,
                anchor[0] + math.cos(angle) * distance,
                anchor[1] + math.sin(angle) * distance,
                math.cos(heading) * speed,
                math.sin(heading) * speed,
            )
            clamp_to_bounding_box(agent, self.arena, cx, cy)
