"""Arena physics — chase/flee forces, integration, boundaries and bounces.

This module provides physics for agents including:
- The color force field (attraction to prey, repulsion from predators)
- Speed limiting so accumulated forces cannot run away
- Explicit Euler integration, one step per frame
- Boundary enforcement delegated to the arena geometry
- Collision bounce that keeps each agent's own speed
"""

from __future__ import annotations

import math
from typing import Iterable

from rps_arena.core.agent import Agent
from rps_arena.core.arena import ArenaConfig, apply_boundary
from rps_arena.core.colors import relationship


class ArenaPhysics:
    """Physics rules for agents in an arena.

    Handles:
    - Force field between differently colored agents
    - Speed cap relative to the cruising speed
    - Position integration
    - Boundary reflection
    - Velocity reflection and overlap separation on collision
    """

    def __init__(
        self,
        interaction_radius: float = 75.0,
        attraction_force: float = 0.15,
        repulsion_force: float = 0.2,
        base_speed: float = 2.5,
        speed_cap_factor: float = 1.8,
    ) -> None:
        """Initialize arena physics.

        Args:
            interaction_radius: Distance beyond which agents ignore each other.
            attraction_force: Pull toward prey at zero distance.
            repulsion_force: Push away from a predator at zero distance.
            base_speed: Cruising speed agents are seeded with (pixels/frame).
            speed_cap_factor: Maximum speed as a multiple of base_speed.
        """
        self.interaction_radius = interaction_radius
        self.attraction_force = attraction_force
        self.repulsion_force = repulsion_force
        self.base_speed = base_speed
        self.speed_cap_factor = speed_cap_factor

    @property
    def max_speed(self) -> float:
        return self.base_speed * self.speed_cap_factor

    def force_from(self, agent: Agent, neighbors: Iterable[Agent]) -> tuple[float, float]:
        """Sum the force field acting on an agent.

        Args:
            agent: The agent being pushed.
            neighbors: Candidate agents; same-colored ones, the agent itself,
                and anything beyond the interaction radius contribute nothing.

        Returns:
            The accumulated (dvx, dvy) velocity delta.

        Note:
            Both forces fall off linearly from their maximum at zero distance
            to zero at the interaction radius. Exactly overlapping centers
            have no direction and are skipped.
        """
        total_x = 0.0
        total_y = 0.0

        for other in neighbors:
            if other.id == agent.id or other.color == agent.color:
                continue

            dx = other.x - agent.x
            dy = other.y - agent.y
            distance = math.hypot(dx, dy)

            if distance > self.interaction_radius or distance == 0.0:
                continue

            nx = dx / distance
            ny = dy / distance
            falloff = 1.0 - distance / self.interaction_radius

            kind = relationship(agent.color, other.color)
            if kind == "attraction":
                force = self.attraction_force * falloff
                total_x += nx * force
                total_y += ny * force
            elif kind == "repulsion":
                force = self.repulsion_force * falloff
                total_x -= nx * force
                total_y -= ny * force

        return total_x, total_y

    def apply_force(self, agent: Agent, force: tuple[float, float]) -> None:
        """Add a velocity delta to an agent, then enforce the speed cap."""
        agent.vx += force[0]
        agent.vy += force[1]
        self.clamp_speed(agent)

    def clamp_speed(self, agent: Agent) -> None:
        """Scale the velocity down to max_speed, keeping its direction."""
        speed = agent.speed
        max_speed = self.max_speed
        if speed > max_speed:
            ratio = max_speed / speed
            agent.vx *= ratio
            agent.vy *= ratio

    def integrate(self, agent: Agent) -> None:
        """Move an agent by its velocity (one Euler step)."""
        agent.x += agent.vx
        agent.y += agent.vy

    def apply_bounds(
        self, agent: Agent, arena: ArenaConfig, center_x: float, center_y: float
    ) -> None:
        """Keep an agent inside the arena centered at (center_x, center_y)."""
        apply_boundary(agent, arena, center_x, center_y)

    def resolve_bounce(self, a: Agent, b: Agent) -> None:
        """Bounce two colliding agents off each other.

        Args:
            a: First agent in collision.
            b: Second agent in collision.

        Note:
            This is not a momentum-conserving impulse. Each velocity is
            mirrored about the collision normal and then rescaled to the
            agent's own speed before the hit. Overlapping agents are then
            pushed apart along the normal, each by half the overlap.
            Coincident centers have no normal and are left untouched.
        """
        dx = b.x - a.x
        dy = b.y - a.y
        distance = math.hypot(dx, dy)

        if distance == 0.0:
            return

        nx = dx / distance
        ny = dy / distance

        speed_a = a.speed
        speed_b = b.speed

        dot_a = a.vx * nx + a.vy * ny
        dot_b = b.vx * nx + b.vy * ny

        a.vx -= 2.0 * dot_a * nx
        a.vy -= 2.0 * dot_a * ny
        b.vx -= 2.0 * dot_b * nx
        b.vy -= 2.0 * dot_b * ny

        # Restore pre-collision speeds
        new_speed_a = a.speed
        new_speed_b = b.speed
        if new_speed_a > 0:
            a.vx = a.vx / new_speed_a * speed_a
            a.vy = a.vy / new_speed_a * speed_a
        if new_speed_b > 0:
            b.vx = b.vx / new_speed_b * speed_b
            b.vy = b.vy / new_speed_b * speed_b

        overlap = (a.size + b.size) / 2.0 - distance
        if overlap > 0:
            separation_x = nx * overlap * 0.5
            separation_y = ny * overlap * 0.5
            a.x -= separation_x
            a.y -= separation_y
            b.x += separation_x
            b.y += separation_y
