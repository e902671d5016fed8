"""Transient particles — short-lived sparks emitted by battles.

Particles are purely visual. They are created in bursts when two agents
collide or when a winner splits, drift under a little gravity and drag, and
are discarded once their life runs out.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from enum import Enum

from rps_arena.core.agent import Agent
from rps_arena.core.colors import GameColor


class ParticleKind(str, Enum):
    COLLISION = "collision"
    SPLIT = "split"


@dataclass
class Particle:
    """A single spark.

    Attributes:
        life: Remaining life in seconds of a nominal 60 FPS clock.
        max_life: Life at creation, used to compute the fade alpha.
    """

    x: float
    y: float
    vx: float
    vy: float
    color: GameColor
    size: float
    life: float
    max_life: float
    kind: ParticleKind

    @property
    def alpha(self) -> float:
        """Opacity in [0, 1], fading linearly with remaining life."""
        if self.max_life <= 0:
            return 0.0
        return max(0.0, min(1.0, self.life / self.max_life))


def collision_burst(
    first: Agent,
    second: Agent,
    rng: random.Random,
    count: int = 6,
) -> list[Particle]:
    """Create sparks at the midpoint of two colliding agents.

    Args:
        first: One agent of the colliding pair.
        second: The other agent.
        rng: Random source for speed, size, life and position jitter.
        count: Number of particles; colors alternate between the two agents.

    Returns:
        The new particles, spread evenly around the full circle.
    """
    mid_x = (first.x + second.x) / 2.0
    mid_y = (first.y + second.y) / 2.0
    particles: list[Particle] = []

    for i in range(count):
        angle = (i / count) * math.pi * 2.0
        speed = 3.0 + rng.random() * 4.0
        size = 3.0 + rng.random() * 4.0
        life = 0.5 + rng.random() * 0.5

        particles.append(
            Particle(
                x=mid_x + (rng.random() - 0.5) * 20.0,
                y=mid_y + (rng.random() - 0.5) * 20.0,
                vx=math.cos(angle) * speed,
                vy=math.sin(angle) * speed,
                color=first.color if i % 2 == 0 else second.color,
                size=size,
                life=life,
                max_life=life,
                kind=ParticleKind.COLLISION,
            )
        )

    return particles


def split_burst(agent: Agent, rng: random.Random, count: int = 8) -> list[Particle]:
    """Create sparks around an agent that just won a battle and split."""
    particles: list[Particle] = []

    for i in range(count):
        angle = (i / count) * math.pi * 2.0
        speed = 2.0 + rng.random() * 3.0
        size = 2.0 + rng.random() * 3.0
        life = 0.8 + rng.random() * 0.7

        particles.append(
            Particle(
                x=agent.x + (rng.random() - 0.5) * agent.size,
                y=agent.y + (rng.random() - 0.5) * agent.size,
                vx=math.cos(angle) * speed,
                vy=math.sin(angle) * speed,
                color=agent.color,
                size=size,
                life=life,
                max_life=life,
                kind=ParticleKind.SPLIT,
            )
        )

    return particles


def update_particles(
    particles: list[Particle],
    gravity: float = 0.1,
    damping: float = 0.98,
    life_decrement: float = 1.0 / 60.0,
) -> list[Particle]:
    """Advance every particle by one frame and drop the expired ones.

    Args:
        particles: Particles alive before this frame.
        gravity: Added to vy each frame (screen y grows downward).
        damping: Multiplies both velocity components each frame.
        life_decrement: Life consumed per frame, independent of wall-clock time.

    Returns:
        A new list holding only particles with life > 0.
    """
    for particle in particles:
        particle.x += particle.vx
        particle.y += particle.vy
        particle.life -= life_decrement

        particle.vy += gravity
        particle.vx *= damping
        particle.vy *= damping

    return [particle for particle in particles if particle.life > 0]
