"""Agent model — a colored, moving, combat-capable circle."""

from __future__ import annotations

import math
from dataclasses import dataclass

from rps_arena.core.colors import GameColor


@dataclass
class Agent:
    """A single circle in the arena.

    Agents carry only kinematic state and a color. The id doubles as the
    creation order: lower ids were spawned earlier, and the collision pass
    visits pairs in ascending id order.
    """

    # Identity
    id: int
    color: GameColor

    # Kinematics
    x: float
    y: float
    vx: float = 0.0
    vy: float = 0.0

    # Diameter in pixels
    size: float = 25.0

    @property
    def radius(self) -> float:
        """Half the diameter."""
        return self.size / 2.0

    @property
    def speed(self) -> float:
        """Current velocity magnitude."""
        return math.hypot(self.vx, self.vy)

    def distance_to(self, other: Agent) -> float:
        """Euclidean distance between the two centers."""
        return math.hypot(other.x - self.x, other.y - self.y)

    def is_colliding(self, other: Agent) -> bool:
        """Check whether the two discs overlap.

        Args:
            other: The agent to test against.

        Returns:
            True if the distance between centers is strictly less than the
            sum of the radii.
        """
        return self.distance_to(other) < (self.size + other.size) / 2.0
