"""Agent colors and the cyclic dominance relation between them.

Blue beats red, red beats green, green beats blue. The same relation decides
who chases whom in the force field and who wins a head-on collision.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal, Optional


class GameColor(str, Enum):
    """The three agent populations."""

    BLUE = "blue"
    RED = "red"
    GREEN = "green"

    @property
    def label(self) -> str:
        """Capitalized name used in on-screen counters."""
        return self.value.capitalize()


# Each color mapped to the one color it defeats
_PREY: dict[GameColor, GameColor] = {
    GameColor.BLUE: GameColor.RED,
    GameColor.RED: GameColor.GREEN,
    GameColor.GREEN: GameColor.BLUE,
}

PALETTE: dict[GameColor, str] = {
    GameColor.BLUE: "#3b82f6",
    GameColor.RED: "#ef4444",
    GameColor.GREEN: "#22c55e",
}

Relationship = Literal["attraction", "repulsion", "neutral"]


def prey_of(color: GameColor) -> GameColor:
    """Return the color that `color` defeats."""
    return _PREY[color]


def beats(attacker: GameColor, defender: GameColor) -> bool:
    """Check whether `attacker` wins a battle against `defender`.

    Args:
        attacker: Color of the first agent.
        defender: Color of the second agent.

    Returns:
        True only when `defender` is the prey of `attacker`. A color never
        beats itself.
    """
    return prey_of(attacker) is defender


def relationship(current: GameColor, other: GameColor) -> Relationship:
    """Describe how an agent of color `current` reacts to one of color `other`.

    Returns:
        "attraction" when `other` is prey (chase), "repulsion" when `other`
        is the predator (flee), "neutral" for the same color.
    """
    if beats(current, other):
        return "attraction"
    if beats(other, current):
        return "repulsion"
    return "neutral"


def battle_winner(first: GameColor, second: GameColor) -> Optional[GameColor]:
    """Return the winning color of a battle, or None for a same-color pair."""
    if beats(first, second):
        return first
    if beats(second, first):
        return second
    return None
