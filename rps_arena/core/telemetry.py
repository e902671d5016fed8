"""Telemetry — read-only snapshots of engine state.

Snapshots are used for the periodic stats log line and for the game state
API. Collecting one never touches the simulation.
"""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from rps_arena.core.engine import SimulationEngine


@dataclass
class EngineSnapshot:
    """State of the engine at a specific frame.

    Attributes:
        state: Lifecycle state name ("idle", "running", "stopped_won")
        frame: Frames advanced in the current run
        arena: Arena shape, size and pixel extents
        counts: Live agents per color value
        agent_count: Total live agents
        particle_count: Live transient particles
        battles: Battles resolved in the current run
        winner: Winning color of the last finished run, if any
        timestamp: Unix timestamp when snapshot was collected
    """

    state: str
    frame: int
    arena: dict[str, Any]
    counts: dict[str, int]
    agent_count: int
    particle_count: int
    battles: int
    winner: Optional[str]
    timestamp: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def collect_snapshot(engine: SimulationEngine) -> EngineSnapshot:
    """Collect a snapshot of the engine's current state.

    Args:
        engine: The SimulationEngine instance to read from

    Returns:
        EngineSnapshot with the current run's metrics
    """
    counts = engine.population()
    arena = engine.arena

    return EngineSnapshot(
        state=engine.state.value,
        frame=engine.frame_counter,
        arena={
            "shape": arena.shape.value,
            "size": arena.size.value,
            "width": round(arena.width, 2),
            "height": round(arena.height, 2),
        },
        counts={color.value: count for color, count in counts.items()},
        agent_count=sum(counts.values()),
        particle_count=len(engine.particles),
        battles=engine.battle_count,
        winner=engine.winner.value if engine.winner is not None else None,
        timestamp=time.time(),
    )
