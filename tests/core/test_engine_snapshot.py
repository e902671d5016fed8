"""Unit tests for engine snapshots."""

from __future__ import annotations

import random

import pytest

from rps_arena.config import Settings
from rps_arena.core.arena import ArenaShape, ArenaSize
from rps_arena.core.colors import GameColor
from rps_arena.core.engine import SimulationEngine
from rps_arena.core.scheduler import ManualScheduler
from rps_arena.core.telemetry import EngineSnapshot, collect_snapshot
from rps_arena.render.canvas import DisplayListCanvas, DrawingSurface


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def engine(scheduler: ManualScheduler) -> SimulationEngine:
    """Create an attached engine pinned to a large circle."""
    settings = Settings(agents_per_color=4)
    engine = SimulationEngine(settings=settings, scheduler=scheduler, rng=random.Random(21))
    engine.attach(DrawingSurface(600, 600), DisplayListCanvas(), on_end=lambda color: None)
    engine.set_arena(ArenaShape.CIRCLE, ArenaSize.LARGE)
    return engine


def test_idle_snapshot(engine: SimulationEngine) -> None:
    snapshot = collect_snapshot(engine)

    assert isinstance(snapshot, EngineSnapshot)
    assert snapshot.state == "idle"
    assert snapshot.frame == 0
    assert snapshot.agent_count == 0
    assert snapshot.counts == {"blue": 0, "red": 0, "green": 0}
    assert snapshot.winner is None
    assert snapshot.arena == {"shape": "circle", "size": "large", "width": 580.0, "height": 580.0}


def test_running_snapshot(engine: SimulationEngine, scheduler: ManualScheduler) -> None:
    engine.start()
    scheduler.step()

    snapshot = engine.snapshot()

    assert snapshot.state == "running"
    assert snapshot.frame == 1
    assert snapshot.agent_count == 12
    assert sum(snapshot.counts.values()) == 12
    assert snapshot.particle_count == len(engine.particles)


def test_snapshot_reports_winner(engine: SimulationEngine, scheduler: ManualScheduler) -> None:
    engine.start(seed_population=False)
    engine.spawn_agent(GameColor.GREEN, 300.0, 300.0)
    scheduler.step()

    snapshot = engine.snapshot()

    assert snapshot.state == "stopped_won"
    assert snapshot.winner == "green"


def test_snapshot_to_dict(engine: SimulationEngine) -> None:
    data = engine.snapshot().to_dict()

    assert set(data) == {
        "state",
        "frame",
        "arena",
        "counts",
        "agent_count",
        "particle_count",
        "battles",
        "winner",
        "timestamp",
    }
    assert data["timestamp"] > 0
