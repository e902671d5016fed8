"""Core simulation — agents, arena geometry, physics, particles, engine."""

from rps_arena.core.agent import Agent
from rps_arena.core.arena import ArenaConfig, ArenaShape, ArenaSize
from rps_arena.core.colors import GameColor

__all__ = ["Agent", "ArenaConfig", "ArenaShape", "ArenaSize", "GameColor"]
