"""Configuration settings for RPS Arena — loaded from environment variables."""

from __future__ import annotations

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with env-driven overrides.

    All values can be overridden via environment variables prefixed with ARENA_.
    Example: ARENA_AGENTS_PER_COLOR=50 overrides agents_per_color.
    """

    # Frame loop
    frame_interval_ms: int = 16
    stats_interval_frames: int = 300
    auto_start: bool = False

    # Population seeding
    agents_per_color: int = 100
    agent_size: float = 25.0
    base_speed: float = 2.5
    speed_cap_factor: float = 1.8
    spread_radius: float = 80.0
    anchor_inset: float = 50.0

    # Force field
    interaction_radius: float = 75.0
    attraction_force: float = 0.15
    repulsion_force: float = 0.2

    # Battle split
    split_offset: float = 10.0
    split_jitter: float = 1.0

    # Transient particles
    particle_gravity: float = 0.1
    particle_damping: float = 0.98
    particle_life_decrement: float = 1.0 / 60.0  # assumes 60 frames per second
    collision_particle_count: int = 6
    split_particle_count: int = 8

    # Drawing surface
    surface_width: int = 600
    surface_height: int = 600
    surface_margin: float = 20.0

    # None draws from system entropy
    random_seed: Optional[int] = None

    # HTTP host
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "info"

    # Frame streaming: broadcast one of every N rendered frames
    stream_every_frames: int = 2

    model_config = SettingsConfigDict(
        env_prefix="ARENA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
