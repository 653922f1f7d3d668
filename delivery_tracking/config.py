"""Application configuration loaded from environment variables."""

from __future__ import annotations

from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "delivery-tracking"
    debug: bool = False
    log_level: str = "INFO"

    # Batch accumulator
    batch_size: int = 10
    batch_timeout_seconds: float = 300.0

    # Significance filter
    high_accuracy_m: float = 10.0
    max_accuracy_m: float = 50.0
    min_interval_seconds: float = 30.0
    min_distance_m: float = 10.0
    speed_change_mps: float = 2.237

    # Adaptive interval advisor (milliseconds)
    interval_moving_ms: int = 30_000
    interval_stationary_ms: int = 120_000
    interval_low_battery_pct: float = 20.0
    interval_low_battery_factor: float = 2.0
    interval_high_battery_pct: float = 80.0
    interval_high_battery_factor: float = 0.8
    interval_poor_accuracy_m: float = 50.0
    interval_poor_accuracy_factor: float = 1.5
    interval_min_ms: int = 30_000
    interval_max_ms: int = 300_000

    # Sessions and storage
    session_ttl_minutes: int = 120
    insert_chunk_size: int = 25
    max_points_per_delivery: int = 50_000

    # Remote sink; batches are stored in-process when unset
    sink_url: Optional[str] = None
    sink_timeout_seconds: float = 15.0

    model_config = {"env_prefix": "TRACKING_"}


settings = Settings()
