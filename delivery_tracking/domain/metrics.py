"""PerformanceMetrics: a point-in-time view of optimiser efficiency.

This is observability, not control.  Nothing in the filtering path reads
these values.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class PerformanceMetrics(BaseModel):
    """Immutable snapshot of the performance monitor's counters."""

    total_points: int = Field(..., description="Raw samples seen, kept or not")
    filtered_points: int = Field(..., description="Samples rejected by the significance filter")
    average_accuracy: float = Field(..., description="Running mean of sample accuracy in metres")
    network_requests: int = Field(..., description="Sink invocations, successful or not")
    last_update: datetime = Field(..., description="When the last sample was recorded")
    filter_efficiency: float = Field(..., description="Percentage of samples rejected")
    points_per_minute: float = Field(
        ..., description="total_points divided by minutes elapsed since last_update"
    )

    model_config = {"frozen": True}
