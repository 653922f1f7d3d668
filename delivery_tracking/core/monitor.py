"""PerformanceMonitor: passive telemetry for the GPS optimiser.

Records every raw sample (kept or dropped) and every sink invocation.
It never influences filtering.  A single instance is normally shared by
all tracking sessions in the process, but one per session works too.

Naming is kept for dashboards that already consume it:
    - filtered_points counts samples *removed* from the stream.
    - points_per_minute divides the lifetime total by the minutes since
      the last recorded sample, so it is a rough proxy, not a windowed rate.
"""

from __future__ import annotations

from datetime import datetime

from delivery_tracking.domain.location import LocationSample
from delivery_tracking.domain.metrics import PerformanceMetrics
from delivery_tracking.foundation.clock import utc_now


class PerformanceMonitor:
    """Cumulative counters with no persistence."""

    __slots__ = (
        "total_points",
        "filtered_points",
        "average_accuracy",
        "network_requests",
        "last_update",
    )

    def __init__(self) -> None:
        self.total_points: int = 0
        self.filtered_points: int = 0
        self.average_accuracy: float = 0.0
        self.network_requests: int = 0
        self.last_update: datetime = utc_now()

    def record_sample(self, sample: LocationSample, was_rejected: bool) -> None:
        """Count a raw sample and fold its accuracy into the running mean."""
        self.total_points += 1
        if was_rejected:
            self.filtered_points += 1

        n = self.total_points
        self.average_accuracy = (self.average_accuracy * (n - 1) + sample.accuracy) / n
        self.last_update = utc_now()

    def record_sink_invocation(self) -> None:
        """Count one flush attempt against the sink, whatever its outcome."""
        self.network_requests += 1

    @property
    def filter_efficiency(self) -> float:
        if self.total_points == 0:
            return 0.0
        return self.filtered_points / self.total_points * 100

    @property
    def points_per_minute(self) -> float:
        minutes = (utc_now() - self.last_update).total_seconds() / 60.0
        if minutes <= 0:
            return 0.0
        return self.total_points / minutes

    def get_metrics(self) -> PerformanceMetrics:
        return PerformanceMetrics(
            total_points=self.total_points,
            filtered_points=self.filtered_points,
            average_accuracy=self.average_accuracy,
            network_requests=self.network_requests,
            last_update=self.last_update,
            filter_efficiency=self.filter_efficiency,
            points_per_minute=self.points_per_minute,
        )

    def reset(self) -> None:
        self.total_points = 0
        self.filtered_points = 0
        self.average_accuracy = 0.0
        self.network_requests = 0
        self.last_update = utc_now()
