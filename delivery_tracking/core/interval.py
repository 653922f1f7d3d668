"""IntervalAdvisor: recommends how often the device should sample GPS.

This governs sampling cadence at the source.  What is kept after sampling
is the SignificanceFilter's job; the two never consult each other.

Formula:
    interval = moving_ms if is_moving else stationary_ms
    battery < low_battery_pct   → interval *= low_battery_factor
    battery > high_battery_pct  → interval *= high_battery_factor
    accuracy > poor_accuracy_m  → interval *= poor_accuracy_factor
    clamp to [min_ms, max_ms]
"""

from __future__ import annotations

from dataclasses import dataclass

from delivery_tracking.domain.location import LocationSample


@dataclass(frozen=True)
class IntervalPolicy:
    """Tunable inputs to the interval formula.  Durations in milliseconds."""

    moving_ms: int = 30_000
    stationary_ms: int = 120_000

    low_battery_pct: float = 20.0
    low_battery_factor: float = 2.0
    high_battery_pct: float = 80.0
    high_battery_factor: float = 0.8

    poor_accuracy_m: float = 50.0
    poor_accuracy_factor: float = 1.5

    min_ms: int = 30_000
    max_ms: int = 300_000


class IntervalAdvisor:
    """Stateless advisor.  Same inputs always give the same interval."""

    def __init__(self, policy: IntervalPolicy | None = None) -> None:
        self._policy = policy or IntervalPolicy()

    @property
    def policy(self) -> IntervalPolicy:
        return self._policy

    def recommend_interval(
        self,
        is_moving: bool,
        battery_level: float | None = None,
        accuracy: float | None = None,
    ) -> int:
        """Recommended delay between raw samples, in milliseconds."""
        p = self._policy
        interval = float(p.moving_ms if is_moving else p.stationary_ms)

        if battery_level is not None:
            if battery_level < p.low_battery_pct:
                interval *= p.low_battery_factor
            elif battery_level > p.high_battery_pct:
                interval *= p.high_battery_factor

        if accuracy is not None and accuracy > p.poor_accuracy_m:
            interval *= p.poor_accuracy_factor

        return int(round(max(p.min_ms, min(p.max_ms, interval))))

    def recommend_for(self, sample: LocationSample, is_moving: bool) -> int:
        """Shortcut using the battery level and accuracy carried by *sample*."""
        return self.recommend_interval(
            is_moving,
            battery_level=sample.battery_level,
            accuracy=sample.accuracy,
        )
