"""SignificanceFilter: thins a noisy GPS stream to information-dense points.

Rules are evaluated in a fixed order:

    1. accuracy <= high_accuracy_m              → accept (accurate fix)
    2. accuracy >  max_accuracy_m               → reject (too noisy)
    3. no previously retained point             → accept (bootstrap)
    4. time since retained point < min_interval → reject
    5. distance from retained point < min_distance → reject
    6. both speeds known, |Δspeed| > speed_change → accept
    7. otherwise                                → accept

Rules 1 and 2 are absolute overrides, so a noisy first sample is rejected
and the stream only bootstraps once an acceptable sample arrives.

One filter instance tracks exactly one delivery/driver stream.  It holds
the last *retained* sample, which only changes on accept.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

from delivery_tracking.core.geo import distance_between
from delivery_tracking.domain.decision import FilterDecision
from delivery_tracking.domain.enums import FilterReason
from delivery_tracking.domain.location import LocationSample

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FilterThresholds:
    """Configurable thresholds for the significance rules."""

    high_accuracy_m: float = 10.0
    max_accuracy_m: float = 50.0
    min_interval: timedelta = timedelta(seconds=30)
    min_distance_m: float = 10.0
    # ≈ 5 mph
    speed_change_mps: float = 2.237


class SignificanceFilter:
    """Decides which raw samples are worth keeping for one tracked stream."""

    def __init__(self, thresholds: FilterThresholds | None = None) -> None:
        self._thresholds = thresholds or FilterThresholds()
        self._last: LocationSample | None = None

    @property
    def thresholds(self) -> FilterThresholds:
        return self._thresholds

    @property
    def last_significant(self) -> LocationSample | None:
        """The most recently retained sample, or None before bootstrap."""
        return self._last

    def evaluate(self, sample: LocationSample) -> FilterDecision:
        """Run *sample* through the rules and remember it if it is kept."""
        decision = self._decide(sample)
        if decision.accept:
            self._last = sample
        logger.debug(
            "Sample at %s (±%.1fm) %s: %s",
            sample.timestamp.isoformat(),
            sample.accuracy,
            "kept" if decision.accept else "dropped",
            decision.reason.value,
        )
        return decision

    def reset(self) -> None:
        """Forget the retained point so the next acceptable sample bootstraps."""
        self._last = None

    # ── Rules ────────────────────────────────────────────────────────────

    def _decide(self, sample: LocationSample) -> FilterDecision:
        t = self._thresholds

        if sample.accuracy <= t.high_accuracy_m:
            return FilterDecision(accept=True, reason=FilterReason.ACCURATE_FIX)

        if sample.accuracy > t.max_accuracy_m:
            return FilterDecision(accept=False, reason=FilterReason.POOR_ACCURACY)

        last = self._last
        if last is None:
            return FilterDecision(accept=True, reason=FilterReason.BOOTSTRAP)

        if sample.timestamp - last.timestamp < t.min_interval:
            return FilterDecision(accept=False, reason=FilterReason.TOO_SOON)

        if distance_between(last, sample) < t.min_distance_m:
            return FilterDecision(accept=False, reason=FilterReason.TOO_CLOSE)

        if sample.speed is not None and last.speed is not None:
            if abs(sample.speed - last.speed) > t.speed_change_mps:
                return FilterDecision(accept=True, reason=FilterReason.SPEED_CHANGE)

        return FilterDecision(accept=True, reason=FilterReason.MOVED)
