"""Tests for the SignificanceFilter retention rules."""

from datetime import timedelta

from delivery_tracking.core.significance import FilterThresholds, SignificanceFilter
from delivery_tracking.domain.enums import FilterReason

from tests.test_location import _BASE, _LAT, _north_of, _sample


def _at(seconds: float, metres_north: float = 0.0, **overrides):
    """Mid-accuracy sample *seconds* after _BASE, *metres_north* of the origin."""
    return _sample(
        timestamp=_BASE + timedelta(seconds=seconds),
        latitude=_north_of(_LAT, metres_north),
        **overrides,
    )


def _bootstrapped(**overrides) -> SignificanceFilter:
    flt = SignificanceFilter()
    assert flt.evaluate(_at(0, **overrides)).accept
    return flt


class TestAccuracyGates:
    def test_accurate_first_sample_accepted(self) -> None:
        decision = SignificanceFilter().evaluate(_at(0, accuracy=4.0))
        assert decision.accept
        assert decision.reason == FilterReason.ACCURATE_FIX

    def test_accurate_fix_overrides_time_and_distance(self) -> None:
        flt = _bootstrapped()
        decision = flt.evaluate(_at(1, accuracy=10.0))
        assert decision.accept
        assert decision.reason == FilterReason.ACCURATE_FIX

    def test_noisy_first_sample_rejected(self) -> None:
        flt = SignificanceFilter()
        decision = flt.evaluate(_at(0, accuracy=60.0))
        assert not decision.accept
        assert decision.reason == FilterReason.POOR_ACCURACY
        assert flt.last_significant is None

    def test_accurate_sample_bootstraps_after_noisy_one(self) -> None:
        flt = SignificanceFilter()
        flt.evaluate(_at(0, accuracy=60.0))
        second = _at(1, accuracy=5.0)
        assert flt.evaluate(second).accept
        assert flt.last_significant == second

    def test_noisy_sample_rejected_even_after_long_move(self) -> None:
        flt = _bootstrapped()
        assert not flt.evaluate(_at(600, 5_000, accuracy=51.0)).accept


class TestBootstrap:
    def test_first_mid_accuracy_sample_accepted(self) -> None:
        decision = SignificanceFilter().evaluate(_at(0, accuracy=50.0))
        assert decision.accept
        assert decision.reason == FilterReason.BOOTSTRAP

    def test_reset_forgets_last_point(self) -> None:
        flt = _bootstrapped()
        flt.reset()
        assert flt.last_significant is None
        assert flt.evaluate(_at(1)).reason == FilterReason.BOOTSTRAP


class TestThrottles:
    def test_too_soon_rejected(self) -> None:
        flt = _bootstrapped()
        decision = flt.evaluate(_at(29))
        assert not decision.accept
        assert decision.reason == FilterReason.TOO_SOON

    def test_same_place_after_interval_rejected_by_distance(self) -> None:
        flt = _bootstrapped()
        decision = flt.evaluate(_at(31))
        assert not decision.accept
        assert decision.reason == FilterReason.TOO_CLOSE

    def test_moved_after_interval_accepted(self) -> None:
        flt = _bootstrapped()
        decision = flt.evaluate(_at(31, 15.0))
        assert decision.accept
        assert decision.reason == FilterReason.MOVED

    def test_exact_interval_passes_time_gate(self) -> None:
        flt = _bootstrapped()
        assert flt.evaluate(_at(30, 15.0)).accept

    def test_rejection_keeps_previous_point(self) -> None:
        flt = _bootstrapped()
        first = flt.last_significant
        flt.evaluate(_at(10, 500.0))
        assert flt.last_significant == first
        # Measured from the last kept point, not the rejected one
        assert flt.evaluate(_at(31, 15.0)).accept

    def test_accept_replaces_last_point(self) -> None:
        flt = _bootstrapped()
        moved = _at(31, 15.0)
        flt.evaluate(moved)
        assert flt.last_significant == moved
        # 31s later but only 5m from the new reference
        assert not flt.evaluate(_at(62, 20.0)).accept

    def test_custom_thresholds(self) -> None:
        flt = SignificanceFilter(FilterThresholds(min_distance_m=100.0))
        flt.evaluate(_at(0))
        assert flt.evaluate(_at(31, 15.0)).reason == FilterReason.TOO_CLOSE


class TestSpeedChange:
    def test_speed_change_at_distance_boundary_accepted(self) -> None:
        flt = _bootstrapped(speed=5.0)
        # 6 mph ≈ 2.68 m/s faster, just at the 10m distance threshold
        decision = flt.evaluate(_at(31, 10.0 + 1e-6, speed=7.7))
        assert decision.accept
        assert decision.reason == FilterReason.SPEED_CHANGE

    def test_small_speed_change_falls_through_to_default(self) -> None:
        flt = _bootstrapped(speed=5.0)
        decision = flt.evaluate(_at(31, 15.0, speed=6.0))
        assert decision.accept
        assert decision.reason == FilterReason.MOVED

    def test_missing_speed_skips_speed_rule(self) -> None:
        flt = _bootstrapped(speed=None)
        decision = flt.evaluate(_at(31, 15.0, speed=20.0))
        assert decision.reason == FilterReason.MOVED

    def test_zero_speed_counts_as_known(self) -> None:
        flt = _bootstrapped(speed=0.0)
        decision = flt.evaluate(_at(31, 15.0, speed=3.0))
        assert decision.reason == FilterReason.SPEED_CHANGE

    def test_speed_change_does_not_bypass_distance_gate(self) -> None:
        flt = _bootstrapped(speed=0.0)
        decision = flt.evaluate(_at(31, 5.0, speed=20.0))
        assert not decision.accept
        assert decision.reason == FilterReason.TOO_CLOSE
