"""Tests for the PerformanceMonitor."""

from datetime import timedelta
from unittest.mock import patch

import pytest

from delivery_tracking.core.monitor import PerformanceMonitor

from tests.test_location import _BASE, _sample


def _patched_now(dt):
    return patch("delivery_tracking.core.monitor.utc_now", return_value=dt)


class TestPerformanceMonitor:
    def test_fresh_metrics_are_zero(self) -> None:
        metrics = PerformanceMonitor().get_metrics()
        assert metrics.total_points == 0
        assert metrics.filtered_points == 0
        assert metrics.filter_efficiency == 0.0
        assert metrics.network_requests == 0

    def test_filter_efficiency_matches_ratio(self) -> None:
        monitor = PerformanceMonitor()
        rejected = [True, False, True, False, False, True, False]
        for flag in rejected:
            monitor.record_sample(_sample(), was_rejected=flag)

        metrics = monitor.get_metrics()
        assert metrics.total_points == 7
        assert metrics.filtered_points == 3
        assert metrics.filter_efficiency == 3 / 7 * 100

    def test_running_average_accuracy(self) -> None:
        monitor = PerformanceMonitor()
        for accuracy in (10.0, 20.0, 60.0):
            monitor.record_sample(_sample(accuracy=accuracy), was_rejected=False)
        assert monitor.average_accuracy == pytest.approx(30.0)

    def test_network_requests_counted(self) -> None:
        monitor = PerformanceMonitor()
        monitor.record_sink_invocation()
        monitor.record_sink_invocation()
        assert monitor.get_metrics().network_requests == 2

    def test_points_per_minute_since_last_update(self) -> None:
        with _patched_now(_BASE):
            monitor = PerformanceMonitor()
            for _ in range(4):
                monitor.record_sample(_sample(), was_rejected=False)
        with _patched_now(_BASE + timedelta(minutes=2)):
            metrics = monitor.get_metrics()
        assert metrics.points_per_minute == pytest.approx(2.0)
        assert metrics.last_update == _BASE

    def test_points_per_minute_zero_without_elapsed_time(self) -> None:
        with _patched_now(_BASE):
            monitor = PerformanceMonitor()
            monitor.record_sample(_sample(), was_rejected=False)
            assert monitor.get_metrics().points_per_minute == 0.0

    def test_reset(self) -> None:
        monitor = PerformanceMonitor()
        monitor.record_sample(_sample(), was_rejected=True)
        monitor.record_sink_invocation()
        monitor.reset()
        assert monitor.total_points == 0
        assert monitor.network_requests == 0
