"""BatchAccumulator: buffers significant points and flushes them as a unit.

Design notes:
    - One accumulator (and its SignificanceFilter) per delivery/driver
      session.  Instances never share pending points or timers.
    - An asyncio.Lock serialises add_point / flush / cleanup, so the
      read-modify-write of the pending list is safe across tasks.
    - A flush happens when the pending list reaches batch_size, or when
      batch_timeout has elapsed since the first point of the batch.
    - Delivery and driver ids are opaque and copied onto batches as-is.
    - Sink failures are logged and swallowed.  The pending points stay
      queued and go out with the next flush (at-least-once, not
      exactly-once).
    - The timeout timer is an owned asyncio.Task.  Every flush attempt
      cancels it, successful or not.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import Awaitable, Callable

from delivery_tracking.core.monitor import PerformanceMonitor
from delivery_tracking.core.significance import SignificanceFilter
from delivery_tracking.domain.batch import LocationBatch
from delivery_tracking.domain.location import LocationSample
from delivery_tracking.sinks.base import LocationSink

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


class BatchAccumulator:
    """Filters, buffers and flushes location samples for one tracked session.

    Args:
        delivery_id: Opaque delivery key, copied onto every batch.
        driver_id: Opaque driver key, copied onto every batch.
        sink: Where flushed batches are submitted.
        significance_filter: Filter for this stream.  A fresh one is
            created when omitted.
        monitor: Optional performance monitor to report into.
        batch_size: Pending length that triggers an immediate flush.
        batch_timeout: Maximum time a pending batch waits before flushing.
        sleep: Coroutine used by the timeout timer.  Tests inject a fake.
    """

    def __init__(
        self,
        delivery_id: str,
        driver_id: str,
        sink: LocationSink,
        *,
        significance_filter: SignificanceFilter | None = None,
        monitor: PerformanceMonitor | None = None,
        batch_size: int = 10,
        batch_timeout: timedelta = timedelta(minutes=5),
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if batch_timeout <= timedelta(0):
            raise ValueError("batch_timeout must be positive")

        self._delivery_id = delivery_id
        self._driver_id = driver_id
        self._sink = sink
        self._filter = significance_filter or SignificanceFilter()
        self._monitor = monitor
        self._batch_size = batch_size
        self._batch_timeout = batch_timeout
        self._sleep = sleep

        self._pending: list[LocationSample] = []
        self._timer: asyncio.Task[None] | None = None
        self._lock = asyncio.Lock()

    # ── Public API ───────────────────────────────────────────────────────

    async def add_point(self, sample: LocationSample) -> bool:
        """Offer a raw sample.  Returns True if it was kept.

        Never raises on sink failure; a full batch is flushed before
        returning and any failure is only logged.
        """
        async with self._lock:
            decision = self._filter.evaluate(sample)
            if self._monitor is not None:
                self._monitor.record_sample(sample, was_rejected=not decision.accept)
            if not decision.accept:
                return False

            self._pending.append(sample)

            if len(self._pending) >= self._batch_size:
                await self._flush_locked()
                return True

            if self._timer is None:
                self._timer = asyncio.create_task(self._flush_after_timeout())
            return True

    async def flush(self) -> bool:
        """Submit all pending points as one batch.

        Returns True if the sink accepted the batch, False if there was
        nothing to send or the sink failed.
        """
        async with self._lock:
            return await self._flush_locked()

    async def cleanup(self) -> bool:
        """Cancel the timer and make one final flush attempt.

        Call when tracking for the delivery ends.  A flush already in
        progress is allowed to finish first.
        """
        self._cancel_timer()
        async with self._lock:
            self._cancel_timer()
            return await self._flush_locked()

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def delivery_id(self) -> str:
        return self._delivery_id

    @property
    def driver_id(self) -> str:
        return self._driver_id

    @property
    def significance_filter(self) -> SignificanceFilter:
        return self._filter

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def pending_points(self) -> tuple[LocationSample, ...]:
        """Snapshot of the points waiting for the next flush."""
        return tuple(self._pending)

    @property
    def has_pending_timer(self) -> bool:
        return self._timer is not None

    # ── Internals ────────────────────────────────────────────────────────

    async def _flush_locked(self) -> bool:
        """Must be called while holding self._lock."""
        if not self._pending:
            return False

        if self._monitor is not None:
            self._monitor.record_sink_invocation()

        try:
            batch = LocationBatch.from_points(self._delivery_id, self._driver_id, self._pending)
            await self._sink.submit_batch(batch)
        except Exception as exc:
            logger.warning(
                "Failed to submit %d points for delivery %s: %s; points kept for retry",
                len(self._pending),
                self._delivery_id,
                exc,
            )
            success = False
        else:
            self._pending.clear()
            logger.info(
                "Submitted batch %s: %d points for delivery %s / driver %s",
                batch.batch_id,
                batch.size,
                self._delivery_id,
                self._driver_id,
            )
            success = True

        self._cancel_timer()
        return success

    async def _flush_after_timeout(self) -> None:
        await self._sleep(self._batch_timeout.total_seconds())
        # From here on this task is a running flush, not a cancellable timer
        self._timer = None
        await self.flush()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def __repr__(self) -> str:
        return (
            f"BatchAccumulator(delivery={self._delivery_id!r}, "
            f"driver={self._driver_id!r}, pending={len(self._pending)})"
        )
