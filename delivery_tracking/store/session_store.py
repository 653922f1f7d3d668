"""Tracking sessions: one optimiser pipeline per delivery/driver pair.

Design notes:
    - An asyncio.Lock guards the session table.  Each session's own
      accumulator carries a separate lock for its pending points.
    - A session owns exactly one SignificanceFilter and one
      BatchAccumulator.  They are never shared across sessions.
    - The PerformanceMonitor is shared: metrics aggregate process-wide.
    - Closing a session always makes a final flush attempt.  The session
      is marked closed before that flush, so submit() routes later samples
      for the same pair into a fresh session.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from delivery_tracking.core.accumulator import BatchAccumulator, SleepFn
from delivery_tracking.core.monitor import PerformanceMonitor
from delivery_tracking.core.significance import FilterThresholds, SignificanceFilter
from delivery_tracking.domain.location import LocationSample
from delivery_tracking.foundation.clock import utc_now
from delivery_tracking.sinks.base import LocationSink

logger = logging.getLogger(__name__)

SessionKey = tuple[str, str]


@dataclass(frozen=True)
class SessionConfig:
    """Settings applied to every new session's pipeline."""

    batch_size: int = 10
    batch_timeout: timedelta = timedelta(minutes=5)
    thresholds: FilterThresholds = FilterThresholds()
    idle_ttl: timedelta = timedelta(hours=2)


class TrackingSession:
    """A live tracking pipeline for one delivery and driver.

    Thread-safety note:
        Counters are only touched from submit(), which runs on the event
        loop.  Pending points are guarded by the accumulator's own lock.
    """

    __slots__ = (
        "delivery_id",
        "driver_id",
        "accumulator",
        "opened_at",
        "last_sample_at",
        "accepted_count",
        "rejected_count",
        "closed",
    )

    def __init__(self, accumulator: BatchAccumulator) -> None:
        now = utc_now()
        self.delivery_id: str = accumulator.delivery_id
        self.driver_id: str = accumulator.driver_id
        self.accumulator = accumulator
        self.opened_at: datetime = now
        self.last_sample_at: datetime = now
        self.accepted_count: int = 0
        self.rejected_count: int = 0
        # Set once the store has detached the session; it takes no more samples
        self.closed: bool = False

    @property
    def key(self) -> SessionKey:
        return (self.delivery_id, self.driver_id)

    async def submit(self, sample: LocationSample) -> bool:
        """Offer a raw sample to this session's pipeline."""
        accepted = await self.accumulator.add_point(sample)
        self.last_sample_at = utc_now()
        if accepted:
            self.accepted_count += 1
        else:
            self.rejected_count += 1
        return accepted

    def is_idle(self, ttl: timedelta) -> bool:
        return (utc_now() - self.last_sample_at) > ttl

    def summary(self) -> dict:
        last = self.accumulator.significance_filter.last_significant
        return {
            "delivery_id": self.delivery_id,
            "driver_id": self.driver_id,
            "opened_at": self.opened_at.isoformat(),
            "last_sample_at": self.last_sample_at.isoformat(),
            "accepted_count": self.accepted_count,
            "rejected_count": self.rejected_count,
            "pending_points": self.accumulator.pending_count,
            "last_significant": (
                {
                    "latitude": last.latitude,
                    "longitude": last.longitude,
                    "timestamp": last.timestamp.isoformat(),
                }
                if last is not None else None
            ),
        }

    def __repr__(self) -> str:
        return (
            f"TrackingSession(delivery={self.delivery_id!r}, driver={self.driver_id!r}, "
            f"accepted={self.accepted_count}, rejected={self.rejected_count})"
        )


class TrackingSessionStore:
    """Async-safe registry of live tracking sessions.

    Args:
        sink: Location sink shared by all sessions' accumulators.
        monitor: Performance monitor shared by all sessions.
        config: Pipeline settings for new sessions.
        sleep: Timer coroutine handed to each accumulator (tests inject one).
    """

    def __init__(
        self,
        sink: LocationSink,
        monitor: PerformanceMonitor | None = None,
        config: SessionConfig | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._sink = sink
        self._monitor = monitor or PerformanceMonitor()
        self._config = config or SessionConfig()
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._sessions: dict[SessionKey, TrackingSession] = {}

    # ── Public API ───────────────────────────────────────────────────────

    @property
    def monitor(self) -> PerformanceMonitor:
        return self._monitor

    async def open(self, delivery_id: str, driver_id: str) -> TrackingSession:
        """Find-or-create the session for a delivery/driver pair."""
        key = (delivery_id, driver_id)
        async with self._lock:
            session = self._sessions.get(key)
            if session is None:
                session = TrackingSession(self._build_accumulator(delivery_id, driver_id))
                self._sessions[key] = session
                logger.info("Opened tracking session for delivery %s / driver %s", delivery_id, driver_id)
            return session

    async def get(self, delivery_id: str, driver_id: str) -> TrackingSession | None:
        async with self._lock:
            return self._sessions.get((delivery_id, driver_id))

    async def submit(
        self, delivery_id: str, driver_id: str, sample: LocationSample
    ) -> tuple[TrackingSession, bool]:
        """Offer a sample to the live session for a pair, opening one if needed.

        Long-lived producers (a WebSocket connection) should call this per
        sample rather than hold on to a TrackingSession: a session closed
        meanwhile is replaced instead of silently swallowing points.
        """
        while True:
            session = await self.open(delivery_id, driver_id)
            if not session.closed:
                return session, await session.submit(sample)

    async def close(self, delivery_id: str, driver_id: str) -> bool:
        """Flush and remove a session.  Returns False if it did not exist."""
        async with self._lock:
            session = self._sessions.pop((delivery_id, driver_id), None)
            if session is not None:
                session.closed = True
        if session is None:
            return False
        await self._shutdown(session)
        return True

    async def close_all(self) -> int:
        """Flush and remove every session (used at application shutdown)."""
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
            for session in sessions:
                session.closed = True
        for session in sessions:
            await self._shutdown(session)
        return len(sessions)

    async def expire_idle(self) -> list[SessionKey]:
        """Close sessions that have not received a sample within the idle TTL."""
        async with self._lock:
            idle = [
                key for key, s in self._sessions.items()
                if s.is_idle(self._config.idle_ttl)
            ]
            sessions = [self._sessions.pop(key) for key in idle]
            for session in sessions:
                session.closed = True
        for session in sessions:
            await self._shutdown(session)
        if idle:
            logger.info("Expired %d idle tracking session(s)", len(idle))
        return idle

    async def active_count(self) -> int:
        async with self._lock:
            return len(self._sessions)

    async def summaries(self) -> list[dict]:
        async with self._lock:
            return [s.summary() for s in self._sessions.values()]

    # ── Internals ────────────────────────────────────────────────────────

    def _build_accumulator(self, delivery_id: str, driver_id: str) -> BatchAccumulator:
        return BatchAccumulator(
            delivery_id,
            driver_id,
            self._sink,
            significance_filter=SignificanceFilter(self._config.thresholds),
            monitor=self._monitor,
            batch_size=self._config.batch_size,
            batch_timeout=self._config.batch_timeout,
            sleep=self._sleep,
        )

    async def _shutdown(self, session: TrackingSession) -> None:
        flushed = await session.accumulator.cleanup()
        logger.info(
            "Closed tracking session for delivery %s / driver %s (final flush %s, %d pending)",
            session.delivery_id,
            session.driver_id,
            "ok" if flushed else "skipped or failed",
            session.accumulator.pending_count,
        )
