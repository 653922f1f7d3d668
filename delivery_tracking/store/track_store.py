"""In-memory store of persisted track points, keyed by delivery.

Design notes:
    - An asyncio.Lock guards all mutations so concurrent sinks and API
      handlers never corrupt state.
    - Batches are inserted in fixed-size chunks; a failing chunk is
      counted and reported without aborting the rest of the batch.
    - Points already stored for the same delivery, driver and timestamp
      are skipped as duplicates.  Retried batches are therefore safe.
    - The store does NOT filter.  Whatever reaches it has already been
      judged significant by the sender.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from delivery_tracking.domain.batch import LocationBatch
from delivery_tracking.domain.location import LocationSample
from delivery_tracking.foundation.clock import utc_now

logger = logging.getLogger(__name__)

# Error messages echoed back to the caller are capped to keep responses small.
_MAX_REPORTED_ERRORS = 3


class TrackPointRecord(BaseModel):
    """A stored GPS point, flattened for querying."""

    delivery_id: str
    driver_id: str
    batch_id: str
    latitude: float
    longitude: float
    accuracy_meters: float
    speed: Optional[float] = None
    heading: Optional[float] = None
    battery_level: Optional[float] = None
    timestamp: datetime
    meets_accuracy_requirement: bool
    recorded_at: datetime

    model_config = {"frozen": True}

    @classmethod
    def from_sample(
        cls,
        batch: LocationBatch,
        sample: LocationSample,
        recorded_at: datetime,
    ) -> "TrackPointRecord":
        return cls(
            delivery_id=batch.delivery_id,
            driver_id=batch.driver_id,
            batch_id=str(batch.batch_id),
            latitude=sample.latitude,
            longitude=sample.longitude,
            accuracy_meters=sample.accuracy,
            speed=sample.speed,
            heading=sample.heading,
            battery_level=sample.battery_level,
            timestamp=sample.timestamp,
            meets_accuracy_requirement=sample.meets_accuracy_requirement,
            recorded_at=recorded_at,
        )


class BatchIngestResult:
    """Outcome of inserting one batch.  Partial success is still success."""

    __slots__ = (
        "inserted_count",
        "duplicate_count",
        "error_count",
        "batch_size",
        "errors",
        "processed_at",
    )

    def __init__(
        self,
        batch_size: int,
        inserted_count: int = 0,
        duplicate_count: int = 0,
        error_count: int = 0,
        errors: list[str] | None = None,
        processed_at: datetime | None = None,
    ) -> None:
        self.batch_size = batch_size
        self.inserted_count = inserted_count
        self.duplicate_count = duplicate_count
        self.error_count = error_count
        self.errors = errors or []
        self.processed_at = processed_at or utc_now()

    @property
    def processing_rate(self) -> int:
        """Percentage of the batch newly inserted, rounded."""
        if self.batch_size == 0:
            return 0
        return round(self.inserted_count / self.batch_size * 100)

    @property
    def stored_everything(self) -> bool:
        """True when every point is now in the store (new or duplicate)."""
        return self.error_count == 0

    def to_dict(self) -> dict:
        return {
            "success": True,
            "inserted_count": self.inserted_count,
            "duplicate_count": self.duplicate_count,
            "error_count": self.error_count,
            "batch_size": self.batch_size,
            "processing_rate": self.processing_rate,
            "errors": self.errors[:_MAX_REPORTED_ERRORS] or None,
            "processed_at": self.processed_at.isoformat(),
        }


class TrackStore:
    """Async-safe, in-memory store for delivery track points.

    Args:
        chunk_size: Number of points inserted per chunk.
        max_points_per_delivery: Chunks that would push a delivery past
            this many points are rejected.
    """

    def __init__(self, chunk_size: int = 25, max_points_per_delivery: int = 50_000) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        self._chunk_size = chunk_size
        self._max_points = max_points_per_delivery
        self._lock = asyncio.Lock()
        self._points: dict[str, list[TrackPointRecord]] = {}
        self._seen: dict[str, set[tuple[str, datetime]]] = {}
        self._last_gps_update: dict[str, datetime] = {}

    # ── Public API ───────────────────────────────────────────────────────

    async def insert_batch(self, batch: LocationBatch) -> BatchIngestResult:
        """Store every point of *batch*, chunk by chunk."""
        async with self._lock:
            logger.debug(
                "Processing batch %s: %d points for delivery %s",
                batch.batch_id,
                batch.size,
                batch.delivery_id,
            )
            result = BatchIngestResult(batch_size=batch.size)
            now = utc_now()

            for start in range(0, batch.size, self._chunk_size):
                chunk = batch.points[start:start + self._chunk_size]
                try:
                    inserted, duplicates = self._insert_chunk(batch, chunk, now)
                except ValueError as exc:
                    logger.warning("Chunk insert failed for batch %s: %s", batch.batch_id, exc)
                    result.error_count += len(chunk)
                    result.errors.append(str(exc))
                    continue
                result.inserted_count += inserted
                result.duplicate_count += duplicates

            if result.inserted_count > 0:
                previous = self._last_gps_update.get(batch.delivery_id)
                if previous is None or batch.batch_end_time > previous:
                    self._last_gps_update[batch.delivery_id] = batch.batch_end_time

            logger.info(
                "Batch %s stored: inserted=%d duplicates=%d errors=%d",
                batch.batch_id,
                result.inserted_count,
                result.duplicate_count,
                result.error_count,
            )
            return result

    async def points_for(self, delivery_id: str) -> list[TrackPointRecord]:
        """Stored points for a delivery in insertion order (empty if unknown)."""
        async with self._lock:
            return list(self._points.get(delivery_id, []))

    async def last_gps_update(self, delivery_id: str) -> datetime | None:
        async with self._lock:
            return self._last_gps_update.get(delivery_id)

    async def has_delivery(self, delivery_id: str) -> bool:
        async with self._lock:
            return delivery_id in self._points

    async def delivery_count(self) -> int:
        async with self._lock:
            return len(self._points)

    # ── Internals ────────────────────────────────────────────────────────

    def _insert_chunk(
        self,
        batch: LocationBatch,
        chunk: tuple[LocationSample, ...],
        recorded_at: datetime,
    ) -> tuple[int, int]:
        """Must be called while holding self._lock.  All-or-nothing per chunk."""
        seen = self._seen.setdefault(batch.delivery_id, set())
        fresh: list[LocationSample] = []
        keys: set[tuple[str, datetime]] = set()
        for sample in chunk:
            key = (batch.driver_id, sample.timestamp)
            if key in seen or key in keys:
                continue
            keys.add(key)
            fresh.append(sample)

        stored = self._points.get(batch.delivery_id, [])
        if len(stored) + len(fresh) > self._max_points:
            raise ValueError(
                f"delivery {batch.delivery_id} would exceed {self._max_points} stored points"
            )

        records = self._points.setdefault(batch.delivery_id, [])
        for sample in fresh:
            records.append(TrackPointRecord.from_sample(batch, sample, recorded_at))
        seen.update(keys)
        return len(fresh), len(chunk) - len(fresh)
