"""Tests for the TrackStore and StoreLocationSink."""

import logging
from datetime import timedelta

import pytest

from delivery_tracking.domain.batch import LocationBatch
from delivery_tracking.sinks.base import SinkError
from delivery_tracking.sinks.local import StoreLocationSink
from delivery_tracking.store.track_store import TrackStore

from tests.test_location import _BASE, _sample


def _batch(n: int, delivery_id: str = "delivery-1", start: int = 0, **overrides) -> LocationBatch:
    points = [
        _sample(timestamp=_BASE + timedelta(seconds=40 * (start + i)), **overrides)
        for i in range(n)
    ]
    return LocationBatch.from_points(delivery_id, "driver-1", points)


class TestTrackStore:
    @pytest.mark.asyncio
    async def test_insert_batch_stores_points(self) -> None:
        store = TrackStore()
        batch = _batch(3)
        result = await store.insert_batch(batch)

        assert result.inserted_count == 3
        assert result.error_count == 0
        assert result.processing_rate == 100
        points = await store.points_for("delivery-1")
        assert [p.timestamp for p in points] == [s.timestamp for s in batch.points]
        assert all(p.batch_id == str(batch.batch_id) for p in points)

    @pytest.mark.asyncio
    async def test_last_gps_update_is_batch_end(self) -> None:
        store = TrackStore()
        batch = _batch(3)
        await store.insert_batch(batch)
        assert await store.last_gps_update("delivery-1") == batch.batch_end_time

    @pytest.mark.asyncio
    async def test_accuracy_requirement_flag(self) -> None:
        store = TrackStore()
        await store.insert_batch(_batch(1, accuracy=70.0))
        [record] = await store.points_for("delivery-1")
        assert record.meets_accuracy_requirement is False
        assert record.accuracy_meters == 70.0

    @pytest.mark.asyncio
    async def test_retried_batch_is_deduplicated(self) -> None:
        store = TrackStore()
        batch = _batch(4)
        await store.insert_batch(batch)
        result = await store.insert_batch(batch)

        assert result.inserted_count == 0
        assert result.duplicate_count == 4
        assert len(await store.points_for("delivery-1")) == 4

    @pytest.mark.asyncio
    async def test_failing_chunk_does_not_abort_batch(self) -> None:
        store = TrackStore(chunk_size=2, max_points_per_delivery=3)
        result = await store.insert_batch(_batch(5))

        # chunks of 2, 2, 1; the middle one would overflow the limit
        assert result.inserted_count == 3
        assert result.error_count == 2
        assert result.processing_rate == 60
        assert len(result.errors) == 1

    @pytest.mark.asyncio
    async def test_unknown_delivery(self) -> None:
        store = TrackStore()
        assert await store.points_for("nope") == []
        assert await store.last_gps_update("nope") is None
        assert not await store.has_delivery("nope")

    @pytest.mark.asyncio
    async def test_deliveries_kept_apart(self) -> None:
        store = TrackStore()
        await store.insert_batch(_batch(2, delivery_id="a"))
        await store.insert_batch(_batch(3, delivery_id="b"))
        assert await store.delivery_count() == 2
        assert len(await store.points_for("a")) == 2

    @pytest.mark.asyncio
    async def test_result_dict_shape(self) -> None:
        result = await TrackStore().insert_batch(_batch(2))
        d = result.to_dict()
        assert d["success"] is True
        assert d["batch_size"] == 2
        assert d["errors"] is None
        assert "processed_at" in d

    def test_invalid_chunk_size(self) -> None:
        with pytest.raises(ValueError):
            TrackStore(chunk_size=0)


class TestStoreLocationSink:
    @pytest.mark.asyncio
    async def test_submit_writes_to_store(self) -> None:
        store = TrackStore()
        await StoreLocationSink(store).submit_batch(_batch(2))
        assert len(await store.points_for("delivery-1")) == 2

    @pytest.mark.asyncio
    async def test_total_failure_raises(self) -> None:
        sink = StoreLocationSink(TrackStore(max_points_per_delivery=0))
        with pytest.raises(SinkError):
            await sink.submit_batch(_batch(2))

    @pytest.mark.asyncio
    async def test_resubmitted_batch_is_not_a_failure(self) -> None:
        store = TrackStore()
        sink = StoreLocationSink(store)
        batch = _batch(2)
        await sink.submit_batch(batch)
        await sink.submit_batch(batch)
        assert len(await store.points_for("delivery-1")) == 2

    @pytest.mark.asyncio
    async def test_partial_failure_is_delivered_with_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        store = TrackStore(chunk_size=2, max_points_per_delivery=3)
        sink = StoreLocationSink(store)

        with caplog.at_level(logging.WARNING, logger="delivery_tracking.sinks.local"):
            await sink.submit_batch(_batch(5))

        assert len(await store.points_for("delivery-1")) == 3
        assert "Dropped 2 of 5 points" in caplog.text
