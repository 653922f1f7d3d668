"""StoreLocationSink: writes batches straight into a TrackStore.

Used when the optimiser runs server-side, next to the store.
"""

from __future__ import annotations

import logging

from delivery_tracking.domain.batch import LocationBatch
from delivery_tracking.sinks.base import SinkError
from delivery_tracking.store.track_store import TrackStore

logger = logging.getLogger(__name__)


class StoreLocationSink:
    """Location sink backed by an in-process TrackStore.

    Only a batch with nothing stored is reported as a failure (and so
    retried).  Chunk failures inside the store come from the per-delivery
    capacity limit, which a retry cannot fix, so the points of those
    chunks are dropped with a warning.
    """

    name = "track_store"

    def __init__(self, store: TrackStore) -> None:
        self._store = store

    async def submit_batch(self, batch: LocationBatch) -> None:
        result = await self._store.insert_batch(batch)
        if result.inserted_count == 0 and result.duplicate_count == 0:
            raise SinkError(self.name, "; ".join(result.errors) or "no points stored")
        if not result.stored_everything:
            logger.warning(
                "Dropped %d of %d points from batch %s for delivery %s: %s",
                result.error_count,
                result.batch_size,
                batch.batch_id,
                batch.delivery_id,
                "; ".join(result.errors),
            )
