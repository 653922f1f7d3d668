"""REST endpoints for pre-built batches and stored tracks.

POST /api/gps/batch
    Accepts a batch flushed by a remote optimiser (the HttpLocationSink
    contract) and stores its points.

GET /api/deliveries/{delivery_id}/track
    Returns the stored points for a delivery.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException

from delivery_tracking.domain.batch import LocationBatch
from delivery_tracking.store.track_store import TrackStore

logger = logging.getLogger(__name__)


def create_batch_router(store: TrackStore) -> APIRouter:
    """Factory that wires the batch endpoints to a concrete TrackStore."""

    router = APIRouter(prefix="/api", tags=["batches"])

    @router.post("/gps/batch")
    async def process_batch(batch: LocationBatch) -> dict[str, Any]:
        logger.info(
            "Received GPS batch %s: %d points for delivery %s",
            batch.batch_id,
            batch.size,
            batch.delivery_id,
        )
        result = await store.insert_batch(batch)
        return result.to_dict()

    @router.get("/deliveries/{delivery_id}/track")
    async def delivery_track(delivery_id: str) -> dict[str, Any]:
        if not await store.has_delivery(delivery_id):
            raise HTTPException(status_code=404, detail=f"No track for delivery {delivery_id}")

        points = await store.points_for(delivery_id)
        last_update = await store.last_gps_update(delivery_id)
        return {
            "delivery_id": delivery_id,
            "last_gps_update": last_update.isoformat() if last_update else None,
            "count": len(points),
            "points": [p.model_dump(mode="json") for p in points],
        }

    return router
