"""REST endpoints for the optimiser's advisory and observability surface."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Query

from delivery_tracking.core.interval import IntervalAdvisor
from delivery_tracking.store.session_store import TrackingSessionStore


def create_tracking_router(
    sessions: TrackingSessionStore,
    advisor: IntervalAdvisor,
) -> APIRouter:
    """Factory that wires tracking endpoints to the session store and advisor."""

    router = APIRouter(prefix="/api/tracking", tags=["tracking"])

    @router.get("/interval")
    async def recommended_interval(
        is_moving: bool,
        battery_level: Optional[float] = Query(default=None, ge=0.0, le=100.0),
        accuracy: Optional[float] = Query(default=None, ge=0.0),
    ) -> dict[str, Any]:
        return {
            "interval_ms": advisor.recommend_interval(is_moving, battery_level, accuracy),
        }

    @router.get("/metrics")
    async def metrics() -> dict[str, Any]:
        return sessions.monitor.get_metrics().model_dump(mode="json")

    @router.get("/sessions")
    async def list_sessions() -> dict[str, Any]:
        summaries = await sessions.summaries()
        return {"sessions": summaries, "count": len(summaries)}

    @router.post("/sessions/{delivery_id}/{driver_id}/close")
    async def close_session(delivery_id: str, driver_id: str) -> dict[str, Any]:
        """End tracking for a delivery, flushing any buffered points."""
        if not await sessions.close(delivery_id, driver_id):
            raise HTTPException(status_code=404, detail="No such tracking session")
        return {"status": "closed", "delivery_id": delivery_id, "driver_id": driver_id}

    return router
