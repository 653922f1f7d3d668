"""WebSocket endpoint for raw location samples from a driver's device.

Path: /ws/location/{delivery_id}/{driver_id}

Each message is one raw sample (camelCase or snake_case keys) plus an
optional ``isMoving`` flag.  The sample is validated at the boundary,
offered to the session's optimiser, and acknowledged with the filter
outcome and the recommended sampling interval.

The connection ending for any reason ends the session, which flushes any
buffered points.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from delivery_tracking.core.interval import IntervalAdvisor
from delivery_tracking.domain.location import LocationSample
from delivery_tracking.store.session_store import TrackingSessionStore

logger = logging.getLogger(__name__)

# Reported speeds above this count as moving when the client sends no flag.
MOVING_SPEED_MPS = 0.5


def _is_moving(raw: dict[str, Any], sample: LocationSample) -> bool:
    flag = raw.get("isMoving", raw.get("is_moving"))
    if flag is not None:
        return bool(flag)
    return sample.speed is not None and sample.speed > MOVING_SPEED_MPS


def create_location_router(
    sessions: TrackingSessionStore,
    advisor: IntervalAdvisor,
) -> APIRouter:
    """Factory that wires the location endpoint to a session store."""

    router = APIRouter()

    @router.websocket("/ws/location/{delivery_id}/{driver_id}")
    async def ingest_location(websocket: WebSocket, delivery_id: str, driver_id: str) -> None:
        await websocket.accept()
        await sessions.open(delivery_id, driver_id)
        logger.info("Location source connected for delivery %s / driver %s", delivery_id, driver_id)

        try:
            while True:
                raw = await websocket.receive_json()
                if not isinstance(raw, dict):
                    await websocket.send_json({
                        "status": "error",
                        "detail": "Expected a JSON object per sample",
                    })
                    continue

                # ── Validate at the boundary ─────────────────────────────
                try:
                    sample = LocationSample.model_validate(raw)
                except ValidationError as exc:
                    await websocket.send_json({
                        "status": "error",
                        "detail": exc.errors(include_url=False, include_context=False),
                    })
                    continue

                # ── Optimise ─────────────────────────────────────────────
                # Resolved per sample: the session may have been closed over HTTP
                session, accepted = await sessions.submit(delivery_id, driver_id, sample)

                # ── Acknowledge ──────────────────────────────────────────
                await websocket.send_json({
                    "status": "accepted" if accepted else "filtered",
                    "pending": session.accumulator.pending_count,
                    "signal_quality": sample.signal_quality.value,
                    "recommended_interval_ms": advisor.recommend_for(sample, _is_moving(raw, sample)),
                })

        except WebSocketDisconnect:
            logger.info("Location source disconnected for delivery %s / driver %s", delivery_id, driver_id)
        finally:
            await sessions.close(delivery_id, driver_id)

    return router
