"""delivery-tracking: GPS trip-point optimisation for delivery drivers.

This is the application entry point.  It wires the TrackStore, the
tracking sessions, the interval advisor and the HTTP/WebSocket
endpoints together.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from datetime import timedelta

from fastapi import FastAPI

from delivery_tracking.api.batches import create_batch_router
from delivery_tracking.api.tracking import create_tracking_router
from delivery_tracking.api.ws_location import create_location_router
from delivery_tracking.config import settings
from delivery_tracking.core.interval import IntervalAdvisor, IntervalPolicy
from delivery_tracking.core.monitor import PerformanceMonitor
from delivery_tracking.core.significance import FilterThresholds
from delivery_tracking.sinks.base import LocationSink
from delivery_tracking.sinks.http import HttpLocationSink
from delivery_tracking.sinks.local import StoreLocationSink
from delivery_tracking.store.session_store import SessionConfig, TrackingSessionStore
from delivery_tracking.store.track_store import TrackStore

# ── Logging ──────────────────────────────────────────────────────────────────

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)

# ── Storage & Sink ───────────────────────────────────────────────────────────

track_store = TrackStore(
    chunk_size=settings.insert_chunk_size,
    max_points_per_delivery=settings.max_points_per_delivery,
)

sink: LocationSink
if settings.sink_url:
    sink = HttpLocationSink(settings.sink_url, timeout_seconds=settings.sink_timeout_seconds)
else:
    sink = StoreLocationSink(track_store)

# ── Optimiser ────────────────────────────────────────────────────────────────

monitor = PerformanceMonitor()

sessions = TrackingSessionStore(
    sink,
    monitor=monitor,
    config=SessionConfig(
        batch_size=settings.batch_size,
        batch_timeout=timedelta(seconds=settings.batch_timeout_seconds),
        thresholds=FilterThresholds(
            high_accuracy_m=settings.high_accuracy_m,
            max_accuracy_m=settings.max_accuracy_m,
            min_interval=timedelta(seconds=settings.min_interval_seconds),
            min_distance_m=settings.min_distance_m,
            speed_change_mps=settings.speed_change_mps,
        ),
        idle_ttl=timedelta(minutes=settings.session_ttl_minutes),
    ),
)

advisor = IntervalAdvisor(
    IntervalPolicy(
        moving_ms=settings.interval_moving_ms,
        stationary_ms=settings.interval_stationary_ms,
        low_battery_pct=settings.interval_low_battery_pct,
        low_battery_factor=settings.interval_low_battery_factor,
        high_battery_pct=settings.interval_high_battery_pct,
        high_battery_factor=settings.interval_high_battery_factor,
        poor_accuracy_m=settings.interval_poor_accuracy_m,
        poor_accuracy_factor=settings.interval_poor_accuracy_factor,
        min_ms=settings.interval_min_ms,
        max_ms=settings.interval_max_ms,
    )
)

# ── Lifecycle ────────────────────────────────────────────────────────────────


async def _expire_idle_sessions() -> None:
    while True:
        await asyncio.sleep(60)
        await sessions.expire_idle()


@asynccontextmanager
async def lifespan(_: FastAPI):
    reaper = asyncio.create_task(_expire_idle_sessions())
    try:
        yield
    finally:
        reaper.cancel()
        with suppress(asyncio.CancelledError):
            await reaper
        closed = await sessions.close_all()
        logger.info("Shutdown: closed %d tracking session(s)", closed)


# ── App ──────────────────────────────────────────────────────────────────────

app = FastAPI(
    title=settings.app_name,
    description="GPS trip-point filtering, batching and adaptive sampling",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Routes ───────────────────────────────────────────────────────────────────

app.include_router(create_location_router(sessions, advisor))
app.include_router(create_batch_router(track_store))
app.include_router(create_tracking_router(sessions, advisor))


# ── Health ───────────────────────────────────────────────────────────────────

@app.get("/health")
async def health() -> dict:
    metrics = monitor.get_metrics()
    return {
        "status": "ok",
        "sink": type(sink).__name__,
        "active_sessions": await sessions.active_count(),
        "tracked_deliveries": await track_store.delivery_count(),
        "total_points": metrics.total_points,
        "filtered_points": metrics.filtered_points,
        "filter_efficiency": round(metrics.filter_efficiency, 2),
        "network_requests": metrics.network_requests,
    }
