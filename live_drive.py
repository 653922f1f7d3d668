"""Live test: stream a simulated drive to /ws/location and watch the optimiser thin it."""

import asyncio
import json
import math
import random
import uuid
from datetime import datetime, timedelta, timezone

import requests
import websockets


HOST = "127.0.0.1:8000"
DELIVERY_ID = f"demo-{uuid.uuid4().hex[:8]}"
DRIVER_ID = "driver-demo"
LOCATION_URI = f"ws://{HOST}/ws/location/{DELIVERY_ID}/{DRIVER_ID}"
METRICS_URL = f"http://{HOST}/api/tracking/metrics"
TRACK_URL = f"http://{HOST}/api/deliveries/{DELIVERY_ID}/track"

EARTH_RADIUS_M = 6_371_000.0


def simulated_drive(n: int = 120):
    """Yield raw samples 10s apart: a drive, a stop at a site, then a drive."""
    lat, lon = 32.7767, -96.7970
    ts = datetime.now(timezone.utc)
    battery = 90.0

    for i in range(n):
        stopped = 40 <= i < 70
        speed = 0.0 if stopped else random.uniform(10.0, 25.0)
        lat += math.degrees(speed * 10 / EARTH_RADIUS_M)
        accuracy = random.choice([4.0, 15.0, 25.0, 35.0, 80.0])
        battery = max(5.0, battery - 0.5)
        ts += timedelta(seconds=10)
        yield {
            "latitude": lat,
            "longitude": lon,
            "accuracy": accuracy,
            "speed": speed,
            "heading": 0.0,
            "timestamp": ts.isoformat(),
            "batteryLevel": battery,
            "isMoving": not stopped,
        }


async def stream_drive():
    async with websockets.connect(LOCATION_URI) as ws:
        print(f"[DRIVER] Connected as {DRIVER_ID} for {DELIVERY_ID}\n")
        for sample in simulated_drive():
            await ws.send(json.dumps(sample))
            ack = json.loads(await ws.recv())
            print(
                f"  ±{sample['accuracy']:>4.0f}m  {ack['status']:<9} "
                f"pending={ack.get('pending')}  next sample in {ack.get('recommended_interval_ms')}ms"
            )
            await asyncio.sleep(0.02)
    print("\n[DRIVER] Disconnected, session flushed server-side")


async def main():
    await stream_drive()
    await asyncio.sleep(0.5)

    metrics = requests.get(METRICS_URL, timeout=5).json()
    print("\n[METRICS]")
    for key, value in metrics.items():
        print(f"  {key}: {value}")

    track = requests.get(TRACK_URL, timeout=5)
    if track.ok:
        print(f"\n[TRACK] {track.json()['count']} points stored for {DELIVERY_ID}")
    else:
        print(f"\n[TRACK] nothing stored yet ({track.status_code})")


if __name__ == "__main__":
    asyncio.run(main())
