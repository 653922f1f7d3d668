"""Location sink protocol: where flushed batches go.

The accumulator depends only on this protocol.  Transport, auth and
persistence format belong to the concrete sink.

Contract:
    1. submit_batch() returns normally only when the batch was stored.
    2. Any failure is signalled by raising (SinkError preferred).
    3. A sink must not mutate the batch.
"""

from __future__ import annotations

from typing import Protocol

from delivery_tracking.domain.batch import LocationBatch


class SinkError(Exception):
    """Raised when a sink could not durably store a batch."""

    def __init__(self, sink_name: str, reason: str) -> None:
        self.sink_name = sink_name
        self.reason = reason
        super().__init__(f"Sink '{sink_name}' failed: {reason}")


class LocationSink(Protocol):
    """Anything that can durably accept a LocationBatch."""

    async def submit_batch(self, batch: LocationBatch) -> None:
        ...
