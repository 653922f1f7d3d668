"""LocationBatch: the unit handed to a location sink.

A batch is built only when the accumulator flushes.  It holds a copy of
the pending points, so a new pending list can start filling while the
sink call is still in flight.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Sequence
from uuid import UUID

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from delivery_tracking.domain.location import LocationSample
from delivery_tracking.foundation.identifiers import new_batch_id


class LocationBatch(BaseModel):
    """An ordered group of retained points for one delivery/driver pair."""

    batch_id: UUID = Field(default_factory=new_batch_id)
    delivery_id: str
    driver_id: str
    points: tuple[LocationSample, ...] = Field(..., min_length=1)
    batch_start_time: datetime
    batch_end_time: datetime

    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    @classmethod
    def from_points(
        cls,
        delivery_id: str,
        driver_id: str,
        points: Sequence[LocationSample],
    ) -> "LocationBatch":
        """Build a batch from retained points in chronological order.

        Raises:
            ValueError: If *points* is empty.
        """
        if not points:
            raise ValueError("cannot build a batch from zero points")
        return cls(
            delivery_id=delivery_id,
            driver_id=driver_id,
            points=tuple(points),
            batch_start_time=points[0].timestamp,
            batch_end_time=points[-1].timestamp,
        )

    @property
    def size(self) -> int:
        return len(self.points)

    def to_payload(self) -> dict[str, Any]:
        """camelCase, JSON-ready representation for HTTP sinks."""
        return self.model_dump(mode="json", by_alias=True)
