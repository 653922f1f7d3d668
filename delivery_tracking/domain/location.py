"""LocationSample: a single raw GPS reading from a driver's device.

Validated at the boundary so the optimiser never re-checks field
constraints.  Immutable after creation: the filter and accumulator only
hold references to samples, they never modify them.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from delivery_tracking.domain.enums import SignalQuality
from delivery_tracking.foundation.clock import ensure_utc

# Fixes worse than this are never stored as trustworthy track points.
ACCURACY_REQUIREMENT_M = 50.0


class LocationSample(BaseModel):
    """A raw GPS reading, as produced by the sampling device."""

    latitude: float = Field(..., ge=-90.0, le=90.0, description="Decimal degrees")
    longitude: float = Field(..., ge=-180.0, le=180.0, description="Decimal degrees")
    accuracy: float = Field(..., ge=0.0, description="Horizontal error radius in metres")
    speed: Optional[float] = Field(default=None, ge=0.0, description="Metres per second")
    heading: Optional[float] = Field(default=None, ge=0.0, le=360.0, description="Degrees")
    timestamp: datetime = Field(..., description="When the reading was taken")
    battery_level: Optional[float] = Field(
        default=None,
        ge=0.0,
        le=100.0,
        description="Device battery percentage at capture time",
    )

    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    @field_validator("timestamp")
    @classmethod
    def timestamp_must_be_aware(cls, v: datetime) -> datetime:
        # Browsers and phones often send naive local strings; treat them as UTC
        return ensure_utc(v)

    @property
    def signal_quality(self) -> SignalQuality:
        return SignalQuality.from_accuracy(self.accuracy)

    @property
    def meets_accuracy_requirement(self) -> bool:
        return self.accuracy <= ACCURACY_REQUIREMENT_M
