"""Great-circle distance on a spherical Earth."""

from __future__ import annotations

import math

from delivery_tracking.domain.location import LocationSample

EARTH_RADIUS_M = 6_371_000.0


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance in metres between two lat/lon points in degrees."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2.0) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2.0) ** 2
    c = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))
    return EARTH_RADIUS_M * c


def distance_between(a: LocationSample, b: LocationSample) -> float:
    """Distance in metres from sample *a* to sample *b*."""
    return haversine_m(a.latitude, a.longitude, b.latitude, b.longitude)
