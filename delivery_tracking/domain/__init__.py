from delivery_tracking.domain.batch import LocationBatch
from delivery_tracking.domain.decision import FilterDecision
from delivery_tracking.domain.enums import FilterReason, SignalQuality
from delivery_tracking.domain.location import LocationSample
from delivery_tracking.domain.metrics import PerformanceMetrics

__all__ = [
    "LocationSample",
    "LocationBatch",
    "FilterDecision",
    "FilterReason",
    "SignalQuality",
    "PerformanceMetrics",
]
