"""Controlled enumerations for the delivery-tracking domain."""

from __future__ import annotations

from enum import Enum


class FilterReason(str, Enum):
    """Why the significance filter kept or dropped a sample."""

    # Accepted
    ACCURATE_FIX = "accurate_fix"
    BOOTSTRAP = "bootstrap"
    SPEED_CHANGE = "speed_change"
    MOVED = "moved"

    # Rejected
    POOR_ACCURACY = "poor_accuracy"
    TOO_SOON = "too_soon"
    TOO_CLOSE = "too_close"


class SignalQuality(str, Enum):
    """Coarse GPS fix quality bands shown to drivers and dispatchers."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"

    @classmethod
    def from_accuracy(cls, accuracy_m: float) -> "SignalQuality":
        if accuracy_m <= 10:
            return cls.EXCELLENT
        if accuracy_m <= 30:
            return cls.GOOD
        if accuracy_m <= 50:
            return cls.FAIR
        return cls.POOR
