"""Timezone-aware clock utilities.

All timestamps in delivery-tracking are UTC-aware.  This module is the
single source of "now" so tests can patch it.
"""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to a naive datetime; leave aware values untouched."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
