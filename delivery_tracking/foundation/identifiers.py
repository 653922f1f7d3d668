"""ID generation for batches."""

from __future__ import annotations

from uuid import UUID, uuid4


def new_batch_id() -> UUID:
    """Generate a random UUID v4 for an outgoing location batch."""
    return uuid4()
