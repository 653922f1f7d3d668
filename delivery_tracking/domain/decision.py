"""FilterDecision: the outcome of a significance check."""

from __future__ import annotations

from pydantic import BaseModel

from delivery_tracking.domain.enums import FilterReason


class FilterDecision(BaseModel):
    """Whether a sample was kept, and which rule decided it."""

    accept: bool
    reason: FilterReason

    model_config = {"frozen": True}

    def __bool__(self) -> bool:
        return self.accept
