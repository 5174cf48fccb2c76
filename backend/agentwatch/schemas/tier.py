"""Tier tick schemas."""
from pydantic import BaseModel


class TickSummaryResponse(BaseModel):
    """Counts from one tier tick."""
    tier: int
    due: int
    recorded: int
    abandoned: int
    failed: int