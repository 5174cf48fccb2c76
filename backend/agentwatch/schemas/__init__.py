"""Pydantic schemas for API request/response models."""
from .monitor import (
    MonitorCreate,
    MonitorResponse,
    UptimeEventResponse,
    MonitorEvents,
)
from .tier import TickSummaryResponse

__all__ = [
    "MonitorCreate",
    "MonitorResponse",
    "UptimeEventResponse",
    "MonitorEvents",
    "TickSummaryResponse",
]
