"""Monitor and uptime event schemas for API."""
from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, Field


class MonitorCreate(BaseModel):
    """Schema for creating a new monitor."""
    user_id: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    port: Optional[int] = Field(None, ge=1, le=65535)
    frequency: Literal[1, 5, 10, 30, 60] = 5


class MonitorResponse(BaseModel):
    """Schema for monitor in API responses."""
    id: int
    user_id: str
    url: str
    port: Optional[int] = None
    frequency: int
    is_paused: bool
    last_checked_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class UptimeEventResponse(BaseModel):
    """One stored check verdict."""
    id: int
    monitor_id: int
    timestamp: datetime
    availability: str  # Up, Down
    ping: str  # Reachable, Unreachable
    port: str  # Open, Closed
    response_time_ms: int
    confirmed_by_agent: str

    class Config:
        from_attributes = True


class MonitorEvents(BaseModel):
    """A monitor with its events, latest first."""
    url: str
    frequency: int
    port: Optional[int] = None
    uptime_events: List[UptimeEventResponse]
