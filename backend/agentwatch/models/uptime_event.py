"""UptimeEvent model - one persisted verdict per completed check."""
import enum
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from ..database import Base


class Availability(str, enum.Enum):
    UP = "Up"
    DOWN = "Down"


class PingReachability(str, enum.Enum):
    REACHABLE = "Reachable"
    UNREACHABLE = "Unreachable"


class PortState(str, enum.Enum):
    OPEN = "Open"
    CLOSED = "Closed"


class UptimeEvent(Base):
    """Check result as confirmed by the agent that had the final word.

    Rows are written once and never updated.
    """

    __tablename__ = "uptime_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    monitor_id = Column(Integer, ForeignKey("monitors.id", ondelete="CASCADE"), nullable=False, index=True)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False)
    availability = Column(String, nullable=False)  # Up, Down
    ping = Column(String, nullable=False)  # Reachable, Unreachable
    port = Column(String, nullable=False)  # Open, Closed
    response_time_ms = Column(Integer, nullable=False)
    confirmed_by_agent = Column(String, nullable=False)  # Agent endpoint URL

    # Relationship
    monitor = relationship("Monitor", back_populates="events")
