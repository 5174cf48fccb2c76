"""Monitor model - targets checked on a schedule tier."""
from datetime import datetime
from sqlalchemy import Boolean, Column, Integer, String, DateTime
from sqlalchemy.orm import relationship

from ..database import Base


class Monitor(Base):
    """A monitored host (URL plus optional port) checked through the agents."""

    __tablename__ = "monitors"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, nullable=False, index=True)  # Opaque owner reference
    url = Column(String, nullable=False)
    port = Column(Integer, nullable=True)
    frequency = Column(Integer, nullable=False, index=True)  # Tier in minutes: 1, 5, 10, 30, 60
    is_paused = Column(Boolean, nullable=False, default=False)
    last_checked_at = Column(DateTime, nullable=True)  # NULL = never checked
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    events = relationship("UptimeEvent", back_populates="monitor", cascade="all, delete-orphan")
