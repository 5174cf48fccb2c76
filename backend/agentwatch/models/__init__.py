"""Database models."""
from .monitor import Monitor
from .uptime_event import UptimeEvent, Availability, PingReachability, PortState

__all__ = ["Monitor", "UptimeEvent", "Availability", "PingReachability", "PortState"]
