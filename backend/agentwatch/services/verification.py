"""Verification policy for negative probe results.

A "Down" verdict is re-asked of a different agent before it is stored and
the second answer replaces the first. "Up" verdicts are taken from one
agent. Two opinions, no voting.
"""
from dataclasses import dataclass

from ..models.uptime_event import Availability, PingReachability, PortState
from .probe_client import ProbeResult


@dataclass(frozen=True)
class Verdict:
    """Normalized agent answer plus the agent that gave it."""
    availability: Availability
    ping: PingReachability
    port: PortState
    confirmed_by: str

    @classmethod
    def from_probe(cls, result: ProbeResult) -> "Verdict":
        """Map raw agent strings onto the enums; anything unknown is negative."""
        return cls(
            availability=Availability.UP if result.availability == Availability.UP.value else Availability.DOWN,
            ping=PingReachability.REACHABLE if result.ping == PingReachability.REACHABLE.value else PingReachability.UNREACHABLE,
            port=PortState.OPEN if result.port == PortState.OPEN.value else PortState.CLOSED,
            confirmed_by=result.endpoint,
        )


class VerificationPolicy:
    """Decides when a second opinion is needed and how it is applied."""

    def needs_verification(self, provisional: Verdict) -> bool:
        return provisional.availability == Availability.DOWN

    def reconcile(self, provisional: Verdict, second: Verdict) -> Verdict:
        """The verifying agent's availability wins, and it becomes the confirming agent.

        Ping and port readings stay those of the provisional probe.
        """
        return Verdict(
            availability=second.availability,
            ping=provisional.ping,
            port=provisional.port,
            confirmed_by=second.confirmed_by,
        )
