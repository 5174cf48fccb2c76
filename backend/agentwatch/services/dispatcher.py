"""Dispatcher - runs one monitor check end to end.

Flow per monitor:
1. Pick the next agent round-robin and probe through it
2. On transport failure, fail over once to a different agent
3. If the answer is "Down", ask a different agent to verify
4. Save the event and refresh the monitor's last-checked timestamp

Checks that exhaust their agents are abandoned for this tick: nothing is
written, so the monitor stays due and the next tick picks it up again.
"""
import enum
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Tuple

from ..models import Monitor, UptimeEvent
from .probe_client import ProbeClient, ProbeResult, ProbeTarget, TransportFailure
from .selector import RoundRobinSelector
from .store import MonitorStore
from .verification import Verdict, VerificationPolicy

logger = logging.getLogger(__name__)


class ExhaustedAgents(RuntimeError):
    """Neither the selected agent nor its failover could be reached."""

    def __init__(self, monitor_id: int, failures: Tuple[TransportFailure, ...]):
        self.monitor_id = monitor_id
        self.failures = failures
        tried = ", ".join(f"{f.endpoint} ({f.reason})" for f in failures)
        super().__init__(f"No agent could check monitor {monitor_id}; tried {tried}")


class CheckStatus(str, enum.Enum):
    RECORDED = "recorded"
    ABANDONED = "abandoned"
    PERSISTENCE_FAILED = "persistence_failed"


@dataclass
class CheckOutcome:
    """What happened to one monitor during one tick."""
    monitor_id: int
    status: CheckStatus
    event: Optional[UptimeEvent] = None
    error: Optional[Exception] = None


OutcomeSink = Callable[[CheckOutcome], None]


class Dispatcher:
    """Checks monitors through the agent pool and stores the verdicts."""

    def __init__(
        self,
        selector: RoundRobinSelector,
        probe_client: ProbeClient,
        store: MonitorStore,
        policy: Optional[VerificationPolicy] = None,
        on_outcome: Optional[OutcomeSink] = None,
    ):
        self.selector = selector
        self.probe_client = probe_client
        self.store = store
        self.policy = policy or VerificationPolicy()
        self.on_outcome = on_outcome

    async def check_monitor(self, monitor: Monitor) -> CheckOutcome:
        """Check one monitor. Never raises for agent or storage trouble."""
        target = ProbeTarget(url=monitor.url, port=monitor.port)
        started = time.monotonic()

        try:
            provisional = await self._probe_with_failover(monitor.id, target)
        except ExhaustedAgents as e:
            logger.warning(str(e))
            return self._report(CheckOutcome(monitor.id, CheckStatus.ABANDONED, error=e))

        verdict = await self._verify(target, provisional)
        response_time_ms = int((time.monotonic() - started) * 1000)

        now = datetime.utcnow()
        event = UptimeEvent(
            monitor_id=monitor.id,
            timestamp=now,
            availability=verdict.availability.value,
            ping=verdict.ping.value,
            port=verdict.port.value,
            response_time_ms=response_time_ms,
            confirmed_by_agent=verdict.confirmed_by,
        )

        try:
            await self.store.save_event(event)
            await self.store.update_monitor_timestamp(monitor.id, now)
        except Exception as e:
            # Any store error, classified or not, reaches the outcome sink
            logger.exception(f"Check of monitor {monitor.id} ran but could not be stored")
            return self._report(CheckOutcome(monitor.id, CheckStatus.PERSISTENCE_FAILED, event=event, error=e))

        logger.debug(
            f"Monitor {monitor.id} ({monitor.url}): {verdict.availability.value} "
            f"via {verdict.confirmed_by} in {response_time_ms}ms"
        )
        return self._report(CheckOutcome(monitor.id, CheckStatus.RECORDED, event=event))

    async def _probe_with_failover(self, monitor_id: int, target: ProbeTarget) -> Verdict:
        primary = self.selector.next()
        outcome = await self.probe_client.probe(primary, target)
        if isinstance(outcome, ProbeResult):
            return Verdict.from_probe(outcome)

        failures = (outcome,)
        alternate = self.selector.pick_other_than(primary)
        if alternate is None:
            raise ExhaustedAgents(monitor_id, failures)

        logger.info(f"Agent {primary} failed for monitor {monitor_id}, failing over to {alternate}")
        outcome = await self.probe_client.probe(alternate, target)
        if isinstance(outcome, ProbeResult):
            return Verdict.from_probe(outcome)

        raise ExhaustedAgents(monitor_id, failures + (outcome,))

    async def _verify(self, target: ProbeTarget, provisional: Verdict) -> Verdict:
        if not self.policy.needs_verification(provisional):
            return provisional

        verifier = self.selector.pick_other_than(provisional.confirmed_by)
        if verifier is None:
            return provisional

        outcome = await self.probe_client.probe(verifier, target)
        if isinstance(outcome, TransportFailure):
            logger.info(
                f"Verification of Down for {target.url} via {verifier} failed; "
                f"keeping unverified result from {provisional.confirmed_by}"
            )
            return provisional

        return self.policy.reconcile(provisional, Verdict.from_probe(outcome))

    def _report(self, outcome: CheckOutcome) -> CheckOutcome:
        if self.on_outcome is not None:
            try:
                self.on_outcome(outcome)
            except Exception:
                logger.exception("Outcome sink raised")
        return outcome
