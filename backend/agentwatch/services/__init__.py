"""Services for agent selection, probing, dispatch and scheduling."""
from .agent_directory import AgentDirectory, ConfigurationFailure
from .selector import RoundRobinSelector
from .probe_client import ProbeClient, ProbeResult, ProbeTarget, TransportFailure
from .verification import VerificationPolicy, Verdict
from .store import MonitorStore, SqlMonitorStore, PersistenceFailure
from .dispatcher import Dispatcher, CheckOutcome, CheckStatus, ExhaustedAgents
from .scheduler import SchedulerService, TierScheduler, TierConfig, TickSummary, UnknownTier, TIERS

__all__ = [
    "AgentDirectory",
    "ConfigurationFailure",
    "RoundRobinSelector",
    "ProbeClient",
    "ProbeResult",
    "ProbeTarget",
    "TransportFailure",
    "VerificationPolicy",
    "Verdict",
    "MonitorStore",
    "SqlMonitorStore",
    "PersistenceFailure",
    "Dispatcher",
    "CheckOutcome",
    "CheckStatus",
    "ExhaustedAgents",
    "SchedulerService",
    "TierScheduler",
    "TierConfig",
    "TickSummary",
    "UnknownTier",
    "TIERS",
]
