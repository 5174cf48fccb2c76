"""Agent directory - the fixed, ordered set of check agent endpoints."""
import logging
from typing import Iterable, Iterator, Tuple

logger = logging.getLogger(__name__)


class ConfigurationFailure(RuntimeError):
    """The process cannot run with the given configuration."""


class AgentDirectory:
    """Read-only list of agent endpoint URLs, loaded once at startup.

    Order is significant: the round-robin selector hands endpoints out in
    this order and failover picks the first entry that differs.
    """

    def __init__(self, endpoints: Iterable[str]):
        cleaned = []
        for endpoint in endpoints:
            endpoint = (endpoint or "").strip()
            if not endpoint:
                continue
            if endpoint in cleaned:
                # Entries must be distinct for failover
                logger.warning(f"Ignoring duplicate agent endpoint: {endpoint}")
                continue
            cleaned.append(endpoint)
        if not cleaned:
            raise ConfigurationFailure(
                "No check agents configured; set AGENT_URLS to at least one endpoint"
            )
        self._endpoints: Tuple[str, ...] = tuple(cleaned)

    @classmethod
    def from_settings(cls, settings) -> "AgentDirectory":
        directory = cls(settings.agent_urls)
        logger.info(f"Loaded {directory.size()} check agent(s): {', '.join(directory)}")
        return directory

    def size(self) -> int:
        return len(self._endpoints)

    def at(self, index: int) -> str:
        return self._endpoints[index]

    def __len__(self) -> int:
        return len(self._endpoints)

    def __getitem__(self, index: int) -> str:
        return self._endpoints[index]

    def __iter__(self) -> Iterator[str]:
        return iter(self._endpoints)

    def __repr__(self) -> str:
        return f"AgentDirectory({list(self._endpoints)!r})"
