"""Probe client - asks one check agent to probe one target."""
import logging
from dataclasses import dataclass
from typing import Optional, Union

import httpx

logger = logging.getLogger(__name__)

DEFAULT_PROBE_TIMEOUT = 5.0


@dataclass(frozen=True)
class ProbeTarget:
    """Host to be probed, as sent to the agent."""
    url: str
    port: Optional[int] = None


@dataclass(frozen=True)
class ProbeResult:
    """Raw answer of an agent. Values are whatever the agent sent."""
    endpoint: str
    availability: Optional[str] = None
    ping: Optional[str] = None
    port: Optional[str] = None


@dataclass(frozen=True)
class TransportFailure:
    """The agent could not be asked: timeout, refused, bad status or bad body."""
    endpoint: str
    reason: str


ProbeOutcome = Union[ProbeResult, TransportFailure]


class ProbeClient:
    """Sends probe requests to check agents.

    Every request is bounded by ``timeout`` seconds. Failures come back as
    ``TransportFailure`` values; nothing is retried here, the dispatcher
    decides what to do next.
    """

    def __init__(
        self,
        token: str,
        timeout: float = DEFAULT_PROBE_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token = token
        self.timeout = timeout
        self._transport = transport

    async def probe(
        self,
        endpoint: str,
        target: ProbeTarget,
        timeout: Optional[float] = None,
    ) -> ProbeOutcome:
        """POST ``{url, port, token}`` to ``endpoint`` and parse the verdict."""
        timeout = self.timeout if timeout is None else timeout
        payload = {"url": target.url, "port": target.port, "token": self.token}

        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                response = await client.post(endpoint, json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException:
            return self._failure(endpoint, f"timed out after {timeout}s")
        except httpx.HTTPStatusError as e:
            return self._failure(endpoint, f"HTTP {e.response.status_code}")
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError) as e:
            return self._failure(endpoint, f"{type(e).__name__}: {e}")
        except ValueError as e:
            # JSON decoding error
            return self._failure(endpoint, f"invalid JSON body: {e}")

        if not isinstance(data, dict):
            return self._failure(endpoint, "response body is not a JSON object")

        return ProbeResult(
            endpoint=endpoint,
            availability=_as_text(data.get("availability")),
            ping=_as_text(data.get("ping")),
            port=_as_text(data.get("port")),
        )

    def _failure(self, endpoint: str, reason: str) -> TransportFailure:
        logger.warning(f"Probe via {endpoint} failed: {reason}")
        return TransportFailure(endpoint=endpoint, reason=reason)


def _as_text(value) -> Optional[str]:
    return value if isinstance(value, str) else None
