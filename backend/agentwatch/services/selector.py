"""Round-robin agent selection."""
import threading
from typing import Optional

from .agent_directory import AgentDirectory


class RoundRobinSelector:
    """Hands out agent endpoints in directory order, wrapping at the end.

    The cursor is shared by every check running in the process. Reading
    and advancing it happens under one lock so concurrent callers never
    see the same slot twice or skip one.
    """

    def __init__(self, directory: AgentDirectory):
        self.directory = directory
        self._cursor = 0
        self._lock = threading.Lock()

    def next(self) -> str:
        """Return the endpoint under the cursor and advance it."""
        with self._lock:
            endpoint = self.directory.at(self._cursor)
            self._cursor = (self._cursor + 1) % self.directory.size()
        return endpoint

    def pick_other_than(self, endpoint: str) -> Optional[str]:
        """First directory entry different from ``endpoint``, or None."""
        for candidate in self.directory:
            if candidate != endpoint:
                return candidate
        return None
