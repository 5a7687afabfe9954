"""
ThunderBBS Broadcast Queue

Process-wide, append-only log of sysop broadcasts. Each session keeps the
index of the last entry it has seen; entries after that index are
delivered once, on the session's next command.

The queue is never trimmed, so indexes stay stable for the process
lifetime.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

logger = logging.getLogger(__name__)


@dataclass
class Broadcast:
    """One operator broadcast."""
    text: str
    timestamp: datetime = field(default_factory=datetime.now)


class BroadcastQueue:
    """Append-only broadcast log."""

    def __init__(self):
        self._entries: list[Broadcast] = []

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def tail_index(self) -> int:
        """Index of the newest entry, -1 when empty."""
        return len(self._entries) - 1

    def append(self, text: str) -> Broadcast:
        """Add a broadcast to the end of the queue."""
        broadcast = Broadcast(text=text)
        self._entries.append(broadcast)
        logger.info(f"Broadcast #{self.tail_index} queued")
        return broadcast

    def since(self, last_seen_index: int) -> list[Broadcast]:
        """Entries newer than last_seen_index, oldest first."""
        start = max(last_seen_index + 1, 0)
        return self._entries[start:]
