"""Value types passed between the presence sync stages."""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import NamedTuple

from presence_sync.utils.datetime_helpers import ensure_utc


class UserRow(NamedTuple):
    """Narrow projection of a user row fetched by the enumerator."""
    id: int
    name: str
    state: int


@dataclass(frozen=True)
class ActivityWindow:
    """Trailing activity window ``[start, end)`` frozen once per run.

    Only ``start`` is used as a filter. Records stamped after ``end`` still count.
    """
    start: datetime
    end: datetime

    @classmethod
    def ending_at(cls, now: datetime, minutes: int) -> "ActivityWindow":
        end = ensure_utc(now)
        return cls(start=end - timedelta(minutes=minutes), end=end)

    @property
    def minutes(self) -> float:
        return (self.end - self.start).total_seconds() / 60


@dataclass(frozen=True)
class ChunkPartition:
    """Chunk users split by activity. Together the lists cover the chunk exactly once."""
    active_ids: list[int]
    inactive_ids: list[int]

    @property
    def size(self) -> int:
        return len(self.active_ids) + len(self.inactive_ids)


@dataclass(frozen=True)
class ChunkResult:
    """Counts produced by processing a single chunk."""
    page: int
    total: int
    online: int
    offline: int


@dataclass
class PresenceSyncStats:
    """Run-wide accumulator, fed one ``ChunkResult`` at a time."""
    total_users: int = 0
    online_users: int = 0
    offline_users: int = 0
    processed_users: int = 0
    chunks: int = 0
    execution_time: float = 0.0

    def add(self, result: ChunkResult) -> None:
        self.total_users += result.total
        self.online_users += result.online
        self.offline_users += result.offline
        self.processed_users += result.online + result.offline
        self.chunks += 1

    def as_log_context(self) -> dict:
        return {
            "total_users": self.total_users,
            "online_users": self.online_users,
            "offline_users": self.offline_users,
            "processed_users": self.processed_users,
            "chunks": self.chunks,
            "execution_time": self.execution_time,
        }
