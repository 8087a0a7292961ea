"""Presence state reconciliation."""
import logging
from datetime import datetime
from typing import Callable, Collection, Iterable, Sequence

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from presence_sync.models import PresenceState, User
from presence_sync.services.errors import PresenceStoreError
from presence_sync.services.presence_types import ChunkPartition, UserRow
from presence_sync.utils.batching import chunked, sample_ids
from presence_sync.utils.datetime_helpers import utc_now

logger = logging.getLogger(__name__)


def partition_users(users: Iterable[UserRow], active_ids: Collection[int]) -> ChunkPartition:
    """Split chunk users into active and inactive id lists, keeping chunk order."""
    active: list[int] = []
    inactive: list[int] = []
    for user in users:
        if user.id in active_ids:
            active.append(user.id)
        else:
            inactive.append(user.id)
    return ChunkPartition(active_ids=active, inactive_ids=inactive)


class PresenceService:
    """Writes presence flags for one chunk with two bulk conditional updates.

    Active users are always rewritten so their ``last_activity_at`` is refreshed.
    Each update is committed on its own; there is no transaction spanning both.
    """

    def __init__(
        self,
        db: AsyncSession,
        clock: Callable[[], datetime] = utc_now,
        max_predicate_ids: int = 1000,
        log_sample_size: int = 10,
    ):
        self.db = db
        self.clock = clock
        self.max_predicate_ids = max_predicate_ids
        self.log_sample_size = log_sample_size

    async def apply(self, partition: ChunkPartition) -> None:
        """Persist a chunk partition. Empty lists issue no write."""
        if partition.active_ids:
            await self.mark_online(partition.active_ids)
        if partition.inactive_ids:
            await self.mark_offline(partition.inactive_ids)

    async def mark_online(self, user_ids: Sequence[int]) -> int:
        """
        Set users online and stamp ``last_activity_at`` with the current time.

        Returns:
            Number of rows the store reports as updated
        """
        if not user_ids:
            return 0

        values = {
            "state": PresenceState.ONLINE.value,
            "last_activity_at": self.clock(),
        }
        updated = await self._bulk_update("mark users online", user_ids, values)

        logger.info(
            f"Bulk updated {len(user_ids)} online users",
            extra={
                "count": len(user_ids),
                "user_ids": sample_ids(user_ids, self.log_sample_size),
            },
        )
        return updated

    async def mark_offline(self, user_ids: Sequence[int]) -> int:
        """
        Set users offline; ``last_activity_at`` is left as is.

        Returns:
            Number of rows the store reports as updated
        """
        if not user_ids:
            return 0

        updated = await self._bulk_update(
            "mark users offline", user_ids, {"state": PresenceState.OFFLINE.value}
        )

        logger.info(
            f"Bulk updated {len(user_ids)} offline users",
            extra={
                "count": len(user_ids),
                "user_ids": sample_ids(user_ids, self.log_sample_size),
            },
        )
        return updated

    async def _bulk_update(self, operation: str, user_ids: Sequence[int], values: dict) -> int:
        updated = 0
        try:
            for id_batch in chunked(list(user_ids), self.max_predicate_ids):
                result = await self.db.execute(
                    update(User)
                    .where(User.id.in_(id_batch))
                    .values(**values)
                    .execution_options(synchronize_session=False)
                )
                updated += result.rowcount or 0
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PresenceStoreError(operation, e) from e
        return updated
