"""Activity correlation for the presence sync job."""
import logging
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from presence_sync.models import GameMoneyLog, LoginLog, LoginType
from presence_sync.services.errors import PresenceStoreError
from presence_sync.services.presence_types import ActivityWindow
from presence_sync.utils.batching import chunked

logger = logging.getLogger(__name__)

DETECTION_SOURCES = ("game_money_logs", "login_log")


class ActivityService:
    """Finds which of a set of users acted inside an activity window.

    Both log tables are filtered by the given ids before grouping, so the cost
    tracks the chunk size and the window rather than total log volume.
    """

    def __init__(
        self,
        db: AsyncSession,
        user_login_type: int = LoginType.USER.value,
        max_predicate_ids: int = 1000,
    ):
        self.db = db
        self.user_login_type = int(user_login_type)
        self.max_predicate_ids = max_predicate_ids

    async def find_active_user_ids(
        self,
        user_ids: Sequence[int],
        window: ActivityWindow,
    ) -> set[int]:
        """
        Return the subset of ``user_ids`` with qualifying activity in ``window``.

        A user qualifies with at least one game money log, or one login log of the
        user login type, stamped at or after ``window.start``.

        Args:
            user_ids: Ids of the chunk being reconciled
            window: The run's frozen activity window

        Returns:
            Set of active user ids (unordered)
        """
        if not user_ids:
            return set()

        game_ids = await self.find_game_active_ids(user_ids, window)
        login_ids = await self.find_login_active_ids(user_ids, window)

        logger.debug(
            f"Activity lookup for {len(user_ids)} users: "
            f"{len(game_ids)} via game logs, {len(login_ids)} via logins"
        )
        return game_ids | login_ids

    async def find_game_active_ids(
        self,
        user_ids: Sequence[int],
        window: ActivityWindow,
    ) -> set[int]:
        """Users with a game money log at or after the window start."""
        active: set[int] = set()
        for id_batch in chunked(list(user_ids), self.max_predicate_ids):
            stmt = (
                select(GameMoneyLog.member_id)
                .where(
                    GameMoneyLog.member_id.in_(id_batch),
                    GameMoneyLog.created_at >= window.start,
                )
                .group_by(GameMoneyLog.member_id)
            )
            active.update(await self._scalars("query game activity", stmt))
        return active

    async def find_login_active_ids(
        self,
        user_ids: Sequence[int],
        window: ActivityWindow,
    ) -> set[int]:
        """Users with a user-type login at or after the window start."""
        active: set[int] = set()
        for id_batch in chunked(list(user_ids), self.max_predicate_ids):
            stmt = (
                select(LoginLog.unique_id)
                .where(
                    LoginLog.unique_id.in_(id_batch),
                    LoginLog.login_type == self.user_login_type,
                    LoginLog.login_time >= window.start,
                )
                .group_by(LoginLog.unique_id)
            )
            active.update(await self._scalars("query login activity", stmt))
        return active

    async def _scalars(self, operation: str, stmt) -> list[int]:
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            raise PresenceStoreError(operation, e) from e
        return list(result.scalars().all())
