"""Presence sync job: enumerate users, correlate activity, reconcile presence flags."""
import asyncio
import logging
import time
from contextlib import aclosing
from datetime import datetime
from typing import AsyncIterator, Callable, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from presence_sync.config import Settings, get_settings
from presence_sync.services.activity_service import ActivityService, DETECTION_SOURCES
from presence_sync.services.presence_service import PresenceService, partition_users
from presence_sync.services.presence_types import (
    ActivityWindow,
    ChunkResult,
    PresenceSyncStats,
    UserRow,
)
from presence_sync.services.user_batch_service import UserBatchService
from presence_sync.utils.datetime_helpers import utc_now

logger = logging.getLogger(__name__)


def _silent(message: str) -> None:
    return None


class PresenceSyncJob:
    """Runs one full presence reconciliation pass over the user table.

    The activity window is computed once from a single frozen ``now`` before the
    first chunk and shared by every chunk. Chunks are processed one after another
    unless ``presence_chunk_workers`` allows more; each chunk always runs on its
    own session.
    """

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = utc_now,
        progress: Callable[[str], None] = _silent,
    ):
        if session_factory is None:
            from presence_sync.database import AsyncSessionLocal
            session_factory = AsyncSessionLocal
        self.session_factory = session_factory
        self.settings = settings or get_settings()
        self.clock = clock
        self.progress = progress

    @property
    def workers(self) -> int:
        return self.settings.presence_chunk_workers

    async def run(self, now: Optional[datetime] = None) -> PresenceSyncStats:
        """
        Reconcile every user's presence flag.

        Args:
            now: Reference time for the activity window; defaults to the job clock

        Returns:
            Run statistics

        Raises:
            PresenceStoreError: On the first unrecovered store failure. Chunks
                finished before the failure stay committed.
        """
        start_time = time.monotonic()
        window = ActivityWindow.ending_at(now or self.clock(), self.settings.presence_window_minutes)
        stats = PresenceSyncStats()

        logger.info(
            "Presence sync started",
            extra={
                "window_start": window.start.isoformat(),
                "window_end": window.end.isoformat(),
                "batch_size": self.settings.presence_batch_size,
                "workers": self.workers,
            },
        )

        try:
            if self.workers > 1:
                await self._run_pool(window, stats)
            else:
                await self._run_serial(window, stats)
        except Exception:
            stats.execution_time = round(time.monotonic() - start_time, 2)
            logger.error("Presence sync aborted", extra=stats.as_log_context())
            raise

        stats.execution_time = round(time.monotonic() - start_time, 2)
        logger.info(
            f"Presence sync completed: {stats.total_users} users, "
            f"{stats.online_users} online, {stats.offline_users} offline "
            f"in {stats.execution_time}s",
            extra={
                **stats.as_log_context(),
                "time_window": f"{self.settings.presence_window_minutes} minutes",
                "detection_sources": list(DETECTION_SOURCES),
            },
        )
        return stats

    async def process_chunk(
        self,
        page: int,
        users: Sequence[UserRow],
        window: ActivityWindow,
    ) -> ChunkResult:
        """Correlate and reconcile one page of users on a dedicated session."""
        async with self.session_factory() as db:
            activity_service = ActivityService(
                db,
                user_login_type=self.settings.presence_user_login_type,
                max_predicate_ids=self.settings.presence_max_predicate_ids,
            )
            active_ids = await activity_service.find_active_user_ids(
                [user.id for user in users], window
            )

            partition = partition_users(users, active_ids)
            presence_service = PresenceService(
                db,
                clock=self.clock,
                max_predicate_ids=self.settings.presence_max_predicate_ids,
                log_sample_size=self.settings.presence_log_sample_size,
            )
            await presence_service.apply(partition)

        return ChunkResult(
            page=page,
            total=len(users),
            online=len(partition.active_ids),
            offline=len(partition.inactive_ids),
        )

    async def _pages(self) -> AsyncIterator[tuple[int, list[UserRow]]]:
        async with self.session_factory() as db:
            batch_service = UserBatchService(
                db,
                page_size=self.settings.presence_batch_size,
                max_retries=self.settings.presence_page_fetch_retries,
                retry_backoff_seconds=self.settings.presence_retry_backoff_seconds,
            )
            async for page, users in batch_service.iter_pages():
                yield page, users

    async def _run_serial(self, window: ActivityWindow, stats: PresenceSyncStats) -> None:
        async with aclosing(self._pages()) as pages:
            async for page, users in pages:
                self.progress(f"Processing batch {page + 1} ({len(users)} users)...")
                result = await self.process_chunk(page, users, window)
                self._record(result, stats)

    async def _run_pool(self, window: ActivityWindow, stats: PresenceSyncStats) -> None:
        semaphore = asyncio.Semaphore(self.workers)
        pending: set[asyncio.Task] = set()

        async def _bounded(page: int, users: list[UserRow]) -> ChunkResult:
            try:
                return await self.process_chunk(page, users, window)
            finally:
                semaphore.release()

        try:
            async with aclosing(self._pages()) as pages:
                async for page, users in pages:
                    await semaphore.acquire()
                    self._harvest(pending, stats)
                    self.progress(f"Processing batch {page + 1} ({len(users)} users)...")
                    pending.add(asyncio.create_task(_bounded(page, users)))

            while pending:
                await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                self._harvest(pending, stats)
        except BaseException:
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            raise

    def _harvest(self, pending: set[asyncio.Task], stats: PresenceSyncStats) -> None:
        # Results are merged here only, so the accumulator has a single writer
        for task in [t for t in pending if t.done()]:
            pending.discard(task)
            self._record(task.result(), stats)

    def _record(self, result: ChunkResult, stats: PresenceSyncStats) -> None:
        stats.add(result)
        self.progress(
            f"Batch {result.page + 1} done, processed users: {stats.processed_users}"
        )
