"""User enumeration for the presence sync job."""
import asyncio
import logging
from typing import AsyncIterator

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from presence_sync.models import User
from presence_sync.services.errors import PresenceStoreError
from presence_sync.services.presence_types import UserRow

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 500


class UserBatchService:
    """Pages through the user table in primary-key order.

    Pages are disjoint as long as ids are stable; the explicit ``ORDER BY id`` keeps
    the slices deterministic between queries.
    """

    def __init__(
        self,
        db: AsyncSession,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_retries: int = 0,
        retry_backoff_seconds: float = 0.0,
    ):
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self.db = db
        self.page_size = page_size
        self.max_retries = max(0, max_retries)
        self.retry_backoff_seconds = retry_backoff_seconds

    async def fetch_page(self, page: int) -> list[UserRow]:
        """
        Fetch one page of users.

        Args:
            page: Zero-based page index

        Returns:
            Users on the page (id, name, state only); empty once past the end

        Raises:
            PresenceStoreError: If the read still fails after the configured retries
        """
        if page < 0:
            raise ValueError("page must not be negative")

        stmt = (
            select(User.id, User.name, User.state)
            .order_by(User.id)
            .limit(self.page_size)
            .offset(page * self.page_size)
        )

        attempt = 0
        while True:
            attempt += 1
            try:
                result = await self.db.execute(stmt)
                users = [UserRow(row.id, row.name, row.state) for row in result]
                # Release the read transaction between pages
                await self.db.commit()
                return users
            except SQLAlchemyError as e:
                # A failed statement leaves the session unusable until rolled back
                await self.db.rollback()
                if attempt > self.max_retries:
                    raise PresenceStoreError(f"fetch user page {page}", e) from e
                delay = self.retry_backoff_seconds * attempt
                logger.warning(
                    f"User page {page} read failed (attempt {attempt}/{self.max_retries + 1}), "
                    f"retrying in {delay:.2f}s: {e}"
                )
                if delay:
                    await asyncio.sleep(delay)

    async def iter_pages(self) -> AsyncIterator[tuple[int, list[UserRow]]]:
        """Yield ``(page, users)`` until the first empty page."""
        page = 0
        while True:
            users = await self.fetch_page(page)
            if not users:
                logger.debug(f"User enumeration finished after {page} page(s)")
                return
            yield page, users
            page += 1
