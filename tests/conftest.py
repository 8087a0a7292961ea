"""Pytest configuration and fixtures."""
import os
from datetime import datetime, UTC

import pytest
from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

# Keep the application engine away from any real database during tests
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["ENVIRONMENT"] = "test"

from presence_sync.config import Settings
from presence_sync.database import Base
from presence_sync.models import GameMoneyLog, LoginLog, LoginType, PresenceState, User


@pytest.fixture
async def test_engine(tmp_path):
    """Fresh SQLite database per test, created from the ORM metadata."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'presence_test.db'}",
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Properly dispose of the engine to close all connections
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
async def db_session(session_factory):
    """Create test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()
        await session.close()


@pytest.fixture
def frozen_now():
    """Reference time used as the run's ``now``."""
    return datetime(2025, 6, 1, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def job_settings(tmp_path):
    """Settings for job runs: no retry backoff, logs under the test directory."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'unused.db'}",
        environment="test",
        log_dir=str(tmp_path / "logs"),
        presence_retry_backoff_seconds=0,
    )


@pytest.fixture
def user_factory(db_session):
    """Factory for creating users."""

    async def _create_user(
        name: str | None = None,
        state: PresenceState = PresenceState.OFFLINE,
        last_activity_at: datetime | None = None,
    ) -> User:
        user = User(
            name=name or "user",
            state=state.value,
            last_activity_at=last_activity_at,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _create_user


@pytest.fixture
def bulk_user_factory(db_session):
    """Insert ``count`` offline users in one statement and return their ids in order."""

    async def _create_users(count: int) -> list[int]:
        if count == 0:
            return []
        await db_session.execute(
            insert(User),
            [{"name": f"bulk_user_{i}", "state": PresenceState.OFFLINE.value} for i in range(count)],
        )
        await db_session.commit()
        result = await db_session.execute(select(User.id).order_by(User.id))
        return list(result.scalars().all())

    return _create_users


@pytest.fixture
def game_log_factory(db_session):
    """Factory for game money log records."""

    async def _create_game_log(member_id: int, created_at: datetime, money: int = 10) -> GameMoneyLog:
        log = GameMoneyLog(member_id=member_id, money=money, created_at=created_at)
        db_session.add(log)
        await db_session.commit()
        return log

    return _create_game_log


@pytest.fixture
def login_log_factory(db_session):
    """Factory for login log records."""

    async def _create_login_log(
        user_id: int,
        login_time: datetime,
        login_type: LoginType = LoginType.USER,
    ) -> LoginLog:
        log = LoginLog(unique_id=user_id, login_type=login_type.value, login_time=login_time)
        db_session.add(log)
        await db_session.commit()
        return log

    return _create_login_log
