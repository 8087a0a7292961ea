"""Tests for ActivityService windowed membership queries."""
from datetime import timedelta

import pytest

from presence_sync.models import LoginType
from presence_sync.services import ActivityService, ActivityWindow


@pytest.fixture
def window(frozen_now):
    return ActivityWindow.ending_at(frozen_now, minutes=5)


class TestWindowBoundaries:
    """Lower edge of the window is inclusive."""

    @pytest.mark.asyncio
    async def test_transaction_just_inside_window_is_active(
        self, db_session, user_factory, game_log_factory, window
    ):
        user = await user_factory()
        await game_log_factory(user.id, window.start + timedelta(seconds=1))

        active = await ActivityService(db_session).find_active_user_ids([user.id], window)

        assert active == {user.id}

    @pytest.mark.asyncio
    async def test_transaction_just_outside_window_is_inactive(
        self, db_session, user_factory, game_log_factory, window
    ):
        user = await user_factory()
        await game_log_factory(user.id, window.start - timedelta(seconds=1))

        active = await ActivityService(db_session).find_active_user_ids([user.id], window)

        assert active == set()

    @pytest.mark.asyncio
    async def test_transaction_exactly_at_window_start_is_active(
        self, db_session, user_factory, game_log_factory, window
    ):
        user = await user_factory()
        await game_log_factory(user.id, window.start)

        active = await ActivityService(db_session).find_active_user_ids([user.id], window)

        assert active == {user.id}

    @pytest.mark.asyncio
    async def test_future_dated_record_counts_as_active(
        self, db_session, user_factory, game_log_factory, login_log_factory, window
    ):
        """Known boundary: only the lower edge is filtered, so clock-skewed rows count."""
        game_user = await user_factory(name="game")
        login_user = await user_factory(name="login")
        await game_log_factory(game_user.id, window.end + timedelta(hours=1))
        await login_log_factory(login_user.id, window.end + timedelta(minutes=10))

        active = await ActivityService(db_session).find_active_user_ids(
            [game_user.id, login_user.id], window
        )

        assert active == {game_user.id, login_user.id}


class TestDualSourceUnion:
    """Game logs and user logins are combined."""

    @pytest.mark.asyncio
    async def test_login_only_user_is_active(
        self, db_session, user_factory, login_log_factory, window
    ):
        user = await user_factory()
        await login_log_factory(user.id, window.end - timedelta(minutes=1))

        active = await ActivityService(db_session).find_active_user_ids([user.id], window)

        assert active == {user.id}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("login_type", [LoginType.ADMIN, LoginType.SYSTEM])
    async def test_non_user_login_type_is_ignored(
        self, db_session, user_factory, login_log_factory, window, login_type
    ):
        user = await user_factory()
        await login_log_factory(user.id, window.end - timedelta(minutes=1), login_type=login_type)

        active = await ActivityService(db_session).find_active_user_ids([user.id], window)

        assert active == set()

    @pytest.mark.asyncio
    async def test_union_is_deduplicated(
        self, db_session, user_factory, game_log_factory, login_log_factory, window
    ):
        both = await user_factory(name="both")
        game_only = await user_factory(name="game_only")
        idle = await user_factory(name="idle")
        recent = window.end - timedelta(minutes=2)
        await game_log_factory(both.id, recent)
        await game_log_factory(both.id, recent + timedelta(seconds=30))
        await login_log_factory(both.id, recent)
        await game_log_factory(game_only.id, recent)

        service = ActivityService(db_session)
        active = await service.find_active_user_ids([both.id, game_only.id, idle.id], window)

        assert active == {both.id, game_only.id}
        assert await service.find_game_active_ids([both.id, game_only.id, idle.id], window) == {
            both.id,
            game_only.id,
        }
        assert await service.find_login_active_ids([both.id, game_only.id, idle.id], window) == {
            both.id,
        }

    @pytest.mark.asyncio
    async def test_configured_login_type_is_respected(
        self, db_session, user_factory, login_log_factory, window
    ):
        user = await user_factory()
        await login_log_factory(user.id, window.end - timedelta(minutes=1), login_type=LoginType.SYSTEM)

        service = ActivityService(db_session, user_login_type=LoginType.SYSTEM.value)

        assert await service.find_active_user_ids([user.id], window) == {user.id}


class TestMembershipFiltering:
    """Queries are limited to the ids they are given."""

    @pytest.mark.asyncio
    async def test_activity_of_users_outside_input_is_ignored(
        self, db_session, user_factory, game_log_factory, window
    ):
        in_chunk = await user_factory(name="in_chunk")
        other = await user_factory(name="other")
        await game_log_factory(other.id, window.end - timedelta(minutes=1))

        active = await ActivityService(db_session).find_active_user_ids([in_chunk.id], window)

        assert active == set()

    @pytest.mark.asyncio
    async def test_records_for_deleted_users_do_not_fail(
        self, db_session, user_factory, game_log_factory, login_log_factory, window
    ):
        user = await user_factory()
        missing_id = user.id + 1000
        await game_log_factory(missing_id, window.end - timedelta(minutes=1))
        await login_log_factory(missing_id, window.end - timedelta(minutes=1))

        active = await ActivityService(db_session).find_active_user_ids([user.id], window)

        assert active == set()

    @pytest.mark.asyncio
    async def test_empty_input_skips_the_store(self, window):
        service = ActivityService(None)

        assert await service.find_active_user_ids([], window) == set()

    @pytest.mark.asyncio
    async def test_long_id_lists_are_split(
        self, db_session, bulk_user_factory, game_log_factory, login_log_factory, window
    ):
        user_ids = await bulk_user_factory(7)
        recent = window.end - timedelta(minutes=1)
        await game_log_factory(user_ids[0], recent)
        await login_log_factory(user_ids[3], recent)
        await game_log_factory(user_ids[6], recent)

        service = ActivityService(db_session, max_predicate_ids=2)

        active = await service.find_active_user_ids(user_ids, window)

        assert active == {user_ids[0], user_ids[3], user_ids[6]}
