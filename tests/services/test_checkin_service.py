"""
Tests para AsyncCheckInService: los cuatro resultados del check-in y la
evaluación de badges en background.
"""
from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from app.core.exceptions import BadgeEvaluationError, StorageFailureError
from app.models.attendance import Attendance
from app.models.member import MemberBadge
from app.repositories.async_attendance import async_attendance_repository
from app.schemas.attendance import CheckInStatus
from app.services.async_badge import AsyncBadgeService
from app.services.async_checkin import AsyncCheckInService
from app.services.cache_service import LEADERBOARD_KEY, MEMBER_PROGRESS_KEY
from tests.helpers import ist_instant, seed_attendance


async def no_referrals(db, member_id, gym_id, today):
    return 0


async def no_rank(db, member_id, gym_id, today):
    return None


@pytest_asyncio.fixture
async def service(job_session_factory, no_redis):
    checkin_service = AsyncCheckInService(
        badge_service=AsyncBadgeService(referral_source=no_referrals, rank_source=no_rank),
        session_factory=job_session_factory,
        redis_factory=no_redis
    )
    yield checkin_service
    await checkin_service.wait_for_pending()


class TestCheckInOutcomes:

    @pytest.mark.asyncio
    async def test_success(self, db, member, service):
        instant = ist_instant(date(2024, 3, 11), 6)
        result = await service.check_in(db, member.id, member.gym_id, instant=instant)

        assert result.status == CheckInStatus.success
        assert result.success
        assert result.check_in_date == date(2024, 3, 11)
        assert result.attendance is not None
        assert result.attendance.member_id == member.id

    @pytest.mark.asyncio
    async def test_second_check_in_same_day_already_checked_in(self, db, member, service):
        day = date(2024, 3, 11)
        await service.check_in(db, member.id, member.gym_id, instant=ist_instant(day, 6))
        result = await service.check_in(db, member.id, member.gym_id, instant=ist_instant(day, 21))

        assert result.status == CheckInStatus.already_checked_in
        assert not result.success
        assert result.check_in_date == day
        assert result.attendance is None

    @pytest.mark.asyncio
    async def test_unknown_member_rejected(self, db, gym, service):
        result = await service.check_in(db, 9999, gym.id)
        assert result.status == CheckInStatus.rejected

    @pytest.mark.asyncio
    async def test_member_of_other_gym_rejected(self, db, member, other_gym, service):
        result = await service.check_in(db, member.id, other_gym.id)

        assert result.status == CheckInStatus.rejected
        records = await async_attendance_repository.list_for_member(db, member_id=member.id, gym_id=other_gym.id)
        assert records == []

    @pytest.mark.asyncio
    async def test_inactive_member_rejected(self, db, inactive_member, service):
        result = await service.check_in(db, inactive_member.id, inactive_member.gym_id)
        assert result.status == CheckInStatus.rejected

    @pytest.mark.asyncio
    async def test_storage_failure(self, db, member, service, monkeypatch):
        monkeypatch.setattr(
            async_attendance_repository,
            "record_check_in",
            AsyncMock(side_effect=StorageFailureError("disco lleno"))
        )

        result = await service.check_in(db, member.id, member.gym_id)

        assert result.status == CheckInStatus.failure
        assert service.pending_count == 0

    @pytest.mark.asyncio
    async def test_success_does_not_reload_record_after_commit(self, db, member, service, session_factory, monkeypatch):
        member_id, gym_id = member.id, member.gym_id
        lost = OperationalError("SELECT", {}, Exception("conexión perdida"))
        monkeypatch.setattr(db, "refresh", AsyncMock(side_effect=lost))

        result = await service.check_in(db, member_id, gym_id, instant=ist_instant(date(2024, 3, 11), 6))

        assert result.status == CheckInStatus.success
        assert result.attendance.id is not None
        async with session_factory() as session:
            rows = await session.execute(select(Attendance).where(Attendance.member_id == member_id))
            assert len(rows.scalars().all()) == 1


class TestSelfCheckIn:

    @pytest.mark.asyncio
    async def test_by_user_success_then_duplicate(self, db, member, service):
        day = date(2024, 3, 11)
        first = await service.check_in_by_user(db, member.user_id, member.gym_id, instant=ist_instant(day, 6))
        # El dueño marca al mismo miembro el mismo día: misma regla de idempotencia
        second = await service.check_in(db, member.id, member.gym_id, instant=ist_instant(day, 9))

        assert first.status == CheckInStatus.success
        assert second.status == CheckInStatus.already_checked_in

    @pytest.mark.asyncio
    async def test_unknown_user_rejected(self, db, gym, service):
        result = await service.check_in_by_user(db, 424242, gym.id)
        assert result.status == CheckInStatus.rejected

    @pytest.mark.asyncio
    async def test_inactive_user_rejected(self, db, inactive_member, service):
        result = await service.check_in_by_user(db, inactive_member.user_id, inactive_member.gym_id)
        assert result.status == CheckInStatus.rejected


class TestBackgroundBadges:

    @pytest.mark.asyncio
    async def test_seventh_check_in_awards_first_week(self, db, member, service):
        await seed_attendance(db, member, [date(2024, 1, d) for d in range(1, 7)])

        result = await service.check_in(db, member.id, member.gym_id, instant=ist_instant(date(2024, 1, 7), 8))
        assert result.status == CheckInStatus.success

        await service.wait_for_pending()
        assert service.pending_count == 0

        badges = await db.execute(select(MemberBadge.badge_type).where(MemberBadge.member_id == member.id))
        assert list(badges.scalars().all()) == ["first_week"]

    @pytest.mark.asyncio
    async def test_badge_failure_does_not_fail_check_in(self, db, member, job_session_factory, no_redis):
        badge_service = MagicMock()
        badge_service.evaluate_member = AsyncMock(side_effect=BadgeEvaluationError("fallo de BD"))
        service = AsyncCheckInService(
            badge_service=badge_service,
            session_factory=job_session_factory,
            redis_factory=no_redis
        )

        result = await service.check_in(db, member.id, member.gym_id)
        await service.wait_for_pending()

        assert result.status == CheckInStatus.success
        badge_service.evaluate_member.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unexpected_badge_error_is_contained(self, db, member, job_session_factory, no_redis):
        badge_service = MagicMock()
        badge_service.evaluate_member = AsyncMock(side_effect=RuntimeError("bug"))
        service = AsyncCheckInService(
            badge_service=badge_service,
            session_factory=job_session_factory,
            redis_factory=no_redis
        )

        result = await service.check_in(db, member.id, member.gym_id)
        await service.wait_for_pending()

        assert result.status == CheckInStatus.success

    @pytest.mark.asyncio
    async def test_duplicate_does_not_dispatch_evaluation(self, db, member, job_session_factory, no_redis):
        badge_service = MagicMock()
        badge_service.evaluate_member = AsyncMock(return_value=[])
        service = AsyncCheckInService(
            badge_service=badge_service,
            session_factory=job_session_factory,
            redis_factory=no_redis
        )
        day = date(2024, 3, 11)

        await service.check_in(db, member.id, member.gym_id, instant=ist_instant(day, 6))
        await service.check_in(db, member.id, member.gym_id, instant=ist_instant(day, 7))
        await service.wait_for_pending()

        assert badge_service.evaluate_member.await_count == 1


class TestCacheInvalidation:

    @pytest.mark.asyncio
    async def test_success_invalidates_progress_and_leaderboard(self, db, member, service):
        redis_client = AsyncMock()
        await service.check_in(
            db, member.id, member.gym_id,
            instant=ist_instant(date(2024, 3, 11)), redis_client=redis_client
        )

        redis_client.delete.assert_awaited_once_with(
            MEMBER_PROGRESS_KEY.format(gym_id=member.gym_id, member_id=member.id),
            LEADERBOARD_KEY.format(gym_id=member.gym_id, month="2024-03-01")
        )

    @pytest.mark.asyncio
    async def test_redis_error_does_not_fail_check_in(self, db, member, service):
        redis_client = AsyncMock()
        redis_client.delete.side_effect = ConnectionError("redis caído")

        result = await service.check_in(db, member.id, member.gym_id, redis_client=redis_client)

        assert result.status == CheckInStatus.success
