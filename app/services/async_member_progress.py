"""
Progreso del miembro para el dashboard: rachas, badges y grid de asistencia.

Modelo de lectura sobre el libro de asistencia; se cachea en Redis y se
invalida en cada check-in y cada vez que se otorga un badge.
"""
from datetime import date
from typing import Optional
import logging

from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.exceptions import NotAMemberError
from app.core.timezone_utils import get_checkin_today
from app.repositories.async_attendance import async_attendance_repository
from app.repositories.async_member import async_member_repository
from app.schemas.member import AttendanceDay, Badge, MemberProgress
from app.services.cache_service import cache_service, MEMBER_PROGRESS_KEY
from app.services.streak import attendance_grid, current_streak, longest_streak

logger = logging.getLogger(__name__)


class AsyncMemberProgressService:

    async def _build_progress(
        self,
        db: AsyncSession,
        member_id: int,
        gym_id: int,
        today: date
    ) -> MemberProgress:
        dates = await async_attendance_repository.list_dates_for_member(
            db, member_id=member_id, gym_id=gym_id
        )
        badges = await async_member_repository.list_badges(db, member_id=member_id)
        date_set = set(dates)

        grid = attendance_grid(date_set, today, days=get_settings().ATTENDANCE_GRID_DAYS)

        return MemberProgress(
            member_id=member_id,
            gym_id=gym_id,
            today=today,
            current_streak=current_streak(date_set, today),
            longest_streak=longest_streak(date_set),
            total_checkins=len(date_set),
            checked_in_today=today in date_set,
            badges=[Badge.model_validate(badge) for badge in badges],
            attendance_grid=[AttendanceDay(date=day, present=present) for day, present in grid]
        )

    async def get_progress(
        self,
        db: AsyncSession,
        *,
        member_id: int,
        gym_id: int,
        today: Optional[date] = None,
        redis_client: Optional[Redis] = None
    ) -> MemberProgress:
        """
        Obtiene el progreso de un miembro en su gimnasio.

        Args:
            db: Sesión async de base de datos
            member_id: ID del miembro
            gym_id: ID del gimnasio
            today: Hoy en la zona de check-in (default: calculado)
            redis_client: Cliente Redis opcional para caché

        Returns:
            MemberProgress con rachas, badges y grid de los últimos días

        Raises:
            NotAMemberError: El miembro no existe en este gimnasio
        """
        member = await async_member_repository.get(db, id=member_id, gym_id=gym_id)
        if member is None:
            raise NotAMemberError(gym_id, member_id=member_id)

        today = today or get_checkin_today()
        cache_key = MEMBER_PROGRESS_KEY.format(gym_id=gym_id, member_id=member_id)

        async def db_fetch():
            return await self._build_progress(db, member_id, gym_id, today)

        progress = await cache_service.get_or_set(
            redis_client,
            cache_key,
            db_fetch,
            MemberProgress,
            expiry_seconds=get_settings().CACHE_TTL_MEMBER_PROGRESS
        )

        # Una entrada de otro día no sirve (la racha depende de "hoy")
        if progress.today != today:
            logger.debug(f"Progreso cacheado de otro día para miembro {member_id}, recalculando")
            progress = await db_fetch()
            await cache_service.invalidate(redis_client, [cache_key])

        return progress


async_member_progress_service = AsyncMemberProgressService()
