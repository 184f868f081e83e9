"""
Leaderboard mensual de asistencia por gimnasio.

Agregado de solo lectura: check-ins del mes calendario actual (zona horaria
de check-in), top N por cantidad. Lo consume la vista del miembro y la regla
de badge top_10.
"""
from datetime import date
from typing import Optional
import logging

from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.timezone_utils import get_checkin_today, get_month_range
from app.repositories.async_attendance import async_attendance_repository
from app.repositories.async_member import async_member_repository
from app.schemas.leaderboard import Leaderboard, LeaderboardEntry
from app.services.badge_rules import LEADERBOARD_TOP
from app.services.cache_service import cache_service, LEADERBOARD_KEY

logger = logging.getLogger(__name__)


def privacy_name(full_name: str) -> str:
    """'Ravi Kumar Sharma' -> 'Ravi S.'; nombres de una palabra quedan igual."""
    parts = (full_name or "").split()
    if not parts:
        return ""
    if len(parts) == 1:
        return parts[0]
    return f"{parts[0]} {parts[-1][0]}."


class AsyncLeaderboardService:

    async def _compute_leaderboard(self, db: AsyncSession, gym_id: int, today: date) -> Leaderboard:
        settings = get_settings()
        counts = await async_attendance_repository.monthly_counts(
            db, gym_id=gym_id, day=today, limit=settings.LEADERBOARD_SIZE
        )
        members = await async_member_repository.get_many(
            db, member_ids=[member_id for member_id, _ in counts]
        )
        names = {member.id: member.name for member in members}

        entries = [
            LeaderboardEntry(
                rank=index + 1,
                member_id=member_id,
                name=privacy_name(names.get(member_id, "")),
                count=count
            )
            for index, (member_id, count) in enumerate(counts)
        ]
        return Leaderboard(gym_id=gym_id, month_start=get_month_range(today)[0], entries=entries)

    async def get_monthly_leaderboard(
        self,
        db: AsyncSession,
        gym_id: int,
        *,
        viewer_member_id: Optional[int] = None,
        today: Optional[date] = None,
        redis_client: Optional[Redis] = None
    ) -> Leaderboard:
        """
        Top del mes actual para el gimnasio.

        Args:
            db: Sesión async de base de datos
            gym_id: ID del gimnasio
            viewer_member_id: Miembro que consulta (marca is_me)
            today: Hoy en la zona de check-in (default: calculado)
            redis_client: Cliente Redis opcional para caché
        """
        today = today or get_checkin_today()
        month_start = get_month_range(today)[0]
        cache_key = LEADERBOARD_KEY.format(gym_id=gym_id, month=month_start.isoformat())

        async def db_fetch():
            return await self._compute_leaderboard(db, gym_id, today)

        leaderboard = await cache_service.get_or_set(
            redis_client,
            cache_key,
            db_fetch,
            Leaderboard,
            expiry_seconds=get_settings().CACHE_TTL_LEADERBOARD
        )

        if viewer_member_id is not None:
            for entry in leaderboard.entries:
                entry.is_me = entry.member_id == viewer_member_id
        return leaderboard

    async def get_member_rank(
        self,
        db: AsyncSession,
        *,
        member_id: int,
        gym_id: int,
        today: Optional[date] = None
    ) -> Optional[int]:
        """
        Posición del miembro en el ranking mensual (hasta LEADERBOARD_TOP), o None
        si queda fuera. No depende de LEADERBOARD_SIZE, que solo limita lo que se muestra.
        Siempre lee de la BD (sin caché) para no otorgar badges con datos viejos.
        """
        today = today or get_checkin_today()
        counts = await async_attendance_repository.monthly_counts(
            db, gym_id=gym_id, day=today, limit=LEADERBOARD_TOP
        )
        for index, (ranked_member_id, _) in enumerate(counts):
            if ranked_member_id == member_id:
                return index + 1
        return None


async_leaderboard_service = AsyncLeaderboardService()
