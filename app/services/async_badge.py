"""
AsyncBadgeService - evaluación de badges de un miembro.

Carga el historial de asistencia y las señales externas (referidos,
leaderboard), evalúa la tabla de reglas de badge_rules y agrega los badges
nuevos con una única sentencia atómica. Es idempotente: se puede ejecutar
cuantas veces se quiera y nunca otorga dos veces el mismo tipo.
Los badges son monótonos: un cambio posterior del historial nunca los revoca.
"""
from datetime import date, datetime
from typing import Awaitable, Callable, List, Optional
import logging

from redis.asyncio import Redis
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BadgeEvaluationError
from app.core.timezone_utils import get_checkin_today, utc_now
from app.repositories.async_attendance import async_attendance_repository
from app.repositories.async_lead import async_lead_repository
from app.repositories.async_member import async_member_repository
from app.schemas.member import Badge
from app.services.async_leaderboard import async_leaderboard_service
from app.services.badge_rules import (
    BadgeContext,
    LEADERBOARD_RULES,
    REFERRAL_RULES,
    evaluate_rules,
    pending_rules
)
from app.services.cache_service import cache_service, MEMBER_PROGRESS_KEY

logger = logging.getLogger(__name__)

# Fuente de señal externa: (db, member_id, gym_id, today) -> valor
ReferralCountSource = Callable[[AsyncSession, int, int, date], Awaitable[int]]
LeaderboardRankSource = Callable[[AsyncSession, int, int, date], Awaitable[Optional[int]]]


async def _default_referral_count(db: AsyncSession, member_id: int, gym_id: int, today: date) -> int:
    return await async_lead_repository.count_successful_referrals(db, member_id=member_id, gym_id=gym_id)


async def _default_leaderboard_rank(db: AsyncSession, member_id: int, gym_id: int, today: date) -> Optional[int]:
    return await async_leaderboard_service.get_member_rank(db, member_id=member_id, gym_id=gym_id, today=today)


class AsyncBadgeService:
    """
    Servicio async para evaluar y otorgar badges.

    Las fuentes de referidos y de ranking son colaboradores externos de solo
    lectura; se pueden inyectar para tests o para otra implementación.
    """

    def __init__(
        self,
        referral_source: ReferralCountSource = _default_referral_count,
        rank_source: LeaderboardRankSource = _default_leaderboard_rank
    ):
        self.referral_source = referral_source
        self.rank_source = rank_source

    async def _read_signal(self, db: AsyncSession, name: str, source, member_id: int, gym_id: int, today: date):
        """
        Lee una señal externa. Si falla devuelve (None, False): solo se omiten
        las reglas que dependen de ella, el resto de badges se evalúa igual.
        """
        try:
            return await source(db, member_id, gym_id, today), True
        except Exception as e:
            logger.warning(f"Señal '{name}' no disponible para miembro {member_id}: {e}")
            if isinstance(e, SQLAlchemyError):
                await db.rollback()
            return None, False

    async def evaluate_member(
        self,
        db: AsyncSession,
        *,
        member_id: int,
        gym_id: int,
        now: Optional[datetime] = None,
        redis_client: Optional[Redis] = None
    ) -> List[Badge]:
        """
        Evalúa todas las reglas pendientes del miembro y agrega los badges ganados.

        Args:
            db: Sesión async de base de datos
            member_id: ID del miembro
            gym_id: ID del gimnasio cuyo historial se evalúa
            now: Instante de evaluación (default: ahora UTC); define "hoy" y earned_at
            redis_client: Cliente Redis opcional para invalidar caché de progreso

        Returns:
            Badges otorgados en esta evaluación (vacío si no hubo nuevos)

        Raises:
            BadgeEvaluationError: Error de almacenamiento durante la evaluación
        """
        now = now or utc_now()
        today = get_checkin_today(now)

        try:
            earned = await async_member_repository.get_badge_types(db, member_id=member_id)
            pending = set(pending_rules(earned))
            if not pending:
                logger.debug(f"Miembro {member_id} ya tiene todos los badges")
                return []

            dates = await async_attendance_repository.list_dates_for_member(
                db, member_id=member_id, gym_id=gym_id
            )

            skip = set()
            referral_count = None
            leaderboard_rank = None

            if pending & REFERRAL_RULES:
                referral_count, ok = await self._read_signal(
                    db, "referidos", self.referral_source, member_id, gym_id, today
                )
                if not ok:
                    skip |= REFERRAL_RULES

            if pending & LEADERBOARD_RULES:
                leaderboard_rank, ok = await self._read_signal(
                    db, "leaderboard", self.rank_source, member_id, gym_id, today
                )
                if not ok:
                    skip |= LEADERBOARD_RULES

            context = BadgeContext.from_dates(
                dates,
                today,
                referral_count=referral_count,
                leaderboard_rank=leaderboard_rank
            )
            new_types = evaluate_rules(earned, context, skip=skip)
            if not new_types:
                return []

            inserted = await async_member_repository.append_badges(
                db,
                member_id=member_id,
                badge_types=[badge_type.value for badge_type in new_types],
                earned_at=now
            )

        except SQLAlchemyError as e:
            await db.rollback()
            raise BadgeEvaluationError(
                f"Error evaluando badges de miembro {member_id} en gym {gym_id}: {e}"
            ) from e

        if inserted:
            await cache_service.invalidate(
                redis_client, [MEMBER_PROGRESS_KEY.format(gym_id=gym_id, member_id=member_id)]
            )

        return [Badge(badge_type=badge_type, earned_at=now) for badge_type in inserted]


async_badge_service = AsyncBadgeService()
