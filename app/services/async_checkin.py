"""
AsyncCheckInService - orquestador del check-in.

Flujo de un check-in:
1. Verifica que el miembro pertenezca (activo) al gimnasio.
2. Registra la asistencia en el libro (la unicidad la impone la BD).
3. Invalida las cachés de progreso y leaderboard.
4. Dispara la evaluación de badges como tarea desacoplada con su propia sesión.

El resultado del check-in se decide solo por el paso 2: un fallo evaluando
badges se loguea y nunca convierte un check-in exitoso en error.
"""
import asyncio
from datetime import datetime
from typing import AsyncContextManager, Callable, Optional, Set
import logging

from redis.asyncio import Redis
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    BadgeEvaluationError,
    DuplicateCheckInError,
    NotAMemberError,
    StorageFailureError
)
from app.core.timezone_utils import get_checkin_date, get_month_range, utc_now
from app.db.redis_client import get_redis_for_jobs
from app.db.session import get_async_db_for_jobs
from app.models.member import Member
from app.repositories.async_attendance import async_attendance_repository
from app.repositories.async_member import async_member_repository
from app.schemas.attendance import AttendanceRecord, CheckInResult, CheckInStatus
from app.services.async_badge import AsyncBadgeService, async_badge_service
from app.services.cache_service import cache_service, LEADERBOARD_KEY, MEMBER_PROGRESS_KEY

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AsyncContextManager[AsyncSession]]
RedisFactory = Callable[[], AsyncContextManager[Optional[Redis]]]


class AsyncCheckInService:
    """
    Servicio async de check-in.

    Las tareas de evaluación de badges quedan registradas en el servicio para
    que el shutdown de la aplicación pueda esperarlas (wait_for_pending).
    """

    def __init__(
        self,
        badge_service: AsyncBadgeService = async_badge_service,
        session_factory: SessionFactory = get_async_db_for_jobs,
        redis_factory: RedisFactory = get_redis_for_jobs
    ):
        self.badge_service = badge_service
        self.session_factory = session_factory
        self.redis_factory = redis_factory
        self._pending_tasks: Set[asyncio.Task] = set()

    async def check_in(
        self,
        db: AsyncSession,
        member_id: int,
        gym_id: int,
        *,
        instant: Optional[datetime] = None,
        redis_client: Optional[Redis] = None
    ) -> CheckInResult:
        """
        Check-in de un miembro marcado desde recepción.

        Args:
            db: Sesión async de base de datos
            member_id: ID del miembro
            gym_id: ID del gimnasio
            instant: Instante del check-in (default: ahora UTC)
            redis_client: Cliente Redis opcional para invalidar cachés

        Returns:
            CheckInResult con status success, already_checked_in, rejected o failure
        """
        try:
            member = await async_member_repository.get_active_in_gym(
                db, member_id=member_id, gym_id=gym_id
            )
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Error verificando membresía de miembro {member_id} en gym {gym_id}: {e}")
            return self._failure_result()

        if member is None:
            return self._rejected_result(NotAMemberError(gym_id, member_id=member_id))

        return await self._record(db, member, instant=instant, redis_client=redis_client)

    async def check_in_by_user(
        self,
        db: AsyncSession,
        user_id: int,
        gym_id: int,
        *,
        instant: Optional[datetime] = None,
        redis_client: Optional[Redis] = None
    ) -> CheckInResult:
        """
        Check-in del propio miembro (escaneo de QR). Resuelve el miembro a
        partir del usuario y sigue exactamente el mismo flujo que check_in().
        """
        try:
            member = await async_member_repository.get_active_by_user(
                db, user_id=user_id, gym_id=gym_id
            )
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Error resolviendo miembro del usuario {user_id} en gym {gym_id}: {e}")
            return self._failure_result()

        if member is None:
            return self._rejected_result(NotAMemberError(gym_id, user_id=user_id))

        return await self._record(db, member, instant=instant, redis_client=redis_client)

    async def _record(
        self,
        db: AsyncSession,
        member: Member,
        *,
        instant: Optional[datetime],
        redis_client: Optional[Redis]
    ) -> CheckInResult:
        member_id, gym_id = member.id, member.gym_id
        instant = instant or utc_now()

        try:
            record = await async_attendance_repository.record_check_in(
                db, member_id=member_id, gym_id=gym_id, instant=instant
            )
        except DuplicateCheckInError as e:
            # Caso esperado, no es un error
            logger.info(str(e))
            return CheckInResult(
                status=CheckInStatus.already_checked_in,
                message="Check-in ya registrado hoy",
                check_in_date=e.check_in_date
            )
        except StorageFailureError:
            return self._failure_result()

        logger.info(
            f"Check-in registrado: miembro {member_id}, gym {gym_id}, fecha {record.check_in_date}"
        )

        await self._invalidate_caches(redis_client, member_id, gym_id, instant)
        self.dispatch_badge_evaluation(member_id, gym_id, now=instant)

        return CheckInResult(
            status=CheckInStatus.success,
            message="Check-in registrado correctamente",
            check_in_date=record.check_in_date,
            attendance=AttendanceRecord.model_validate(record)
        )

    async def _invalidate_caches(
        self,
        redis_client: Optional[Redis],
        member_id: int,
        gym_id: int,
        instant: datetime
    ) -> None:
        month_start = get_month_range(get_checkin_date(instant))[0]
        await cache_service.invalidate(redis_client, [
            MEMBER_PROGRESS_KEY.format(gym_id=gym_id, member_id=member_id),
            LEADERBOARD_KEY.format(gym_id=gym_id, month=month_start.isoformat())
        ])

    @staticmethod
    def _rejected_result(error: NotAMemberError) -> CheckInResult:
        logger.info(f"Check-in rechazado: {error}")
        return CheckInResult(
            status=CheckInStatus.rejected,
            message="No es miembro activo de este gimnasio"
        )

    @staticmethod
    def _failure_result() -> CheckInResult:
        return CheckInResult(
            status=CheckInStatus.failure,
            message="No se pudo registrar el check-in, intenta de nuevo"
        )

    # ==========================================
    # EVALUACIÓN DE BADGES EN BACKGROUND
    # ==========================================

    def dispatch_badge_evaluation(
        self,
        member_id: int,
        gym_id: int,
        now: Optional[datetime] = None
    ) -> asyncio.Task:
        """Lanza la evaluación de badges sin bloquear la respuesta del check-in."""
        task = asyncio.create_task(
            self._evaluate_badges(member_id, gym_id, now),
            name=f"badge-eval-{gym_id}-{member_id}"
        )
        self._pending_tasks.add(task)
        task.add_done_callback(self._pending_tasks.discard)
        return task

    async def _evaluate_badges(self, member_id: int, gym_id: int, now: Optional[datetime]) -> None:
        try:
            async with self.session_factory() as db, self.redis_factory() as redis_client:
                awarded = await self.badge_service.evaluate_member(
                    db,
                    member_id=member_id,
                    gym_id=gym_id,
                    now=now,
                    redis_client=redis_client
                )
            if awarded:
                logger.info(
                    f"Miembro {member_id} ganó badges: {[badge.badge_type for badge in awarded]}"
                )
        except BadgeEvaluationError as e:
            logger.error(f"Error evaluando badges: {e}")
        except Exception as e:
            logger.error(
                f"Error inesperado evaluando badges de miembro {member_id}: {e}",
                exc_info=True
            )

    @property
    def pending_count(self) -> int:
        return len(self._pending_tasks)

    async def wait_for_pending(self, timeout: Optional[float] = None) -> None:
        """
        Espera a que terminen las evaluaciones de badges en curso.
        Se llama en el shutdown de la aplicación y en tests.
        """
        if not self._pending_tasks:
            return
        pending = list(self._pending_tasks)
        logger.info(f"Esperando {len(pending)} evaluaciones de badges pendientes...")
        done, not_done = await asyncio.wait(pending, timeout=timeout)
        if not_done:
            logger.warning(f"{len(not_done)} evaluaciones de badges no terminaron a tiempo")


async_checkin_service = AsyncCheckInService()
