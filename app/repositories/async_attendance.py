"""
Repositorio async del libro de asistencia (append-only).

La unicidad (member_id, gym_id, check_in_date) la impone la constraint
uq_attendance_member_gym_date de la base de datos. Este repositorio nunca
hace "consultar y luego insertar": inserta y traduce la violación de la
constraint a DuplicateCheckInError, así dos check-ins concurrentes del mismo
miembro en el mismo día nunca producen dos filas.
"""
from datetime import date, datetime
from typing import List, Optional, Tuple
import logging

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import DuplicateCheckInError, StorageFailureError
from app.core.timezone_utils import get_checkin_date, get_month_range, utc_now
from app.models.attendance import Attendance
from app.repositories.async_base import AsyncBaseRepository

logger = logging.getLogger(__name__)

UNIQUE_CONSTRAINT_NAME = "uq_attendance_member_gym_date"


def _is_duplicate_violation(exc: IntegrityError) -> bool:
    """Distingue la violación de unicidad del check-in de otros IntegrityError (FK, NOT NULL)."""
    message = str(getattr(exc, "orig", exc))
    return (
        UNIQUE_CONSTRAINT_NAME in message
        # SQLite no incluye el nombre de la constraint en el mensaje
        or "UNIQUE constraint failed: attendance." in message
    )


class AsyncAttendanceRepository(AsyncBaseRepository[Attendance]):
    """
    Libro de asistencia.

    Métodos principales:
    - record_check_in() - Inserta el check-in del día o lanza DuplicateCheckInError
    - list_for_member() - Historial del miembro ordenado por fecha ascendente
    - list_for_gym() - Quién hizo check-in en una fecha (vista del dueño)
    - monthly_counts() - Agregado mensual para el leaderboard
    """

    async def record_check_in(
        self,
        db: AsyncSession,
        *,
        member_id: int,
        gym_id: int,
        instant: Optional[datetime] = None
    ) -> Attendance:
        """
        Registra el check-in de un miembro.

        Args:
            db: Sesión async de base de datos
            member_id: ID del miembro
            gym_id: ID del gimnasio
            instant: Instante del check-in (default: ahora en UTC)

        Returns:
            El registro de asistencia creado

        Raises:
            DuplicateCheckInError: Ya existe un check-in para (miembro, gym, fecha)
            StorageFailureError: Cualquier otro error de almacenamiento
        """
        instant = instant or utc_now()
        check_in_date = get_checkin_date(instant)

        record = Attendance(
            member_id=member_id,
            gym_id=gym_id,
            check_in_date=check_in_date,
            checked_in_at=instant
        )

        try:
            db.add(record)
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            if _is_duplicate_violation(e):
                raise DuplicateCheckInError(member_id, gym_id, check_in_date) from e
            logger.error(f"IntegrityError inesperado registrando check-in de miembro {member_id}: {e}")
            raise StorageFailureError(f"No se pudo registrar el check-in: {e}") from e
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Error de almacenamiento registrando check-in de miembro {member_id}: {e}", exc_info=True)
            raise StorageFailureError(f"No se pudo registrar el check-in: {e}") from e

        # expire_on_commit=False: el registro conserva id y valores sin recargar
        return record

    async def list_for_member(
        self,
        db: AsyncSession,
        *,
        member_id: int,
        gym_id: int
    ) -> List[Attendance]:
        """Historial de asistencia del miembro en el gimnasio, por fecha ascendente."""
        result = await db.execute(
            select(Attendance)
            .where(Attendance.member_id == member_id, Attendance.gym_id == gym_id)
            .order_by(Attendance.check_in_date.asc())
        )
        return list(result.scalars().all())

    async def list_dates_for_member(
        self,
        db: AsyncSession,
        *,
        member_id: int,
        gym_id: int
    ) -> List[date]:
        """Solo las fechas de check-in, ascendentes (entrada de rachas y badges)."""
        result = await db.execute(
            select(Attendance.check_in_date)
            .where(Attendance.member_id == member_id, Attendance.gym_id == gym_id)
            .order_by(Attendance.check_in_date.asc())
        )
        return list(result.scalars().all())

    async def list_for_gym(
        self,
        db: AsyncSession,
        *,
        gym_id: int,
        day: date
    ) -> List[Attendance]:
        """Check-ins de un gimnasio en una fecha, el más reciente primero."""
        result = await db.execute(
            select(Attendance)
            .options(selectinload(Attendance.member))
            .where(Attendance.gym_id == gym_id, Attendance.check_in_date == day)
            .order_by(Attendance.checked_in_at.desc())
        )
        return list(result.scalars().all())

    async def count_for_member(
        self,
        db: AsyncSession,
        *,
        member_id: int,
        gym_id: int
    ) -> int:
        result = await db.execute(
            select(func.count(Attendance.id))
            .where(Attendance.member_id == member_id, Attendance.gym_id == gym_id)
        )
        return result.scalar_one()

    async def monthly_counts(
        self,
        db: AsyncSession,
        *,
        gym_id: int,
        day: date,
        limit: Optional[int] = None
    ) -> List[Tuple[int, int]]:
        """
        Check-ins por miembro en el mes calendario que contiene `day`.

        Returns:
            Lista de (member_id, count) ordenada por count desc y member_id asc
        """
        month_start, month_end = get_month_range(day)
        count_col = func.count(Attendance.id).label("checkins")

        stmt = (
            select(Attendance.member_id, count_col)
            .where(
                Attendance.gym_id == gym_id,
                Attendance.check_in_date >= month_start,
                Attendance.check_in_date < month_end
            )
            .group_by(Attendance.member_id)
            .order_by(count_col.desc(), Attendance.member_id.asc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)

        result = await db.execute(stmt)
        return [(row.member_id, row.checkins) for row in result.all()]


async_attendance_repository = AsyncAttendanceRepository(Attendance)
