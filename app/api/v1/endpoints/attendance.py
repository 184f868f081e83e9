from datetime import date as DateType
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.timezone_utils import get_checkin_today
from app.db.redis_client import get_redis_client
from app.db.session import get_async_db
from app.repositories.async_attendance import async_attendance_repository
from app.schemas.attendance import (
    AttendanceRecord,
    AttendanceWithMember,
    CheckInRequest,
    CheckInResult,
    CheckInStatus
)
from app.services.async_checkin import async_checkin_service

router = APIRouter()


def check_in_response(result: CheckInResult, response: Response) -> CheckInResult:
    """
    Traduce el resultado del orquestador a código HTTP.

    success -> 201, already_checked_in -> 200, rejected -> 404, failure -> 503.
    """
    if result.status == CheckInStatus.rejected:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result.message)
    if result.status == CheckInStatus.failure:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=result.message)

    if result.status == CheckInStatus.already_checked_in:
        response.status_code = status.HTTP_200_OK
    else:
        response.status_code = status.HTTP_201_CREATED
    return result


@router.post("/{gym_id}/attendance", response_model=CheckInResult, status_code=status.HTTP_201_CREATED)
async def check_in_member(
    gym_id: int,
    check_in_data: CheckInRequest,
    response: Response,
    db: AsyncSession = Depends(get_async_db),
    redis_client: Optional[Redis] = Depends(get_redis_client)
) -> CheckInResult:
    """
    Check-in desde recepción: el dueño marca la asistencia de un miembro.

    Args:
        gym_id: ID del gimnasio
        check_in_data: Miembro que hace check-in
        db: Sesión async de base de datos
        redis_client: Cliente Redis (opcional)

    Returns:
        CheckInResult (201 si se registró, 200 si ya existía el check-in de hoy)

    Raises:
        HTTPException 404: El miembro no pertenece al gimnasio
        HTTPException 503: Error de almacenamiento, se puede reintentar
    """
    result = await async_checkin_service.check_in(
        db,
        check_in_data.member_id,
        gym_id,
        redis_client=redis_client
    )
    return check_in_response(result, response)


@router.get("/{gym_id}/attendance", response_model=List[AttendanceWithMember])
async def list_attendance(
    gym_id: int,
    day: Optional[DateType] = Query(None, alias="date", description="Fecha YYYY-MM-DD (default: hoy)"),
    db: AsyncSession = Depends(get_async_db)
) -> List[AttendanceWithMember]:
    """Quién hizo check-in en una fecha, el más reciente primero."""
    day = day or get_checkin_today()
    records = await async_attendance_repository.list_for_gym(db, gym_id=gym_id, day=day)

    return [
        AttendanceWithMember(
            **AttendanceRecord.model_validate(record).model_dump(),
            member_name=record.member.name if record.member else None,
            member_phone=record.member.phone if record.member else None
        )
        for record in records
    ]
