from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.endpoints.attendance import check_in_response
from app.db.redis_client import get_redis_client
from app.db.session import get_async_db
from app.schemas.attendance import CheckInResult, SelfCheckInRequest
from app.services.async_checkin import async_checkin_service

router = APIRouter()


@router.post("/check-in", response_model=CheckInResult, status_code=status.HTTP_201_CREATED)
async def self_check_in(
    check_in_data: SelfCheckInRequest,
    response: Response,
    db: AsyncSession = Depends(get_async_db),
    redis_client: Optional[Redis] = Depends(get_redis_client)
) -> CheckInResult:
    """
    Check-in del propio miembro al escanear el QR del gimnasio.

    Mismo flujo e idempotencia que el check-in desde recepción.
    """
    result = await async_checkin_service.check_in_by_user(
        db,
        check_in_data.user_id,
        check_in_data.gym_id,
        redis_client=redis_client
    )
    return check_in_response(result, response)
