from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotAMemberError
from app.db.redis_client import get_redis_client
from app.db.session import get_async_db
from app.schemas.leaderboard import Leaderboard
from app.schemas.member import MemberProgress
from app.services.async_leaderboard import async_leaderboard_service
from app.services.async_member_progress import async_member_progress_service

router = APIRouter()


@router.get("/{gym_id}/members/{member_id}/progress", response_model=MemberProgress)
async def get_member_progress(
    gym_id: int,
    member_id: int,
    db: AsyncSession = Depends(get_async_db),
    redis_client: Optional[Redis] = Depends(get_redis_client)
) -> MemberProgress:
    """
    Dashboard del miembro: racha actual, racha más larga, total de check-ins,
    badges y grid de asistencia de los últimos días.
    """
    try:
        return await async_member_progress_service.get_progress(
            db, member_id=member_id, gym_id=gym_id, redis_client=redis_client
        )
    except NotAMemberError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/{gym_id}/leaderboard", response_model=Leaderboard)
async def get_leaderboard(
    gym_id: int,
    member_id: Optional[int] = Query(None, description="Miembro que consulta (marca is_me)"),
    db: AsyncSession = Depends(get_async_db),
    redis_client: Optional[Redis] = Depends(get_redis_client)
) -> Leaderboard:
    """Top del mes actual con nombres abreviados ("Ravi S.")."""
    return await async_leaderboard_service.get_monthly_leaderboard(
        db, gym_id, viewer_member_id=member_id, redis_client=redis_client
    )
