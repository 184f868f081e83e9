"""
Repositorio async de miembros y sus badges.
"""
from datetime import datetime
from typing import Iterable, List, Optional, Set
import logging

from sqlalchemy import select, and_
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.member import Member, MemberBadge
from app.repositories.async_base import AsyncBaseRepository

logger = logging.getLogger(__name__)


class AsyncMemberRepository(AsyncBaseRepository[Member]):

    async def get_active_in_gym(
        self,
        db: AsyncSession,
        *,
        member_id: int,
        gym_id: int
    ) -> Optional[Member]:
        """Miembro activo de este gimnasio, o None si no pertenece / está inactivo."""
        result = await db.execute(
            select(Member).where(
                and_(
                    Member.id == member_id,
                    Member.gym_id == gym_id,
                    Member.is_active == True
                )
            )
        )
        return result.scalar_one_or_none()

    async def get_active_by_user(
        self,
        db: AsyncSession,
        *,
        user_id: int,
        gym_id: int
    ) -> Optional[Member]:
        """Registro Member del usuario en este gimnasio (self check-in)."""
        result = await db.execute(
            select(Member).where(
                and_(
                    Member.user_id == user_id,
                    Member.gym_id == gym_id,
                    Member.is_active == True
                )
            )
        )
        return result.scalar_one_or_none()

    async def get_many(self, db: AsyncSession, *, member_ids: Iterable[int]) -> List[Member]:
        ids = list(member_ids)
        if not ids:
            return []
        result = await db.execute(select(Member).where(Member.id.in_(ids)))
        return list(result.scalars().all())

    async def list_badges(self, db: AsyncSession, *, member_id: int) -> List[MemberBadge]:
        result = await db.execute(
            select(MemberBadge)
            .where(MemberBadge.member_id == member_id)
            .order_by(MemberBadge.earned_at.asc(), MemberBadge.id.asc())
        )
        return list(result.scalars().all())

    async def get_badge_types(self, db: AsyncSession, *, member_id: int) -> Set[str]:
        result = await db.execute(
            select(MemberBadge.badge_type).where(MemberBadge.member_id == member_id)
        )
        return set(result.scalars().all())

    async def append_badges(
        self,
        db: AsyncSession,
        *,
        member_id: int,
        badge_types: Iterable[str],
        earned_at: datetime
    ) -> List[str]:
        """
        Agrega badges al miembro en UNA sola sentencia atómica.

        Usa INSERT ... ON CONFLICT (member_id, badge_type) DO NOTHING: si dos
        evaluaciones compiten, la constraint uq_member_badge_type evita duplicados
        y ninguna de las dos falla.

        Returns:
            Tipos de badge realmente insertados por esta llamada
        """
        rows = [
            {"member_id": member_id, "badge_type": badge_type, "earned_at": earned_at}
            for badge_type in dict.fromkeys(badge_types)
        ]
        if not rows:
            return []

        dialect = db.get_bind().dialect.name
        if dialect == "postgresql":
            insert_fn = pg_insert
        elif dialect == "sqlite":
            insert_fn = sqlite_insert
        else:
            raise ValueError(f"Dialecto no soportado para append de badges: {dialect}")

        stmt = (
            insert_fn(MemberBadge)
            .values(rows)
            .on_conflict_do_nothing(index_elements=["member_id", "badge_type"])
            .returning(MemberBadge.badge_type)
        )
        result = await db.execute(stmt)
        inserted = list(result.scalars().all())
        await db.commit()

        if inserted:
            logger.info(f"Badges otorgados a miembro {member_id}: {inserted}")
        return inserted


async_member_repository = AsyncMemberRepository(Member)
