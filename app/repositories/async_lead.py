from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.lead import Lead, LeadStatus
from app.repositories.async_base import AsyncBaseRepository


class AsyncLeadRepository(AsyncBaseRepository[Lead]):

    async def count_successful_referrals(
        self,
        db: AsyncSession,
        *,
        member_id: int,
        gym_id: int
    ) -> int:
        """Leads referidos por el miembro que terminaron convertidos."""
        result = await db.execute(
            select(func.count(Lead.id)).where(
                and_(
                    Lead.gym_id == gym_id,
                    Lead.referrer_id == member_id,
                    Lead.status == LeadStatus.CONVERTED
                )
            )
        )
        return result.scalar_one()


async_lead_repository = AsyncLeadRepository(Lead)
