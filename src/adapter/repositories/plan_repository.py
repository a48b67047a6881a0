"""SQLAlchemy implementation of PlanRepository

Read-only access to the plan catalog table.
"""

from typing import List, Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.plan_repository import PlanRepository
from src.domain.plan import Plan


class SqlAlchemyPlanRepository(PlanRepository):
    """
    SQLAlchemy implementation of PlanRepository

    Row ordering is left to the catalog, which re-sorts by tier rank.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_active(self) -> List[Plan]:
        stmt = select(Plan).where(Plan.is_active == True)  # noqa: E712
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_id(self, plan_id: str) -> Optional[Plan]:
        stmt = select(Plan).where(Plan.id == plan_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_processor_price_id(self, price_id: str) -> Optional[Plan]:
        stmt = select(Plan).where(Plan.processor_price_id == price_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_free_plan(self) -> Optional[Plan]:
        """
        Retrieve the active free plan

        When several active plans are free, the oldest one wins.
        """
        stmt = (
            select(Plan)
            .where(Plan.is_active == True)  # noqa: E712
            .where(Plan.price_monthly == 0)
            .order_by(Plan.created_at)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()
