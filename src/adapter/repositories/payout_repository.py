"""SQLAlchemy implementation of PayoutRepository

Payout ledger persistence. The (placement_id, role) unique constraint
backs the one-payout-per-role rule even under concurrent inserts.
"""

import logging
from typing import List, Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.exc import IntegrityError, OperationalError
from src.app.repositories.payout_repository import PayoutRepository
from src.domain.commission import CommissionRole
from src.domain.errors import DuplicatePayoutError, UpstreamUnavailable
from src.domain.payout import Payout

logger = logging.getLogger(__name__)


def _is_placement_role_conflict(error: IntegrityError) -> bool:
    """True when the violated constraint is the (placement_id, role) uniqueness"""
    message = str(error.orig)
    # PostgreSQL names the constraint; SQLite lists the columns
    return (
        "uq_payouts_placement_role" in message
        or "payouts.placement_id, payouts.role" in message
    )


class SqlAlchemyPayoutRepository(PayoutRepository):
    """
    SQLAlchemy implementation of PayoutRepository

    Features:
    - Duplicate inserts surface as DuplicatePayoutError
    - Pessimistic locking for status changes
    - Read failures surface as UpstreamUnavailable so views can degrade
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, payout: Payout) -> Payout:
        """
        Create a new payout

        Args:
            payout: Payout entity to persist

        Returns:
            Created Payout

        Raises:
            DuplicatePayoutError: If the (placement_id, role) pair already has a payout
            IntegrityError: Any other constraint violation, e.g. a non-positive amount
        """
        self.session.add(payout)
        try:
            await self.session.flush()
        except IntegrityError as e:
            if not _is_placement_role_conflict(e):
                raise
            raise DuplicatePayoutError(
                f"Payout already recorded for {payout.role} on placement {payout.placement_id}",
                reason=str(e.orig),
            ) from e
        await self.session.refresh(payout)
        return payout

    async def get_by_id(self, payout_id: str, for_update: bool = False) -> Optional[Payout]:
        stmt = select(Payout).where(Payout.id == payout_id)

        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_placement_and_role(
        self, placement_id: str, role: CommissionRole
    ) -> Optional[Payout]:
        stmt = select(Payout).where(Payout.placement_id == placement_id, Payout.role == role)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_placement(self, placement_id: str) -> List[Payout]:
        stmt = select(Payout).where(Payout.placement_id == placement_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_by_recruiter(
        self, recruiter_id: str, limit: Optional[int] = None, offset: int = 0
    ) -> List[Payout]:
        """
        Retrieve payouts of a recruiter, newest first

        Args:
            recruiter_id: Recruiter (user) identifier
            limit: Maximum number of payouts (None = all)
            offset: Number of payouts to skip

        Returns:
            List of payouts ordered by created_at DESC

        Raises:
            UpstreamUnavailable: If the database cannot be reached
        """
        stmt = (
            select(Payout)
            .where(Payout.recruiter_id == recruiter_id)
            .order_by(Payout.created_at.desc())
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)

        try:
            result = await self.session.execute(stmt)
        except OperationalError as e:
            logger.error(f"Payout ledger unreachable: {e}")
            raise UpstreamUnavailable("Payout ledger unavailable", reason=str(e.orig)) from e
        return list(result.scalars().all())

    async def update(self, payout: Payout) -> Payout:
        self.session.add(payout)
        await self.session.flush()
        await self.session.refresh(payout)
        return payout
