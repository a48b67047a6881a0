"""SQLAlchemy Subscription Repository Implementation

Implements subscription persistence using SQLAlchemy async session.
"""

from typing import Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.domain.subscription import Subscription


class SqlAlchemySubscriptionRepository(SubscriptionRepository):
    """
    SQLAlchemy implementation of SubscriptionRepository

    Features:
    - Pessimistic locking via SELECT FOR UPDATE
    - Version reads that bypass the session identity map
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_user_id(
        self, user_id: str, for_update: bool = False
    ) -> Optional[Subscription]:
        """
        Retrieve subscription by user ID

        Args:
            user_id: User identifier
            for_update: If True, locks the row with SELECT FOR UPDATE

        Returns:
            Subscription if found, None otherwise
        """
        stmt = select(Subscription).where(Subscription.user_id == user_id)

        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_processor_subscription_id(
        self, processor_subscription_id: str, for_update: bool = False
    ) -> Optional[Subscription]:
        stmt = select(Subscription).where(
            Subscription.processor_subscription_id == processor_subscription_id
        )

        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_version(self, user_id: str) -> int:
        """
        Read the stored version column directly

        Selecting the column instead of the entity returns the database
        value even when the row is already loaded in the session.
        """
        stmt = select(Subscription.version).where(Subscription.user_id == user_id)
        result = await self.session.execute(stmt)
        version = result.scalar_one_or_none()
        return version if version is not None else 0

    async def create(self, subscription: Subscription) -> Subscription:
        """
        Create a new subscription

        Args:
            subscription: Subscription entity to persist

        Returns:
            Created Subscription with generated ID
        """
        self.session.add(subscription)
        await self.session.flush()
        await self.session.refresh(subscription)
        return subscription

    async def update(self, subscription: Subscription) -> Subscription:
        """
        Update an existing subscription

        Args:
            subscription: Subscription entity with updated values

        Returns:
            Updated Subscription
        """
        self.session.add(subscription)
        await self.session.flush()
        await self.session.refresh(subscription)
        return subscription
