"""Subscription Repository Interface

Defines the contract for subscription persistence operations.
"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.subscription import Subscription


class SubscriptionRepository(ABC):
    """
    Repository interface for Subscription persistence

    Methods use pessimistic locking (SELECT FOR UPDATE) where requested so
    that a plan change cannot interleave with commission resolution.
    """

    @abstractmethod
    async def get_by_user_id(
        self, user_id: str, for_update: bool = False
    ) -> Optional[Subscription]:
        """
        Retrieve the subscription row of a user

        Args:
            user_id: User identifier
            for_update: If True, lock the row with SELECT FOR UPDATE

        Returns:
            Subscription if the user has a row, None otherwise
        """
        pass

    @abstractmethod
    async def get_by_processor_subscription_id(
        self, processor_subscription_id: str, for_update: bool = False
    ) -> Optional[Subscription]:
        """
        Retrieve subscription by payment processor subscription reference

        Args:
            processor_subscription_id: Processor subscription ID
            for_update: If True, lock the row with SELECT FOR UPDATE

        Returns:
            Subscription if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_version(self, user_id: str) -> int:
        """
        Read the current version straight from the store

        Bypasses any session cache; used for the optimistic check right
        before commit.

        Args:
            user_id: User identifier

        Returns:
            Stored version, 0 if the user has no row
        """
        pass

    @abstractmethod
    async def create(self, subscription: Subscription) -> Subscription:
        """
        Create a new subscription

        Args:
            subscription: Subscription entity to persist

        Returns:
            Created Subscription
        """
        pass

    @abstractmethod
    async def update(self, subscription: Subscription) -> Subscription:
        """
        Update an existing subscription

        Args:
            subscription: Subscription entity with updated values

        Returns:
            Updated Subscription
        """
        pass
