"""Payout Repository Interface

Defines the contract for payout ledger persistence operations.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from src.domain.commission import CommissionRole
from src.domain.payout import Payout


class PayoutRepository(ABC):
    """
    Repository interface for Payout persistence

    Payouts are created once and afterwards only change status.
    """

    @abstractmethod
    async def create(self, payout: Payout) -> Payout:
        """
        Create a new payout

        Args:
            payout: Payout entity to persist

        Returns:
            Created Payout

        Raises:
            DuplicatePayoutError: If a payout already exists for the
                (placement_id, role) pair
        """
        pass

    @abstractmethod
    async def get_by_id(self, payout_id: str, for_update: bool = False) -> Optional[Payout]:
        """
        Retrieve payout by ID

        Args:
            payout_id: Payout ID
            for_update: If True, lock the row with SELECT FOR UPDATE

        Returns:
            Payout if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_by_placement_and_role(
        self, placement_id: str, role: CommissionRole
    ) -> Optional[Payout]:
        """
        Retrieve the payout of one role in a placement

        Returns:
            Payout if found, None otherwise
        """
        pass

    @abstractmethod
    async def list_by_placement(self, placement_id: str) -> List[Payout]:
        """
        Retrieve all payouts of a placement

        Returns:
            List of payouts (any order)
        """
        pass

    @abstractmethod
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
            UpstreamUnavailable: If the ledger store cannot be reached
        """
        pass

    @abstractmethod
    async def update(self, payout: Payout) -> Payout:
        """
        Persist a status change of a payout

        Args:
            payout: Payout entity with updated status fields

        Returns:
            Updated Payout
        """
        pass
