"""Plan Repository Interface

Defines the contract for reading the plan catalog from its backing store.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from src.domain.plan import Plan


class PlanRepository(ABC):
    """
    Repository interface for Plan persistence

    The catalog is read-mostly; plans are created and retired elsewhere.
    No ordering is guaranteed by implementations.
    """

    @abstractmethod
    async def list_active(self) -> List[Plan]:
        """
        Retrieve all plans with is_active set

        Returns:
            List of active plans in store order
        """
        pass

    @abstractmethod
    async def get_by_id(self, plan_id: str) -> Optional[Plan]:
        """
        Retrieve plan by ID

        Args:
            plan_id: Plan ID

        Returns:
            Plan if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_by_processor_price_id(self, price_id: str) -> Optional[Plan]:
        """
        Retrieve plan by its payment processor price reference

        Args:
            price_id: Processor price ID

        Returns:
            Plan if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_free_plan(self) -> Optional[Plan]:
        """
        Retrieve the active free-tier plan

        Returns:
            Plan with tier "free" if one is active, None otherwise
        """
        pass
