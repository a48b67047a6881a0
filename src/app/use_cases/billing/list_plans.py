"""ListPlans Use Case

Returns the active plan catalog in display order.
"""

from typing import List
from libs.result import Result, Return, Error
from src.domain.errors import BillingError
from .dtos import PlanDTO
from .plan_catalog import PlanCatalog


class ListPlans:
    """
    Use Case: List active plans

    Ordered by tier rank (free, pro, partner, then unknown tiers), then by
    price. A malformed plan fails the whole listing.
    """

    def __init__(self, catalog: PlanCatalog):
        self.catalog = catalog

    async def execute(self) -> Result[List[PlanDTO]]:
        try:
            plans = await self.catalog.list_active_plans()
            return Return.ok([PlanDTO.from_entity(plan) for plan in plans])

        except BillingError as e:
            return Return.err(e.to_error())
        except Exception as e:
            return Return.err(
                Error(
                    code="LIST_PLANS_FAILED",
                    message="Failed to list plans",
                    reason=str(e),
                )
            )
