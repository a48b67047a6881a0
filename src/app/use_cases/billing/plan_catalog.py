"""Plan Catalog

Validated, display-ordered view over the plan store.
"""

import logging
from typing import List
from src.app.repositories.plan_repository import PlanRepository
from src.domain.commission import TIER_ORDER
from src.domain.errors import PlanNotFoundError
from src.domain.plan import Plan

logger = logging.getLogger(__name__)


def display_order(plan: Plan):
    """Known tiers by rank, then unknown tiers; price and name break ties"""
    tier = plan.known_tier()
    rank = tier.rank if tier is not None else len(TIER_ORDER)
    return (rank, plan.price_monthly, plan.name)


class PlanCatalog:
    """
    Read side of the plan catalog

    The backing store's ordering is never trusted: plans are re-sorted by
    tier rank on every load. Every returned plan has decodable features;
    a malformed plan raises MalformedPlanError instead of being hidden.
    """

    def __init__(self, plan_repo: PlanRepository):
        self.plan_repo = plan_repo

    async def list_active_plans(self) -> List[Plan]:
        plans = await self.plan_repo.list_active()
        for plan in plans:
            plan.feature_flags()
            if plan.known_tier() is None:
                logger.warning(f"Plan {plan.id} has unrecognised tier {plan.tier!r}")
        return sorted(plans, key=display_order)

    async def get_plan(self, plan_id: str) -> Plan:
        """
        Retrieve a plan by ID, active or retired

        Raises:
            PlanNotFoundError: No plan with that ID
            MalformedPlanError: The plan's features cannot be decoded
        """
        plan = await self.plan_repo.get_by_id(plan_id)
        if plan is None:
            raise PlanNotFoundError(f"Plan {plan_id} not found")
        plan.feature_flags()
        return plan

    async def get_by_processor_price(self, price_id: str) -> Plan:
        plan = await self.plan_repo.get_by_processor_price_id(price_id)
        if plan is None:
            raise PlanNotFoundError(
                f"No plan for processor price {price_id}",
                reason="processor price is not mapped to a catalog plan",
            )
        plan.feature_flags()
        return plan

    async def get_free_plan(self) -> Plan:
        plan = await self.plan_repo.get_free_plan()
        if plan is None:
            raise PlanNotFoundError(
                "No active free plan in the catalog",
                reason="the implicit free subscription needs a free plan",
            )
        return plan
