"""Commission Resolver

Resolves the commission rate a user earns in a placement role, from the
plan they are on at the instant of the call.
"""

from typing import NamedTuple, Union
from src.domain.commission import CommissionRole, CommissionTier, rate_for
from .plan_catalog import PlanCatalog
from .subscription_state_machine import SubscriptionStateMachine


class ResolvedRate(NamedTuple):
    user_id: str
    role: CommissionRole
    tier: CommissionTier
    percentage: int
    subscription_version: int


class CommissionResolver:
    """
    Stateless rate lookup: effective subscription -> plan tier -> rate table

    A result is only valid at the moment it is returned. Callers that need
    a durable rate must write it into a CommissionSnapshot in the same
    transaction (see CreateCommissionSnapshot). Nothing is cached between
    calls, and errors are never caught here.

    past_due and unpaid subscriptions still resolve at their nominal tier.
    """

    def __init__(self, subscriptions: SubscriptionStateMachine, catalog: PlanCatalog):
        self.subscriptions = subscriptions
        self.catalog = catalog

    async def resolve(
        self,
        user_id: str,
        role: Union[str, CommissionRole],
        for_update: bool = False,
    ) -> ResolvedRate:
        role = CommissionRole.parse(role)
        subscription = await self.subscriptions.get_effective(user_id, for_update=for_update)
        plan = await self.catalog.get_plan(subscription.plan_id)
        tier = plan.commission_tier()
        return ResolvedRate(
            user_id=user_id,
            role=role,
            tier=tier,
            percentage=rate_for(tier, role),
            subscription_version=subscription.version,
        )
