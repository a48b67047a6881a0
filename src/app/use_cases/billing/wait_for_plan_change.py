"""WaitForPlanChange Use Case

Polls the billing view until a checkout confirmed by the processor is
visible, so a caller returning from checkout can show the new plan.
"""

import asyncio
import logging
from libs.result import Result, Return
from src.domain.errors import PlanChangeTimeoutError
from src.domain.subscription import SubscriptionStatus
from .dtos import BillingViewDTO
from .get_billing_view import GetBillingView

logger = logging.getLogger(__name__)

_SETTLED = (SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIALING)


class WaitForPlanChange:
    """
    Use Case: Wait until the user's subscription is on the expected plan

    Exponential backoff starting at ``initial_delay`` and doubling up to
    ``max_delay``. Gives up with PLAN_CHANGE_TIMEOUT once ``timeout``
    seconds of waiting have elapsed. Any error from the view is returned
    as is.
    """

    def __init__(
        self,
        billing_view: GetBillingView,
        timeout: float = 30.0,
        initial_delay: float = 1.0,
        max_delay: float = 8.0,
        sleep=asyncio.sleep,
    ):
        self.billing_view = billing_view
        self.timeout = timeout
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self.sleep = sleep

    async def execute(self, user_id: str, plan_id: str) -> Result[BillingViewDTO]:
        delay = self.initial_delay
        waited = 0.0

        while True:
            result = await self.billing_view.execute(user_id)
            if result.is_err():
                return result

            subscription = result.value.subscription
            if subscription.plan_id == plan_id and subscription.status in _SETTLED:
                return result

            remaining = self.timeout - waited
            if remaining <= 0:
                logger.warning(f"User {user_id} not on plan {plan_id} after {waited:.1f}s")
                return Return.err(
                    PlanChangeTimeoutError(
                        f"Plan change to {plan_id} not confirmed yet",
                        reason=f"waited {waited:.1f}s",
                    ).to_error()
                )

            step = min(delay, remaining)
            await self.sleep(step)
            waited += step
            delay = min(delay * 2, self.max_delay)
