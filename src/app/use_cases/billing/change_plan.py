"""ChangePlan Use Case

Handles a user's plan selection: free plans apply at once, paid plans go
through the processor's hosted checkout.
"""

import logging
from typing import Optional
from libs.result import Result, Return, Error
from src.app.services.event_publisher import EventPublisher
from src.app.services.unit_of_work import UnitOfWork
from src.domain.errors import BillingError, InvalidPlanChangeError
from .dtos import ChangePlanCommandDTO, PlanChangeKind, PlanChangeResultDTO, SubscriptionDTO
from .events import SUBSCRIPTION_UPDATED, publish_event
from .plan_catalog import PlanCatalog
from .subscription_state_machine import SubscriptionStateMachine

logger = logging.getLogger(__name__)


class ChangePlan:
    """
    Use Case: Change the plan of a user

    Business Rules:
    1. Target plan must be in the catalog and active
    2. Selecting the plan already in force is rejected
    3. Free target, no paid processor subscription: applied immediately (CONFIRMED)
    4. Free target from a paid processor subscription: cancellation at
       period end is scheduled (SCHEDULED); the downgrade lands when the
       processor confirms
    5. Paid target: a checkout URL is returned (REDIRECT); nothing changes
       until the processor confirms the checkout
    """

    def __init__(
        self,
        uow: UnitOfWork,
        catalog: PlanCatalog,
        subscriptions: SubscriptionStateMachine,
        success_url: str,
        cancel_url: str,
        publisher: Optional[EventPublisher] = None,
    ):
        self.uow = uow
        self.catalog = catalog
        self.subscriptions = subscriptions
        self.success_url = success_url
        self.cancel_url = cancel_url
        self.publisher = publisher

    async def execute(self, command: ChangePlanCommandDTO) -> Result[PlanChangeResultDTO]:
        """
        Execute plan change

        Args:
            command: ChangePlanCommandDTO with user_id, plan_id and optional redirect URLs

        Returns:
            Result[PlanChangeResultDTO]: Outcome kind with subscription or checkout URL
        """
        try:
            # Step 1: Validate target plan
            plan = await self.catalog.get_plan(command.plan_id)
            if not plan.is_active:
                raise InvalidPlanChangeError(
                    f"Plan {plan.id} is no longer offered",
                    reason="retired plans cannot be selected",
                )

            # Step 2: Compare with the subscription in force
            current = await self.subscriptions.get_effective(command.user_id)
            if current.plan_id == plan.id:
                raise InvalidPlanChangeError(
                    f"User {command.user_id} is already on plan {plan.id}"
                )

            # Step 3: Paid target - hand out checkout, no state change
            if not plan.is_free():
                url = await self.subscriptions.request_checkout(
                    command.user_id,
                    plan,
                    success_url=command.success_url or self.success_url,
                    cancel_url=command.cancel_url or self.cancel_url,
                )
                return Return.ok(
                    PlanChangeResultDTO(kind=PlanChangeKind.REDIRECT, plan_id=plan.id, checkout_url=url)
                )

            # Step 4: Free target - schedule or apply
            current_plan = await self.catalog.get_plan(current.plan_id)
            if not current_plan.is_free() and current.has_processor_subscription():
                subscription = await self.subscriptions.schedule_cancellation(command.user_id)
                kind = PlanChangeKind.SCHEDULED
            else:
                subscription = await self.subscriptions.select_free_plan(command.user_id, plan)
                kind = PlanChangeKind.CONFIRMED

            await self.uow.commit()

            dto = SubscriptionDTO.from_entity(subscription)
            await publish_event(self.publisher, SUBSCRIPTION_UPDATED, dto.model_dump(mode="json"))

            return Return.ok(
                PlanChangeResultDTO(
                    kind=kind,
                    plan_id=plan.id,
                    subscription=dto,
                    cancel_at=subscription.cancel_at,
                )
            )

        except BillingError as e:
            await self.uow.rollback()
            logger.warning(f"Plan change for user {command.user_id} rejected: {e.code} {e.message}")
            return Return.err(e.to_error())
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Plan change for user {command.user_id} failed: {e}")
            return Return.err(
                Error(
                    code="CHANGE_PLAN_FAILED",
                    message="Failed to change plan",
                    reason=str(e),
                )
            )
