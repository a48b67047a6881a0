"""ScheduleCancellation Use Case

Cancels a paid subscription at the end of its current period.
"""

import logging
from typing import Optional
from libs.result import Result, Return, Error
from src.app.services.event_publisher import EventPublisher
from src.app.services.unit_of_work import UnitOfWork
from src.domain.errors import BillingError
from .dtos import SubscriptionDTO
from .events import SUBSCRIPTION_UPDATED, publish_event
from .subscription_state_machine import SubscriptionStateMachine

logger = logging.getLogger(__name__)


class ScheduleCancellation:
    """
    Use Case: Cancel at period end

    Only cancel_at changes; status flips when the processor confirms.
    Calling it twice returns the already scheduled subscription.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        subscriptions: SubscriptionStateMachine,
        publisher: Optional[EventPublisher] = None,
    ):
        self.uow = uow
        self.subscriptions = subscriptions
        self.publisher = publisher

    async def execute(self, user_id: str) -> Result[SubscriptionDTO]:
        try:
            subscription = await self.subscriptions.schedule_cancellation(user_id)
            await self.uow.commit()

            dto = SubscriptionDTO.from_entity(subscription)
            await publish_event(self.publisher, SUBSCRIPTION_UPDATED, dto.model_dump(mode="json"))
            return Return.ok(dto)

        except BillingError as e:
            await self.uow.rollback()
            return Return.err(e.to_error())
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Cancellation for user {user_id} failed: {e}")
            return Return.err(
                Error(
                    code="CANCELLATION_FAILED",
                    message="Failed to schedule cancellation",
                    reason=str(e),
                )
            )
