"""HandleProcessorEvent Use Case

Applies a payment processor notification to local subscription state,
exactly once per event id.
"""

import logging
from typing import Optional
from libs.result import Result, Return, Error
from src.app.repositories.processed_event_repository import ProcessedEventRepository
from src.app.services.event_publisher import EventPublisher
from src.app.services.unit_of_work import UnitOfWork
from src.domain.errors import BillingError, DuplicateEventError, StaleEventError
from src.domain.processor_event import EventOutcome, ProcessedEvent, ProcessorEvent
from .dtos import ProcessorEventResultDTO, SubscriptionDTO
from .events import SUBSCRIPTION_UPDATED, publish_event
from .subscription_state_machine import SubscriptionStateMachine

logger = logging.getLogger(__name__)


class HandleProcessorEvent:
    """
    Use Case: Consume a processor notification

    Business Rules:
    1. Idempotency: an event id already processed returns DUPLICATE, also
       when a concurrent delivery of the same event recorded it first
    2. Stale events (older than the last applied one) are recorded and dropped
    3. Applied, no-op and stale outcomes are recorded in the same transaction
       as the subscription change
    4. Rejected events (unknown plan, unknown subscription) are not recorded,
       so a redelivery after the catalog is fixed can still apply

    Flow:
    1. Check idempotency
    2. Apply through the state machine (row locked FOR UPDATE)
    3. Record the processed event
    4. Commit, then publish subscription.updated when state changed
    """

    def __init__(
        self,
        uow: UnitOfWork,
        processed_event_repo: ProcessedEventRepository,
        subscriptions: SubscriptionStateMachine,
        publisher: Optional[EventPublisher] = None,
    ):
        self.uow = uow
        self.processed_event_repo = processed_event_repo
        self.subscriptions = subscriptions
        self.publisher = publisher

    async def execute(self, event: ProcessorEvent) -> Result[ProcessorEventResultDTO]:
        try:
            # Step 1: Idempotency
            if await self.processed_event_repo.get_by_event_id(event.event_id):
                logger.info(f"Processor event {event.event_id} already processed")
                return Return.ok(
                    ProcessorEventResultDTO(event_id=event.event_id, outcome=EventOutcome.DUPLICATE)
                )

            # Step 2: Apply
            subscription = None
            try:
                outcome, subscription = await self.subscriptions.apply_event(event)
            except StaleEventError as e:
                logger.warning(f"Dropping stale processor event {event.event_id}: {e.reason}")
                outcome = EventOutcome.STALE

            # Step 3: Record
            await self.processed_event_repo.create(
                ProcessedEvent(
                    event_id=event.event_id,
                    event_type=event.event_type.value,
                    user_id=event.user_id or (subscription.user_id if subscription else None),
                    outcome=outcome,
                    occurred_at=event.occurred_at,
                )
            )

            # Step 4: Commit and announce
            await self.uow.commit()

            dto = SubscriptionDTO.from_entity(subscription) if subscription is not None else None
            if outcome == EventOutcome.APPLIED:
                await publish_event(self.publisher, SUBSCRIPTION_UPDATED, dto.model_dump(mode="json"))

            return Return.ok(
                ProcessorEventResultDTO(event_id=event.event_id, outcome=outcome, subscription=dto)
            )

        except DuplicateEventError:
            await self.uow.rollback()
            logger.info(f"Processor event {event.event_id} recorded by a concurrent delivery")
            return Return.ok(
                ProcessorEventResultDTO(event_id=event.event_id, outcome=EventOutcome.DUPLICATE)
            )
        except BillingError as e:
            await self.uow.rollback()
            logger.warning(f"Rejected processor event {event.event_id}: {e.code} {e.message}")
            return Return.err(e.to_error())
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to handle processor event {event.event_id}: {e}")
            return Return.err(
                Error(
                    code="EVENT_HANDLING_FAILED",
                    message="Failed to handle processor event",
                    reason=str(e),
                )
            )
