"""TransitionPayout Use Case

Moves a payout along its status lifecycle.
"""

import logging
from typing import Optional
from libs.result import Result, Return, Error
from src.app.services.event_publisher import EventPublisher
from src.app.services.unit_of_work import UnitOfWork
from src.domain.errors import BillingError
from .dtos import PayoutDTO, TransitionPayoutCommandDTO
from .events import PAYOUT_UPDATED, publish_event
from .payout_ledger import PayoutLedger

logger = logging.getLogger(__name__)


class TransitionPayout:
    """
    Use Case: Change payout status

    Allowed: pending -> processing | on_hold, processing -> completed |
    failed | on_hold, failed -> pending | on_hold, on_hold -> pending.
    Moving back to pending counts as a retry.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        ledger: PayoutLedger,
        publisher: Optional[EventPublisher] = None,
    ):
        self.uow = uow
        self.ledger = ledger
        self.publisher = publisher

    async def execute(self, command: TransitionPayoutCommandDTO) -> Result[PayoutDTO]:
        try:
            payout = await self.ledger.transition(command.payout_id, command.status, command.reason)
            await self.uow.commit()

            dto = PayoutDTO.from_entity(payout)
            await publish_event(self.publisher, PAYOUT_UPDATED, dto.model_dump(mode="json"))
            return Return.ok(dto)

        except BillingError as e:
            await self.uow.rollback()
            return Return.err(e.to_error())
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Transition of payout {command.payout_id} failed: {e}")
            return Return.err(
                Error(
                    code="TRANSITION_PAYOUT_FAILED",
                    message="Failed to update payout status",
                    reason=str(e),
                )
            )
