"""RecordPayout Use Case

Records a single commission payout for one role of a placement.
"""

import logging
from typing import Optional
from libs.result import Result, Return, Error
from src.app.repositories.commission_snapshot_repository import CommissionSnapshotRepository
from src.app.services.event_publisher import EventPublisher
from src.app.services.unit_of_work import UnitOfWork
from src.domain.errors import BillingError, SnapshotNotFoundError
from .dtos import PayoutDTO, RecordPayoutCommandDTO
from .events import PAYOUT_CREATED, publish_event
from .payout_ledger import PayoutLedger

logger = logging.getLogger(__name__)


class RecordPayout:
    """
    Use Case: Record a payout from a placement snapshot

    Business Rules:
    1. The placement must have a commission snapshot
    2. The role must be part of the snapshot
    3. One payout per (placement, role): a second call fails with DUPLICATE_PAYOUT
    4. Amount defaults to fee x snapshot rate, rounded half up
    """

    def __init__(
        self,
        uow: UnitOfWork,
        snapshot_repo: CommissionSnapshotRepository,
        ledger: PayoutLedger,
        publisher: Optional[EventPublisher] = None,
    ):
        self.uow = uow
        self.snapshot_repo = snapshot_repo
        self.ledger = ledger
        self.publisher = publisher

    async def execute(self, command: RecordPayoutCommandDTO) -> Result[PayoutDTO]:
        try:
            snapshot = await self.snapshot_repo.get_by_placement_id(command.placement_id)
            if not snapshot:
                raise SnapshotNotFoundError(
                    f"No commission snapshot for placement {command.placement_id}"
                )

            payout = await self.ledger.record_payout(
                snapshot, command.role, amount=command.amount, scheduled_at=command.scheduled_at
            )
            await self.uow.commit()

            dto = PayoutDTO.from_entity(payout)
            await publish_event(self.publisher, PAYOUT_CREATED, dto.model_dump(mode="json"))
            return Return.ok(dto)

        except BillingError as e:
            await self.uow.rollback()
            return Return.err(e.to_error())
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Recording payout for placement {command.placement_id} failed: {e}")
            return Return.err(
                Error(
                    code="RECORD_PAYOUT_FAILED",
                    message="Failed to record payout",
                    reason=str(e),
                )
            )
