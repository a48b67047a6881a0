"""FinalizePlacementPayouts Use Case

Creates the payouts of every role in a placement from its snapshot.
"""

import logging
from datetime import datetime
from typing import Optional
from libs.result import Result, Return, Error
from src.app.repositories.commission_snapshot_repository import CommissionSnapshotRepository
from src.app.services.event_publisher import EventPublisher
from src.app.services.unit_of_work import UnitOfWork
from src.domain.errors import BillingError, SnapshotNotFoundError
from .dtos import FinalizePayoutsResponseDTO, PayoutDTO
from .events import PAYOUT_CREATED, publish_event
from .payout_ledger import PayoutLedger, platform_remainder

logger = logging.getLogger(__name__)


class FinalizePlacementPayouts:
    """
    Use Case: Split a placement fee into payouts

    One pending payout per snapshot role, amount = fee x rate / 100
    rounded half up. Roles that already have a payout are skipped, so the
    call can be repeated safely. What is left of the fee stays with the
    platform and is reported, not recorded.
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

    async def execute(
        self, placement_id: str, scheduled_at: Optional[datetime] = None
    ) -> Result[FinalizePayoutsResponseDTO]:
        try:
            snapshot = await self.snapshot_repo.get_by_placement_id(placement_id)
            if not snapshot:
                raise SnapshotNotFoundError(f"No commission snapshot for placement {placement_id}")

            created, skipped = await self.ledger.record_placement(snapshot, scheduled_at=scheduled_at)
            await self.uow.commit()

            payouts = [PayoutDTO.from_entity(payout) for payout in created]
            for dto in payouts:
                await publish_event(self.publisher, PAYOUT_CREATED, dto.model_dump(mode="json"))

            logger.info(
                f"Finalized placement {placement_id}: {len(payouts)} payouts created, "
                f"{len(skipped)} skipped"
            )
            return Return.ok(
                FinalizePayoutsResponseDTO(
                    placement_id=placement_id,
                    created=payouts,
                    skipped_roles=skipped,
                    platform_remainder=platform_remainder(snapshot),
                )
            )

        except BillingError as e:
            await self.uow.rollback()
            return Return.err(e.to_error())
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Finalizing payouts for placement {placement_id} failed: {e}")
            return Return.err(
                Error(
                    code="FINALIZE_PAYOUTS_FAILED",
                    message="Failed to finalize placement payouts",
                    reason=str(e),
                )
            )
