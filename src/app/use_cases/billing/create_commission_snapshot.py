"""CreateCommissionSnapshot Use Case

Locks the commission rate of every role in a placement at hire time.
"""

import logging
from datetime import datetime
from typing import Dict, Optional, Tuple
from libs.result import Result, Return, Error
from src.app.repositories.commission_snapshot_repository import CommissionSnapshotRepository
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.services.event_publisher import EventPublisher
from src.app.services.unit_of_work import UnitOfWork
from src.domain.commission import CommissionTier, rate_for
from src.domain.commission_snapshot import CommissionSnapshot
from src.domain.errors import BillingError, ConcurrentPlanChangeError
from .commission_resolver import CommissionResolver
from .dtos import CommissionSnapshotDTO, CreateSnapshotCommandDTO
from .events import SNAPSHOT_CREATED, publish_event

logger = logging.getLogger(__name__)


class CreateCommissionSnapshot:
    """
    Use Case: Snapshot commission rates for a placement

    Business Rules:
    1. One snapshot per placement; a repeated call returns the existing one
    2. Each participant is resolved once, with their subscription row locked
    3. If any participant's subscription version moved before commit the
       whole snapshot is rejected with CONCURRENT_PLAN_CHANGE
    4. The snapshot is never updated afterwards

    Flow:
    1. Return existing snapshot if present
    2. Resolve tier per participant (SELECT FOR UPDATE)
    3. Fill one entry per role from the rate table
    4. Re-read subscription versions and compare
    5. Insert and commit
    """

    def __init__(
        self,
        uow: UnitOfWork,
        snapshot_repo: CommissionSnapshotRepository,
        subscription_repo: SubscriptionRepository,
        resolver: CommissionResolver,
        publisher: Optional[EventPublisher] = None,
    ):
        self.uow = uow
        self.snapshot_repo = snapshot_repo
        self.subscription_repo = subscription_repo
        self.resolver = resolver
        self.publisher = publisher

    async def execute(self, command: CreateSnapshotCommandDTO) -> Result[CommissionSnapshotDTO]:
        """
        Execute snapshot creation

        Args:
            command: CreateSnapshotCommandDTO with placement fee and role -> recruiter map

        Returns:
            Result[CommissionSnapshotDTO]: The stored snapshot or error
        """
        try:
            # Step 1: Idempotency
            existing = await self.snapshot_repo.get_by_placement_id(command.placement_id)
            if existing:
                return Return.ok(CommissionSnapshotDTO.from_entity(existing))

            snapshot = CommissionSnapshot(
                placement_id=command.placement_id,
                total_placement_fee=command.total_placement_fee,
                currency=command.currency.lower(),
                hired_at=command.hired_at or datetime.utcnow(),
            )

            # Step 2-3: Resolve each participant once
            resolved: Dict[str, Tuple[CommissionTier, int]] = {}
            for role, user_id in command.roles.items():
                if user_id in resolved:
                    tier, _ = resolved[user_id]
                    percentage = rate_for(tier, role)
                else:
                    rate = await self.resolver.resolve(user_id, role, for_update=True)
                    resolved[user_id] = (rate.tier, rate.subscription_version)
                    tier, percentage = rate.tier, rate.percentage
                snapshot.set_entry(role, user_id, percentage, tier)

            # Step 4: Optimistic check against plan changes committed meanwhile
            for user_id, (_, version) in resolved.items():
                current_version = await self.subscription_repo.get_version(user_id)
                if current_version != version:
                    raise ConcurrentPlanChangeError(
                        f"Plan of user {user_id} changed while snapshotting placement "
                        f"{command.placement_id}",
                        reason=f"version {version} -> {current_version}",
                    )

            # Step 5: Persist
            created = await self.snapshot_repo.create(snapshot)
            await self.uow.commit()

            dto = CommissionSnapshotDTO.from_entity(created)
            logger.info(
                f"Snapshot {created.id} for placement {created.placement_id}: "
                f"{len(dto.entries)} roles, total rate {created.total_rate()}%"
            )
            await publish_event(self.publisher, SNAPSHOT_CREATED, dto.model_dump(mode="json"))
            return Return.ok(dto)

        except BillingError as e:
            await self.uow.rollback()
            logger.warning(
                f"Snapshot for placement {command.placement_id} rejected: {e.code} {e.message}"
            )
            return Return.err(e.to_error())
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Snapshot for placement {command.placement_id} failed: {e}")
            return Return.err(
                Error(
                    code="CREATE_SNAPSHOT_FAILED",
                    message="Failed to create commission snapshot",
                    reason=str(e),
                )
            )
