"""Payout Ledger

Records commission payouts derived from placement snapshots and moves
them through their status lifecycle. Totals are never stored; they are
recomputed from the ledger on every read.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional, Tuple
from src.app.repositories.payout_repository import PayoutRepository
from src.domain.commission import CommissionRole, commission_amount
from src.domain.commission_snapshot import CommissionSnapshot
from src.domain.errors import (
    DuplicatePayoutError,
    InvalidPayoutAmountError,
    InvalidPayoutTransitionError,
    InvalidRoleError,
    PayoutNotFoundError,
)
from src.domain.payout import Payout, PayoutStatus
from .dtos import BillingStatsDTO

logger = logging.getLogger(__name__)


def aggregate_payouts(payouts: Iterable[Payout], year: int) -> BillingStatsDTO:
    """
    Fold payouts into earnings totals for one calendar year

    Failed payouts count toward nothing. Placements are counted once no
    matter how many roles the recruiter held in them.
    """
    stats = BillingStatsDTO(year=year)
    lifetime_placements = set()
    ytd_placements = set()

    for payout in payouts:
        if payout.status == PayoutStatus.FAILED:
            continue

        in_year = payout.earned_at().year == year
        if payout.status == PayoutStatus.COMPLETED:
            stats.lifetime_earnings += payout.amount
            if in_year:
                stats.ytd_earnings += payout.amount
        elif payout.status in (PayoutStatus.PENDING, PayoutStatus.PROCESSING):
            stats.pending_total += payout.amount
        elif payout.status == PayoutStatus.ON_HOLD:
            stats.on_hold_total += payout.amount

        if payout.placement_id:
            lifetime_placements.add(payout.placement_id)
            if in_year:
                ytd_placements.add(payout.placement_id)

    stats.lifetime_placements = len(lifetime_placements)
    stats.ytd_placements = len(ytd_placements)
    return stats


class PayoutLedger:
    """
    Append-only payout ledger

    Rules:
    1. At most one payout per (placement, role)
    2. Amounts are fixed at creation; corrections are new payouts
    3. Status follows PAYOUT_TRANSITIONS; completed is terminal
    """

    def __init__(self, payout_repo: PayoutRepository):
        self.payout_repo = payout_repo

    async def record_payout(
        self,
        snapshot: CommissionSnapshot,
        role: CommissionRole,
        amount: Optional[int] = None,
        scheduled_at: Optional[datetime] = None,
    ) -> Payout:
        """
        Create a pending payout for one role of a snapshot

        The amount defaults to the role's snapshot share of the fee.

        Raises:
            InvalidRoleError: The role has no recruiter in the snapshot
            InvalidPayoutAmountError: The amount is not positive, e.g. a share
                that rounds to zero on a very small fee
            DuplicatePayoutError: The role already has a payout
        """
        entry = snapshot.entry(role)
        if entry is None:
            raise InvalidRoleError(
                f"Role {role.value} is not part of placement {snapshot.placement_id}"
            )

        if amount is None:
            amount = commission_amount(snapshot.total_placement_fee, entry.rate)
        if amount <= 0:
            raise InvalidPayoutAmountError(
                f"Payout for {role.value} on placement {snapshot.placement_id} must be positive",
                reason=f"amount={amount}",
            )

        existing = await self.payout_repo.get_by_placement_and_role(snapshot.placement_id, role)
        if existing is not None:
            raise DuplicatePayoutError(
                f"Payout already recorded for {role.value} on placement {snapshot.placement_id}",
                reason=f"existing payout {existing.id}",
            )

        payout = Payout(
            recruiter_id=entry.recruiter_id,
            placement_id=snapshot.placement_id,
            role=role,
            snapshot_id=snapshot.id,
            amount=amount,
            currency=snapshot.currency,
            status=PayoutStatus.PENDING,
            scheduled_at=scheduled_at,
        )
        created = await self.payout_repo.create(payout)
        logger.info(
            f"Recorded payout {created.id} of {created.amount} {created.currency} "
            f"to {created.recruiter_id} for placement {snapshot.placement_id}"
        )
        return created

    async def record_placement(
        self, snapshot: CommissionSnapshot, scheduled_at: Optional[datetime] = None
    ) -> Tuple[List[Payout], List[CommissionRole]]:
        """
        Record one payout per snapshot role, skipping roles already paid

        Roles whose share rounds to zero get no payout; their share stays
        in the platform remainder.

        Returns:
            (created payouts, roles skipped because a payout exists)
        """
        existing_roles = {
            payout.role for payout in await self.payout_repo.list_by_placement(snapshot.placement_id)
        }

        created: List[Payout] = []
        skipped: List[CommissionRole] = []
        for entry in snapshot.entries():
            if entry.role in existing_roles:
                skipped.append(entry.role)
                continue
            if commission_amount(snapshot.total_placement_fee, entry.rate) <= 0:
                logger.info(
                    f"No payout for {entry.role.value} on placement {snapshot.placement_id}: "
                    f"share of {snapshot.total_placement_fee} rounds to zero"
                )
                continue
            created.append(
                await self.record_payout(snapshot, entry.role, scheduled_at=scheduled_at)
            )
        return created, skipped

    async def transition(
        self, payout_id: str, status: PayoutStatus, reason: Optional[str] = None
    ) -> Payout:
        """
        Move a payout to a new status

        Raises:
            PayoutNotFoundError: Unknown payout
            InvalidPayoutTransitionError: Transition not allowed from current status
        """
        payout = await self.payout_repo.get_by_id(payout_id, for_update=True)
        if payout is None:
            raise PayoutNotFoundError(f"Payout {payout_id} not found")

        current = PayoutStatus(payout.status)
        if not current.can_transition_to(status):
            raise InvalidPayoutTransitionError(
                f"Payout {payout_id} cannot move from {current.value} to {status.value}"
            )

        now = datetime.utcnow()
        if status == PayoutStatus.PROCESSING:
            payout.processing_started_at = now
        elif status == PayoutStatus.COMPLETED:
            payout.completed_at = now
            payout.failure_reason = None
        elif status == PayoutStatus.FAILED:
            payout.failed_at = now
            payout.failure_reason = reason
        elif status == PayoutStatus.ON_HOLD:
            payout.failure_reason = reason
        elif status == PayoutStatus.PENDING:
            payout.retry_count += 1
            payout.failure_reason = None

        payout.status = status
        payout.updated_at = now
        updated = await self.payout_repo.update(payout)
        logger.info(f"Payout {payout_id}: {current.value} -> {status.value}")
        return updated

    async def list_for_user(
        self, user_id: str, limit: Optional[int] = None, offset: int = 0
    ) -> List[Payout]:
        return await self.payout_repo.list_by_recruiter(user_id, limit=limit, offset=offset)

    async def aggregate(self, user_id: str, year: Optional[int] = None) -> BillingStatsDTO:
        payouts = await self.payout_repo.list_by_recruiter(user_id)
        return aggregate_payouts(payouts, year or datetime.utcnow().year)


def platform_remainder(snapshot: CommissionSnapshot) -> int:
    """Fee left to the platform once every role's share is paid"""
    paid = sum(
        commission_amount(snapshot.total_placement_fee, entry.rate)
        for entry in snapshot.entries()
    )
    return snapshot.total_placement_fee - paid
