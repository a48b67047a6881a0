"""Placement API Routes

Hire-time commission snapshots and the payouts derived from them. Called
by the placement workflow, not by end users.
"""

from fastapi import APIRouter, Depends, status
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.api.error import ClientError
from src.api.schemas.billing_request import (
    CreateSnapshotRequestSchema,
    FinalizePayoutsRequestSchema,
    RecordPayoutRequestSchema,
)
from src.api.wiring import build_ledger, build_resolver
from src.adapter.repositories import (
    SqlAlchemyCommissionSnapshotRepository,
    SqlAlchemySubscriptionRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.event_publisher import EventPublisher
from src.app.use_cases.billing import (
    CreateCommissionSnapshot,
    FinalizePlacementPayouts,
    RecordPayout,
)
from src.app.use_cases.billing.dtos import (
    CommissionSnapshotDTO,
    CreateSnapshotCommandDTO,
    FinalizePayoutsResponseDTO,
    PayoutDTO,
    RecordPayoutCommandDTO,
)
from src.domain.commission import CommissionRole
from src.depends import get_event_publisher, get_session

router = APIRouter(prefix="/billing/placements", tags=["Placements"])


@router.post(
    "/{placement_id}/snapshot",
    response_model=CommissionSnapshotDTO,
    status_code=status.HTTP_200_OK,
    responses={
        409: {
            "description": "A participant changed plan while the snapshot was taken",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "CONCURRENT_PLAN_CHANGE",
                            "message": "Plan of user user_123 changed while snapshotting placement placement_456"
                        }
                    }
                }
            }
        }
    }
)
async def create_snapshot(
    placement_id: str,
    request: CreateSnapshotRequestSchema,
    session: AsyncSession = Depends(get_session),
    publisher: EventPublisher = Depends(get_event_publisher),
):
    """
    Lock the commission rate of every role at hire time.

    Repeating the call for the same placement returns the stored snapshot
    unchanged. Retry on 409 CONCURRENT_PLAN_CHANGE.
    """
    command = CreateSnapshotCommandDTO(
        placement_id=placement_id,
        total_placement_fee=request.total_placement_fee,
        currency=request.currency or ApplicationConfig.BILLING_CURRENCY,
        hired_at=request.hired_at,
        roles=request.roles,
    )

    use_case = CreateCommissionSnapshot(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyCommissionSnapshotRepository(session),
        SqlAlchemySubscriptionRepository(session),
        build_resolver(session),
        publisher=publisher,
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.post("/{placement_id}/payouts", response_model=FinalizePayoutsResponseDTO)
async def finalize_payouts(
    placement_id: str,
    request: FinalizePayoutsRequestSchema = FinalizePayoutsRequestSchema(),
    session: AsyncSession = Depends(get_session),
    publisher: EventPublisher = Depends(get_event_publisher),
):
    """
    Create one pending payout per role of the placement snapshot.

    Roles already paid out are skipped, so the call is safe to repeat.
    """
    use_case = FinalizePlacementPayouts(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyCommissionSnapshotRepository(session),
        build_ledger(session),
        publisher=publisher,
    )
    result = await use_case.execute(placement_id, scheduled_at=request.scheduled_at)

    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.post(
    "/{placement_id}/payouts/{role}",
    response_model=PayoutDTO,
    status_code=status.HTTP_201_CREATED,
)
async def record_payout(
    placement_id: str,
    role: CommissionRole,
    request: RecordPayoutRequestSchema = RecordPayoutRequestSchema(),
    session: AsyncSession = Depends(get_session),
    publisher: EventPublisher = Depends(get_event_publisher),
):
    """
    Record the payout of a single role.

    **Returns:**
    - 201: Payout created (pending)
    - 404: No snapshot for the placement
    - 409: DUPLICATE_PAYOUT, the role already has a payout
    """
    command = RecordPayoutCommandDTO(
        placement_id=placement_id,
        role=role,
        amount=request.amount,
        scheduled_at=request.scheduled_at,
    )

    use_case = RecordPayout(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyCommissionSnapshotRepository(session),
        build_ledger(session),
        publisher=publisher,
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)
    return result.value
