"""Payout API Routes

Status changes reported by the disbursement process.
"""

from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.error import ClientError
from src.api.schemas.billing_request import TransitionPayoutRequestSchema
from src.api.wiring import build_ledger
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.event_publisher import EventPublisher
from src.app.use_cases.billing import TransitionPayout
from src.app.use_cases.billing.dtos import PayoutDTO, TransitionPayoutCommandDTO
from src.depends import get_event_publisher, get_session

router = APIRouter(prefix="/billing/payouts", tags=["Payouts"])


@router.post("/{payout_id}/status", response_model=PayoutDTO)
async def transition_payout(
    payout_id: str,
    request: TransitionPayoutRequestSchema,
    session: AsyncSession = Depends(get_session),
    publisher: EventPublisher = Depends(get_event_publisher),
):
    """
    Move a payout to a new status.

    **Returns:**
    - 200: Updated payout
    - 404: Unknown payout
    - 409: INVALID_PAYOUT_TRANSITION (e.g. anything out of completed)
    """
    command = TransitionPayoutCommandDTO(
        payout_id=payout_id,
        status=request.status,
        reason=request.reason,
    )

    use_case = TransitionPayout(SqlAlchemyUnitOfWork(session), build_ledger(session), publisher=publisher)
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)
    return result.value
