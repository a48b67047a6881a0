"""Billing API Routes

FastAPI routes for plans, the current user's subscription and earnings.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.api.error import ClientError
from src.api.schemas.billing_request import ChangePlanRequestSchema
from src.api.wiring import (
    build_billing_view,
    build_catalog,
    build_ledger,
    build_resolver,
    build_subscriptions,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.event_publisher import EventPublisher
from src.app.services.payment_gateway import PaymentGateway
from src.app.use_cases.billing import (
    ChangePlan,
    GetBillingStats,
    ListPayouts,
    ListPlans,
    ListRates,
    ResolveCommission,
    ScheduleCancellation,
    WaitForPlanChange,
)
from src.app.use_cases.billing.dtos import (
    BillingStatsDTO,
    BillingViewDTO,
    ChangePlanCommandDTO,
    PayoutDTO,
    PlanChangeResultDTO,
    PlanDTO,
    RateTableResponseDTO,
    ResolvedRateDTO,
    SubscriptionDTO,
)
from src.depends import (
    get_current_user_id,
    get_event_publisher,
    get_payment_gateway,
    get_session,
)

router = APIRouter(prefix="/billing", tags=["Billing"])


@router.get("/plans", response_model=List[PlanDTO])
async def list_plans(session: AsyncSession = Depends(get_session)):
    """
    List active plans in display order (free, pro, partner, then custom tiers).

    **Returns:**
    - 200: Plans with decoded feature flags
    - 400: A plan in the catalog is malformed
    """
    result = await ListPlans(build_catalog(session)).execute()
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.get("/rates", response_model=RateTableResponseDTO)
async def list_rates():
    """Commission rate of every tier and role, for the comparison table."""
    result = await ListRates().execute()
    return result.value


@router.get("/rates/{role}", response_model=ResolvedRateDTO)
async def resolve_my_rate(
    role: str,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    """
    Rate the current user would earn in a role right now.

    Not locked: the rate of a placement is fixed by its snapshot at hire.
    """
    result = await ResolveCommission(build_resolver(session)).execute(user_id, role)
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.get("/view", response_model=BillingViewDTO)
async def get_billing_view(
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
    gateway: Optional[PaymentGateway] = Depends(get_payment_gateway),
):
    """
    Billing overview: subscription, current plan, catalog, payouts,
    invoices and earnings.

    Sections whose source is unavailable are returned empty and named in
    `degraded`; subscription or catalog failures fail the request.
    """
    result = await build_billing_view(session, gateway).execute(user_id)
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.post(
    "/plan",
    response_model=PlanChangeResultDTO,
    status_code=status.HTTP_200_OK,
    responses={
        400: {
            "description": "Invalid plan change",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "INVALID_PLAN_CHANGE",
                            "message": "User user_123 is already on plan 6f1c9a0e"
                        }
                    }
                }
            }
        },
        503: {
            "description": "Checkout unavailable, retry later",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "CHECKOUT_UNAVAILABLE",
                            "message": "Checkout is temporarily unavailable"
                        }
                    }
                }
            }
        }
    }
)
async def change_plan(
    request: ChangePlanRequestSchema,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
    gateway: Optional[PaymentGateway] = Depends(get_payment_gateway),
    publisher: EventPublisher = Depends(get_event_publisher),
):
    """
    Select a plan.

    - Free plan: applied immediately (`confirmed`), or at the end of the
      paid period when leaving a paid subscription (`scheduled`)
    - Paid plan: returns a `checkout_url` (`redirect`); the subscription
      changes once the processor confirms the payment
    """
    uow = SqlAlchemyUnitOfWork(session)
    subscriptions = build_subscriptions(session, gateway)

    command = ChangePlanCommandDTO(
        user_id=user_id,
        plan_id=request.plan_id,
        success_url=request.success_url,
        cancel_url=request.cancel_url,
    )

    use_case = ChangePlan(
        uow,
        subscriptions.catalog,
        subscriptions,
        success_url=ApplicationConfig.CHECKOUT_SUCCESS_URL,
        cancel_url=ApplicationConfig.CHECKOUT_CANCEL_URL,
        publisher=publisher,
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.get("/plan/wait", response_model=BillingViewDTO)
async def wait_for_plan_change(
    plan_id: str = Query(..., min_length=1),
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
    gateway: Optional[PaymentGateway] = Depends(get_payment_gateway),
):
    """
    Block until the processor-confirmed plan is visible, then return the view.

    **Returns:**
    - 200: Billing view on the expected plan
    - 409: PLAN_CHANGE_TIMEOUT, the confirmation has not arrived yet
    """
    use_case = WaitForPlanChange(
        build_billing_view(session, gateway),
        timeout=ApplicationConfig.PLAN_CHANGE_POLL_TIMEOUT_SECONDS,
        initial_delay=ApplicationConfig.PLAN_CHANGE_POLL_INITIAL_DELAY_SECONDS,
    )
    result = await use_case.execute(user_id, plan_id)
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.post("/subscription/cancel", response_model=SubscriptionDTO)
async def cancel_subscription(
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
    gateway: Optional[PaymentGateway] = Depends(get_payment_gateway),
    publisher: EventPublisher = Depends(get_event_publisher),
):
    """Cancel the paid subscription at the end of the current period."""
    uow = SqlAlchemyUnitOfWork(session)
    use_case = ScheduleCancellation(uow, build_subscriptions(session, gateway), publisher=publisher)
    result = await use_case.execute(user_id)
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.get("/payouts", response_model=List[PayoutDTO])
async def list_my_payouts(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    """Payouts of the current user, newest first."""
    result = await ListPayouts(build_ledger(session)).execute(user_id, limit=limit, offset=offset)
    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.get("/stats", response_model=BillingStatsDTO)
async def get_my_stats(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    """Earnings totals of the current user; failed payouts excluded."""
    result = await GetBillingStats(build_ledger(session)).execute(user_id, year=year)
    if result.is_err():
        raise ClientError(result.error)
    return result.value
