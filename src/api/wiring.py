"""Per-request assembly of core services from a database session"""

from typing import Optional
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.repositories import (
    SqlAlchemyPayoutRepository,
    SqlAlchemyPlanRepository,
    SqlAlchemySubscriptionRepository,
)
from src.app.services.payment_gateway import PaymentGateway
from src.app.use_cases.billing import (
    CommissionResolver,
    GetBillingView,
    PayoutLedger,
    PlanCatalog,
    SubscriptionStateMachine,
)


def build_catalog(session: AsyncSession) -> PlanCatalog:
    return PlanCatalog(SqlAlchemyPlanRepository(session))


def build_subscriptions(
    session: AsyncSession, gateway: Optional[PaymentGateway] = None
) -> SubscriptionStateMachine:
    return SubscriptionStateMachine(
        SqlAlchemySubscriptionRepository(session),
        build_catalog(session),
        gateway=gateway,
        processor_timeout=ApplicationConfig.CHECKOUT_TIMEOUT_SECONDS,
    )


def build_resolver(session: AsyncSession) -> CommissionResolver:
    subscriptions = build_subscriptions(session)
    return CommissionResolver(subscriptions, subscriptions.catalog)


def build_ledger(session: AsyncSession) -> PayoutLedger:
    return PayoutLedger(SqlAlchemyPayoutRepository(session))


def build_billing_view(
    session: AsyncSession, gateway: Optional[PaymentGateway] = None
) -> GetBillingView:
    subscriptions = build_subscriptions(session, gateway)
    return GetBillingView(
        subscriptions.catalog,
        subscriptions,
        build_ledger(session),
        gateway=gateway,
        processor_timeout=ApplicationConfig.PROCESSOR_TIMEOUT_SECONDS,
    )
