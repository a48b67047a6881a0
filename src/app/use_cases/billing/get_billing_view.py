"""GetBillingView Use Case

Assembles everything the billing page shows for one user.
"""

import asyncio
import logging
from datetime import datetime
from typing import List, Optional
from libs.result import Result, Return, Error
from src.app.services.payment_gateway import PaymentGateway
from src.domain.errors import BillingError, UpstreamUnavailable
from src.domain.invoice import ProcessorInvoice
from src.domain.payout import Payout
from .dtos import BillingViewDTO, PayoutDTO, PlanDTO, SubscriptionDTO
from .payout_ledger import PayoutLedger, aggregate_payouts
from .plan_catalog import PlanCatalog
from .subscription_state_machine import SubscriptionStateMachine

logger = logging.getLogger(__name__)


class GetBillingView:
    """
    Use Case: Billing overview of a user

    Subscription and plan data are required: any error there fails the
    view. Payouts, stats and invoices are optional sections; when their
    source is unavailable they render empty and are listed in ``degraded``.
    """

    def __init__(
        self,
        catalog: PlanCatalog,
        subscriptions: SubscriptionStateMachine,
        ledger: PayoutLedger,
        gateway: Optional[PaymentGateway] = None,
        processor_timeout: float = 10.0,
        invoice_limit: int = 12,
    ):
        self.catalog = catalog
        self.subscriptions = subscriptions
        self.ledger = ledger
        self.gateway = gateway
        self.processor_timeout = processor_timeout
        self.invoice_limit = invoice_limit

    async def execute(self, user_id: str) -> Result[BillingViewDTO]:
        # Required sections
        try:
            subscription = await self.subscriptions.get_effective(user_id)
            current_plan = await self.catalog.get_plan(subscription.plan_id)
            plans = await self.catalog.list_active_plans()
            customer_id = subscription.processor_customer_id
            if subscription.is_virtual():
                row = await self.subscriptions.get_current(user_id)
                customer_id = row.processor_customer_id if row is not None else None
        except BillingError as e:
            return Return.err(e.to_error())
        except Exception as e:
            logger.error(f"Billing view for user {user_id} failed: {e}")
            return Return.err(
                Error(
                    code="BILLING_VIEW_FAILED",
                    message="Failed to load billing view",
                    reason=str(e),
                )
            )

        # Optional sections
        degraded: List[str] = []
        payouts = await self._load_payouts(user_id, degraded)
        stats = aggregate_payouts(payouts, datetime.utcnow().year)
        invoices = await self._load_invoices(customer_id, degraded)

        return Return.ok(
            BillingViewDTO(
                subscription=SubscriptionDTO.from_entity(subscription),
                current_plan=PlanDTO.from_entity(current_plan),
                plans=[PlanDTO.from_entity(plan) for plan in plans],
                payouts=[PayoutDTO.from_entity(payout) for payout in payouts],
                invoices=invoices,
                stats=stats,
                degraded=degraded,
            )
        )

    async def _load_payouts(self, user_id: str, degraded: List[str]) -> List[Payout]:
        try:
            return await self.ledger.list_for_user(user_id)
        except UpstreamUnavailable as e:
            logger.warning(f"Payouts unavailable for user {user_id}: {e.message}")
            degraded.extend(["payouts", "stats"])
            return []

    async def _load_invoices(
        self, customer_id: Optional[str], degraded: List[str]
    ) -> List[ProcessorInvoice]:
        if customer_id is None or self.gateway is None:
            return []
        try:
            return await asyncio.wait_for(
                self.gateway.list_invoices(customer_id, limit=self.invoice_limit),
                timeout=self.processor_timeout,
            )
        except (UpstreamUnavailable, asyncio.TimeoutError) as e:
            logger.warning(f"Invoices unavailable for customer {customer_id}: {e}")
            degraded.append("invoices")
            return []
