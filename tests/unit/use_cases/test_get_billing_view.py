"""Unit tests for GetBillingView and WaitForPlanChange

Required sections (subscription, plans) fail the view; optional sections
(payouts, stats, invoices) degrade to empty.
"""

import asyncio
import pytest
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

from libs.result import Return
from src.app.use_cases.billing.get_billing_view import GetBillingView
from src.app.use_cases.billing.payout_ledger import PayoutLedger
from src.app.use_cases.billing.plan_catalog import PlanCatalog
from src.app.use_cases.billing.subscription_state_machine import SubscriptionStateMachine
from src.app.use_cases.billing.wait_for_plan_change import WaitForPlanChange
from src.domain.errors import MalformedPlanError, UpstreamUnavailable
from src.domain.invoice import ProcessorInvoice
from src.domain.payout import PayoutStatus
from src.domain.subscription import SubscriptionStatus


@pytest.fixture
def invoice():
    return ProcessorInvoice(
        id="in_1",
        number="INV-0001",
        status="paid",
        amount_due=9900,
        amount_paid=9900,
        currency="usd",
        created_at=datetime(2024, 3, 1),
    )


@pytest.fixture
def mock_gateway(invoice):
    gateway = MagicMock()
    gateway.list_invoices = AsyncMock(return_value=[invoice])
    return gateway


@pytest.fixture
def build_view(mock_plan_repo, mock_subscription_repo, mock_payout_repo, mock_gateway):
    def _build(gateway=mock_gateway, timeout=1.0):
        catalog = PlanCatalog(mock_plan_repo)
        subscriptions = SubscriptionStateMachine(mock_subscription_repo, catalog)
        return GetBillingView(
            catalog,
            subscriptions,
            PayoutLedger(mock_payout_repo),
            gateway=gateway,
            processor_timeout=timeout,
        )

    return _build


@pytest.mark.asyncio
class TestGetBillingView:
    async def test_full_view(
        self, build_view, mock_subscription_repo, mock_payout_repo, pro_subscription, make_payout
    ):
        mock_subscription_repo.get_by_user_id = AsyncMock(return_value=pro_subscription)
        mock_payout_repo.list_by_recruiter = AsyncMock(return_value=[
            make_payout(PayoutStatus.COMPLETED, 500, "p1", completed_at=datetime.utcnow()),
        ])

        result = await build_view().execute("user_123")

        assert result.is_ok()
        view = result.value
        assert view.subscription.plan_id == "plan_pro"
        assert view.current_plan.display_tier == "Pro"
        assert [plan.id for plan in view.plans] == ["plan_free", "plan_pro", "plan_partner"]
        assert len(view.payouts) == 1
        assert view.stats.ytd_earnings == 500
        assert [inv.id for inv in view.invoices] == ["in_1"]
        assert view.degraded == []

    async def test_user_without_row_sees_free_plan(self, build_view, mock_gateway):
        result = await build_view().execute("user_new")

        assert result.is_ok()
        assert result.value.subscription.is_virtual is True
        assert result.value.current_plan.is_free is True
        assert result.value.invoices == []
        mock_gateway.list_invoices.assert_not_called()

    async def test_payout_store_down_degrades(
        self, build_view, mock_subscription_repo, mock_payout_repo, pro_subscription
    ):
        mock_subscription_repo.get_by_user_id = AsyncMock(return_value=pro_subscription)
        mock_payout_repo.list_by_recruiter = AsyncMock(
            side_effect=UpstreamUnavailable("Payout store unavailable")
        )

        result = await build_view().execute("user_123")

        assert result.is_ok()
        assert result.value.payouts == []
        assert result.value.stats.lifetime_earnings == 0
        assert result.value.degraded == ["payouts", "stats"]
        assert len(result.value.invoices) == 1

    async def test_invoice_timeout_degrades(
        self, build_view, mock_subscription_repo, mock_gateway, pro_subscription
    ):
        async def slow_invoices(*args, **kwargs):
            await asyncio.sleep(1)
            return []

        mock_subscription_repo.get_by_user_id = AsyncMock(return_value=pro_subscription)
        mock_gateway.list_invoices = AsyncMock(side_effect=slow_invoices)

        result = await build_view(timeout=0.01).execute("user_123")

        assert result.is_ok()
        assert result.value.invoices == []
        assert result.value.degraded == ["invoices"]

    async def test_invoice_error_degrades(
        self, build_view, mock_subscription_repo, mock_gateway, pro_subscription
    ):
        mock_subscription_repo.get_by_user_id = AsyncMock(return_value=pro_subscription)
        mock_gateway.list_invoices = AsyncMock(side_effect=UpstreamUnavailable("Stripe down"))

        result = await build_view().execute("user_123")

        assert result.value.degraded == ["invoices"]

    async def test_canceled_row_still_lists_invoices(
        self, build_view, mock_subscription_repo, mock_gateway, pro_subscription
    ):
        pro_subscription.status = SubscriptionStatus.CANCELED
        mock_subscription_repo.get_by_user_id = AsyncMock(return_value=pro_subscription)

        result = await build_view().execute("user_123")

        assert result.value.subscription.plan_id == "plan_free"
        mock_gateway.list_invoices.assert_called_once_with("cus_1", limit=12)

    async def test_subscription_failure_fails_view(self, build_view, mock_subscription_repo):
        mock_subscription_repo.get_by_user_id = AsyncMock(side_effect=RuntimeError("db down"))

        result = await build_view().execute("user_123")

        assert result.is_err()
        assert result.error.code == "BILLING_VIEW_FAILED"

    async def test_malformed_plan_fails_view(self, build_view, partner_plan):
        partner_plan.features = {"applications_per_month": 10, "teleport": True}

        result = await build_view().execute("user_new")

        assert result.is_err()
        assert result.error.code == "MALFORMED_PLAN"


@pytest.mark.asyncio
class TestWaitForPlanChange:
    @pytest.fixture
    def sleeps(self):
        return []

    @pytest.fixture
    def fake_sleep(self, sleeps):
        async def _sleep(seconds):
            sleeps.append(seconds)

        return _sleep

    async def test_returns_once_plan_visible(
        self, build_view, mock_subscription_repo, pro_subscription, sleeps
    ):
        # Checkout is confirmed while the second backoff step is running
        async def confirm_on_second_sleep(seconds):
            sleeps.append(seconds)
            if len(sleeps) == 2:
                mock_subscription_repo.get_by_user_id = AsyncMock(return_value=pro_subscription)

        waiter = WaitForPlanChange(build_view(), timeout=30, sleep=confirm_on_second_sleep)

        result = await waiter.execute("user_123", "plan_pro")

        assert result.is_ok()
        assert result.value.subscription.plan_id == "plan_pro"
        assert sleeps == [1, 2]

    async def test_backoff_capped_then_times_out(self, build_view, fake_sleep, sleeps):
        waiter = WaitForPlanChange(build_view(), timeout=30, sleep=fake_sleep)

        result = await waiter.execute("user_new", "plan_pro")

        assert result.is_err()
        assert result.error.code == "PLAN_CHANGE_TIMEOUT"
        assert sleeps == [1, 2, 4, 8, 8, 7]
        assert sum(sleeps) == 30

    async def test_unsettled_status_keeps_waiting(
        self, build_view, mock_subscription_repo, pro_subscription, fake_sleep, sleeps
    ):
        pro_subscription.status = SubscriptionStatus.INCOMPLETE
        mock_subscription_repo.get_by_user_id = AsyncMock(return_value=pro_subscription)
        waiter = WaitForPlanChange(build_view(), timeout=3, sleep=fake_sleep)

        result = await waiter.execute("user_123", "plan_pro")

        assert result.error.code == "PLAN_CHANGE_TIMEOUT"
        assert sleeps == [1, 2]

    async def test_view_error_returned_immediately(self, fake_sleep, sleeps):
        view = MagicMock()
        view.execute = AsyncMock(return_value=Return.err(
            MalformedPlanError("Plan plan_pro has malformed features").to_error()
        ))

        result = await WaitForPlanChange(view, sleep=fake_sleep).execute("user_123", "plan_pro")

        assert result.error.code == "MALFORMED_PLAN"
        assert sleeps == []
