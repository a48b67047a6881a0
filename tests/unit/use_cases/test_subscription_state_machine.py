"""Unit tests for SubscriptionStateMachine"""

import asyncio
import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.billing.plan_catalog import PlanCatalog
from src.app.use_cases.billing.subscription_state_machine import SubscriptionStateMachine
from src.domain.errors import (
    CheckoutUnavailable,
    InvalidPlanChangeError,
    PlanNotFoundError,
    StaleEventError,
    SubscriptionNotFoundError,
    UpstreamUnavailable,
)
from src.domain.processor_event import EventOutcome, ProcessorEvent, ProcessorEventType
from src.domain.subscription import Subscription, SubscriptionStatus


@pytest.fixture
def gateway():
    gateway = MagicMock()
    gateway.create_checkout_session = AsyncMock(return_value="https://checkout.test/cs_1")
    gateway.update_subscription = AsyncMock(return_value=None)
    gateway.cancel_subscription = AsyncMock(return_value=None)
    return gateway


@pytest.fixture
def machine(mock_subscription_repo, mock_plan_repo, gateway):
    return SubscriptionStateMachine(
        mock_subscription_repo, PlanCatalog(mock_plan_repo), gateway=gateway, processor_timeout=0.05
    )


def _event(event_type=ProcessorEventType.SUBSCRIPTION_UPDATED, **overrides):
    values = dict(
        event_id="evt_1",
        event_type=event_type,
        occurred_at=datetime(2024, 3, 10),
        user_id="user_123",
        processor_subscription_id="sub_stripe_1",
    )
    values.update(overrides)
    return ProcessorEvent(**values)


@pytest.mark.asyncio
class TestEffectiveSubscription:
    async def test_no_row_reads_as_free_active(self, machine):
        subscription = await machine.get_effective("user_new")

        assert subscription.is_virtual()
        assert subscription.plan_id == "plan_free"
        assert subscription.status == SubscriptionStatus.ACTIVE

    async def test_ended_row_reads_as_free_keeping_version(
        self, machine, mock_subscription_repo, pro_subscription
    ):
        pro_subscription.status = SubscriptionStatus.CANCELED
        mock_subscription_repo.get_by_user_id = AsyncMock(return_value=pro_subscription)

        subscription = await machine.get_effective("user_123")

        assert subscription.plan_id == "plan_free"
        assert subscription.version == pro_subscription.version

    async def test_past_due_row_stays_in_force(self, machine, mock_subscription_repo, pro_subscription):
        pro_subscription.status = SubscriptionStatus.PAST_DUE
        mock_subscription_repo.get_by_user_id = AsyncMock(return_value=pro_subscription)

        subscription = await machine.get_effective("user_123")

        assert subscription is pro_subscription


@pytest.mark.asyncio
class TestSelectFreePlan:
    async def test_creates_row_for_new_user(self, machine, mock_subscription_repo, free_plan):
        subscription = await machine.select_free_plan("user_new", free_plan)

        mock_subscription_repo.create.assert_called_once()
        assert subscription.plan_id == "plan_free"
        assert subscription.status == SubscriptionStatus.ACTIVE

    async def test_overwrites_existing_row(
        self, machine, mock_subscription_repo, free_plan, pro_subscription
    ):
        pro_subscription.processor_subscription_id = None
        mock_subscription_repo.get_by_user_id = AsyncMock(return_value=pro_subscription)

        subscription = await machine.select_free_plan("user_123", free_plan)

        assert subscription.plan_id == "plan_free"
        assert subscription.version == 4
        mock_subscription_repo.update.assert_called_once()

    async def test_paid_plan_rejected(self, machine, pro_plan):
        with pytest.raises(InvalidPlanChangeError):
            await machine.select_free_plan("user_123", pro_plan)


@pytest.mark.asyncio
class TestRequestCheckout:
    async def test_returns_url_without_state_change(self, machine, mock_subscription_repo, pro_plan):
        url = await machine.request_checkout("user_123", pro_plan, "https://ok", "https://cancel")

        assert url == "https://checkout.test/cs_1"
        mock_subscription_repo.create.assert_not_called()
        mock_subscription_repo.update.assert_not_called()

    async def test_timeout_leaves_state_untouched(
        self, machine, mock_subscription_repo, gateway, pro_plan
    ):
        async def hang(**kwargs):
            await asyncio.sleep(1)

        gateway.create_checkout_session = AsyncMock(side_effect=hang)

        with pytest.raises(CheckoutUnavailable):
            await machine.request_checkout("user_123", pro_plan, "https://ok", "https://cancel")

        mock_subscription_repo.create.assert_not_called()
        mock_subscription_repo.update.assert_not_called()

    async def test_gateway_failure_is_checkout_unavailable(self, machine, gateway, pro_plan):
        gateway.create_checkout_session = AsyncMock(side_effect=UpstreamUnavailable("down"))

        with pytest.raises(CheckoutUnavailable) as exc_info:
            await machine.request_checkout("user_123", pro_plan, "https://ok", "https://cancel")
        assert exc_info.value.category == "UPSTREAM_UNAVAILABLE"


@pytest.mark.asyncio
class TestScheduleCancellation:
    async def test_sets_cancel_at_to_period_end(
        self, machine, mock_subscription_repo, gateway, pro_subscription
    ):
        mock_subscription_repo.get_by_user_id = AsyncMock(return_value=pro_subscription)

        subscription = await machine.schedule_cancellation("user_123")

        gateway.update_subscription.assert_called_once_with(
            "sub_stripe_1", {"cancel_at_period_end": True}
        )
        assert subscription.cancel_at == datetime(2024, 4, 1)
        assert subscription.status == SubscriptionStatus.ACTIVE

    async def test_already_scheduled_is_idempotent(
        self, machine, mock_subscription_repo, gateway, pro_subscription
    ):
        pro_subscription.cancel_at = datetime(2024, 4, 1)
        mock_subscription_repo.get_by_user_id = AsyncMock(return_value=pro_subscription)

        await machine.schedule_cancellation("user_123")

        gateway.update_subscription.assert_not_called()

    async def test_free_user_has_nothing_to_cancel(self, machine):
        with pytest.raises(InvalidPlanChangeError):
            await machine.schedule_cancellation("user_new")


@pytest.mark.asyncio
class TestApplyEvent:
    async def test_checkout_completed_creates_paid_subscription(self, machine, mock_subscription_repo):
        event = _event(
            ProcessorEventType.CHECKOUT_COMPLETED,
            plan_id="plan_pro",
            processor_customer_id="cus_1",
        )

        outcome, subscription = await machine.apply_event(event)

        assert outcome == EventOutcome.APPLIED
        assert subscription.plan_id == "plan_pro"
        assert subscription.status == SubscriptionStatus.ACTIVE
        assert subscription.last_event_at == event.occurred_at
        mock_subscription_repo.create.assert_called_once()

    async def test_checkout_for_unknown_plan_is_rejected(self, machine, mock_subscription_repo):
        event = _event(ProcessorEventType.CHECKOUT_COMPLETED, plan_id="plan_ghost")

        with pytest.raises(PlanNotFoundError):
            await machine.apply_event(event)

        mock_subscription_repo.create.assert_not_called()

    async def test_status_update_overwrites_fields(
        self, machine, mock_subscription_repo, pro_subscription
    ):
        mock_subscription_repo.get_by_processor_subscription_id = AsyncMock(
            return_value=pro_subscription
        )
        event = _event(status=SubscriptionStatus.PAST_DUE, processor_price_id="price_pro")

        outcome, subscription = await machine.apply_event(event)

        assert outcome == EventOutcome.APPLIED
        assert subscription.status == SubscriptionStatus.PAST_DUE
        assert subscription.version == 4

    async def test_stale_event_is_rejected(self, machine, mock_subscription_repo, pro_subscription):
        pro_subscription.last_event_at = datetime(2024, 3, 20)
        mock_subscription_repo.get_by_processor_subscription_id = AsyncMock(
            return_value=pro_subscription
        )

        with pytest.raises(StaleEventError):
            await machine.apply_event(_event(status=SubscriptionStatus.UNPAID))

        assert pro_subscription.status == SubscriptionStatus.ACTIVE
        mock_subscription_repo.update.assert_not_called()

    async def test_identical_fields_are_no_op(self, machine, mock_subscription_repo, pro_subscription):
        mock_subscription_repo.get_by_processor_subscription_id = AsyncMock(
            return_value=pro_subscription
        )
        event = _event(
            status=SubscriptionStatus.ACTIVE,
            processor_price_id="price_pro",
            current_period_start=pro_subscription.current_period_start,
            current_period_end=pro_subscription.current_period_end,
        )

        outcome, _ = await machine.apply_event(event)

        assert outcome == EventOutcome.NO_OP
        mock_subscription_repo.update.assert_not_called()

    async def test_deleted_event_cancels(self, machine, mock_subscription_repo, pro_subscription):
        mock_subscription_repo.get_by_processor_subscription_id = AsyncMock(
            return_value=pro_subscription
        )

        outcome, subscription = await machine.apply_event(
            _event(ProcessorEventType.SUBSCRIPTION_DELETED)
        )

        assert outcome == EventOutcome.APPLIED
        assert subscription.status == SubscriptionStatus.CANCELED

    async def test_status_change_for_unknown_subscription(self, machine):
        with pytest.raises(SubscriptionNotFoundError):
            await machine.apply_event(_event(status=SubscriptionStatus.ACTIVE))

    async def test_aware_timestamps_compare_with_stored_naive_ones(
        self, machine, mock_subscription_repo, pro_subscription
    ):
        mock_subscription_repo.get_by_processor_subscription_id = AsyncMock(
            return_value=pro_subscription
        )
        event = _event(
            status=SubscriptionStatus.PAST_DUE,
            occurred_at=datetime(2024, 3, 10, tzinfo=timezone.utc),
        )

        outcome, subscription = await machine.apply_event(event)

        assert outcome == EventOutcome.APPLIED
        assert subscription.last_event_at == datetime(2024, 3, 10)


@pytest.mark.asyncio
class TestReplacedProcessorSubscription:
    async def test_upgrade_checkout_cancels_old_processor_subscription(
        self, machine, mock_subscription_repo, pro_subscription, gateway
    ):
        mock_subscription_repo.get_by_user_id = AsyncMock(return_value=pro_subscription)
        event = _event(
            ProcessorEventType.CHECKOUT_COMPLETED,
            plan_id="plan_partner",
            processor_subscription_id="sub_stripe_2",
            processor_customer_id="cus_1",
        )

        outcome, subscription = await machine.apply_event(event)

        assert outcome == EventOutcome.APPLIED
        assert subscription.plan_id == "plan_partner"
        assert subscription.processor_subscription_id == "sub_stripe_2"
        gateway.cancel_subscription.assert_awaited_once_with("sub_stripe_1")

    async def test_failed_cancel_keeps_new_subscription(
        self, machine, mock_subscription_repo, pro_subscription, gateway
    ):
        mock_subscription_repo.get_by_user_id = AsyncMock(return_value=pro_subscription)
        gateway.cancel_subscription = AsyncMock(side_effect=UpstreamUnavailable("stripe down"))
        event = _event(
            ProcessorEventType.CHECKOUT_COMPLETED,
            plan_id="plan_partner",
            processor_subscription_id="sub_stripe_2",
        )

        outcome, subscription = await machine.apply_event(event)

        assert outcome == EventOutcome.APPLIED
        assert subscription.plan_id == "plan_partner"

    async def test_checkout_over_ended_row_cancels_nothing(
        self, machine, mock_subscription_repo, pro_subscription, gateway
    ):
        pro_subscription.status = SubscriptionStatus.CANCELED
        mock_subscription_repo.get_by_user_id = AsyncMock(return_value=pro_subscription)
        event = _event(
            ProcessorEventType.CHECKOUT_COMPLETED,
            plan_id="plan_pro",
            processor_subscription_id="sub_stripe_2",
        )

        outcome, _ = await machine.apply_event(event)

        assert outcome == EventOutcome.APPLIED
        gateway.cancel_subscription.assert_not_called()

    async def test_event_for_old_processor_subscription_is_no_op(
        self, machine, mock_subscription_repo, pro_subscription
    ):
        pro_subscription.plan_id = "plan_partner"
        pro_subscription.processor_subscription_id = "sub_stripe_2"
        mock_subscription_repo.get_by_user_id = AsyncMock(return_value=pro_subscription)
        event = _event(
            ProcessorEventType.SUBSCRIPTION_DELETED,
            processor_subscription_id="sub_stripe_1",
            processor_price_id="price_pro",
        )

        outcome, subscription = await machine.apply_event(event)

        assert outcome == EventOutcome.NO_OP
        assert subscription.status == SubscriptionStatus.ACTIVE
        assert subscription.plan_id == "plan_partner"
        mock_subscription_repo.update.assert_not_called()

    async def test_user_row_without_processor_subscription_still_matches(
        self, machine, mock_subscription_repo, pro_subscription
    ):
        pro_subscription.processor_subscription_id = None
        mock_subscription_repo.get_by_user_id = AsyncMock(return_value=pro_subscription)

        outcome, subscription = await machine.apply_event(
            _event(status=SubscriptionStatus.PAST_DUE)
        )

        assert outcome == EventOutcome.APPLIED
        assert subscription.status == SubscriptionStatus.PAST_DUE
