"""Unit tests for the Stripe payment gateway adapter

Stripe's API is never called: the stripe resource methods are patched
and webhook signatures are computed locally with the test secret.
"""

import hashlib
import hmac
import json
import time
import pytest
import stripe
from datetime import datetime
from types import SimpleNamespace

from src.adapter.services.stripe_gateway import (
    StripePaymentGateway,
    to_processor_invoice,
    translate_event,
    verify_webhook,
)
from src.domain.errors import CheckoutUnavailable, InvalidWebhookError, UpstreamUnavailable
from src.domain.processor_event import ProcessorEventType
from src.domain.subscription import SubscriptionStatus

WEBHOOK_SECRET = "whsec_test"

MARCH_1 = 1709251200   # 2024-03-01T00:00:00Z
APRIL_1 = 1711929600   # 2024-04-01T00:00:00Z


def sign(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: int = None) -> str:
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.{payload.decode()}".encode()
    signature = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def subscription_event(event_type="customer.subscription.updated", **overrides):
    obj = {
        "id": "sub_stripe_1",
        "customer": "cus_1",
        "status": "active",
        "cancel_at": None,
        "metadata": {"user_id": "user_123", "plan_id": "plan_pro"},
        "items": {"data": [{
            "price": {"id": "price_partner"},
            "current_period_start": MARCH_1,
            "current_period_end": APRIL_1,
        }]},
    }
    obj.update(overrides)
    return {"id": "evt_1", "type": event_type, "created": MARCH_1, "data": {"object": obj}}


class TestTranslateEvent:
    def test_checkout_completed_uses_metadata(self):
        event = {
            "id": "evt_checkout",
            "type": "checkout.session.completed",
            "created": MARCH_1,
            "data": {"object": {
                "client_reference_id": "user_123",
                "metadata": {"user_id": "user_123", "plan_id": "plan_pro"},
                "subscription": "sub_stripe_1",
                "customer": "cus_1",
            }},
        }

        translated = translate_event(event)

        assert translated.event_type == ProcessorEventType.CHECKOUT_COMPLETED
        assert translated.user_id == "user_123"
        assert translated.plan_id == "plan_pro"
        assert translated.processor_subscription_id == "sub_stripe_1"
        assert translated.occurred_at == datetime(2024, 3, 1)

    def test_checkout_falls_back_to_client_reference(self):
        event = {
            "id": "evt_checkout",
            "type": "checkout.session.completed",
            "created": MARCH_1,
            "data": {"object": {"client_reference_id": "user_9", "metadata": {}}},
        }

        assert translate_event(event).user_id == "user_9"

    def test_subscription_price_wins_over_metadata(self):
        translated = translate_event(subscription_event())

        assert translated.event_type == ProcessorEventType.SUBSCRIPTION_UPDATED
        assert translated.plan_id is None
        assert translated.processor_price_id == "price_partner"
        assert translated.status == SubscriptionStatus.ACTIVE

    def test_period_read_from_first_item(self):
        translated = translate_event(subscription_event())

        assert translated.current_period_start == datetime(2024, 3, 1)
        assert translated.current_period_end == datetime(2024, 4, 1)

    def test_top_level_period_preferred(self):
        translated = translate_event(subscription_event(current_period_end=MARCH_1 + 86400))

        assert translated.current_period_end == datetime(2024, 3, 2)

    def test_deleted_event(self):
        translated = translate_event(
            subscription_event("customer.subscription.deleted", status="canceled")
        )

        assert translated.event_type == ProcessorEventType.SUBSCRIPTION_DELETED
        assert translated.status == SubscriptionStatus.CANCELED

    def test_unknown_status_dropped(self):
        assert translate_event(subscription_event(status="paused")).status is None

    def test_cancel_at_translated(self):
        translated = translate_event(subscription_event(cancel_at=APRIL_1))

        assert translated.cancel_at == datetime(2024, 4, 1)

    def test_ignored_event_type(self):
        assert translate_event({"id": "evt_x", "type": "invoice.paid", "created": MARCH_1}) is None


class TestVerifyWebhook:
    def test_valid_signature(self):
        payload = json.dumps(subscription_event()).encode()

        event = verify_webhook(payload, sign(payload), WEBHOOK_SECRET)

        assert event["id"] == "evt_1"
        assert event["type"] == "customer.subscription.updated"

    def test_wrong_secret(self):
        payload = json.dumps(subscription_event()).encode()

        with pytest.raises(InvalidWebhookError):
            verify_webhook(payload, sign(payload, secret="whsec_other"), WEBHOOK_SECRET)

    def test_tampered_payload(self):
        payload = json.dumps(subscription_event()).encode()
        signature = sign(payload)

        with pytest.raises(InvalidWebhookError):
            verify_webhook(payload.replace(b"active", b"unpaid"), signature, WEBHOOK_SECRET)

    def test_missing_signature(self):
        with pytest.raises(InvalidWebhookError):
            verify_webhook(b"{}", None, WEBHOOK_SECRET)

    def test_secret_not_configured(self):
        with pytest.raises(InvalidWebhookError):
            verify_webhook(b"{}", "t=1,v1=abc", "")


class TestToProcessorInvoice:
    def test_maps_fields(self):
        invoice = to_processor_invoice({
            "id": "in_1",
            "number": "INV-0001",
            "status": "paid",
            "amount_due": 9900,
            "amount_paid": 9900,
            "currency": "usd",
            "period_start": MARCH_1,
            "period_end": APRIL_1,
            "hosted_invoice_url": "https://invoice.stripe.com/i/in_1",
            "created": MARCH_1,
        })

        assert invoice.id == "in_1"
        assert invoice.amount_paid == 9900
        assert invoice.period_end.year == 2024
        assert invoice.hosted_invoice_url.endswith("in_1")

    def test_draft_defaults(self):
        invoice = to_processor_invoice({"id": "in_2", "created": MARCH_1})

        assert invoice.status == "draft"
        assert invoice.amount_due == 0
        assert invoice.number is None


@pytest.mark.asyncio
class TestStripePaymentGateway:
    async def test_checkout_session_carries_metadata(self, monkeypatch, pro_plan):
        calls = []

        def fake_create(**params):
            calls.append(params)
            return SimpleNamespace(id="cs_1", url="https://checkout.stripe.com/c/pay/cs_1")

        monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)
        gateway = StripePaymentGateway(api_key="sk_test")

        url = await gateway.create_checkout_session(
            "user_123", pro_plan, "https://app/success", "https://app/cancel", customer_id="cus_1"
        )

        assert url == "https://checkout.stripe.com/c/pay/cs_1"
        [params] = calls
        assert params["api_key"] == "sk_test"
        assert params["line_items"] == [{"price": "price_pro", "quantity": 1}]
        assert params["metadata"] == {"user_id": "user_123", "plan_id": "plan_pro"}
        assert params["subscription_data"]["metadata"] == params["metadata"]
        assert params["customer"] == "cus_1"

    async def test_plan_without_price_cannot_be_bought(self, free_plan):
        gateway = StripePaymentGateway(api_key="sk_test")

        with pytest.raises(CheckoutUnavailable):
            await gateway.create_checkout_session("user_123", free_plan, "s", "c")

    async def test_stripe_error_becomes_checkout_unavailable(self, monkeypatch, pro_plan):
        def failing_create(**params):
            raise stripe.StripeError("connection reset")

        monkeypatch.setattr(stripe.checkout.Session, "create", failing_create)
        gateway = StripePaymentGateway(api_key="sk_test")

        with pytest.raises(CheckoutUnavailable):
            await gateway.create_checkout_session("user_123", pro_plan, "s", "c")

    async def test_list_invoices(self, monkeypatch):
        monkeypatch.setattr(
            stripe.Invoice, "list",
            lambda **params: {"data": [{"id": "in_1", "status": "paid", "created": MARCH_1}]},
        )
        gateway = StripePaymentGateway(api_key="sk_test")

        invoices = await gateway.list_invoices("cus_1")

        assert [invoice.id for invoice in invoices] == ["in_1"]

    async def test_update_subscription_failure(self, monkeypatch):
        def failing_modify(**params):
            raise stripe.StripeError("no such subscription")

        monkeypatch.setattr(stripe.Subscription, "modify", failing_modify)
        gateway = StripePaymentGateway(api_key="sk_test")

        with pytest.raises(UpstreamUnavailable):
            await gateway.update_subscription("sub_stripe_1", {"cancel_at_period_end": True})

    async def test_cancel_subscription(self, monkeypatch):
        calls = []

        def fake_cancel(subscription_id, **params):
            calls.append((subscription_id, params))

        monkeypatch.setattr(stripe.Subscription, "cancel", fake_cancel)
        gateway = StripePaymentGateway(api_key="sk_test")

        await gateway.cancel_subscription("sub_stripe_1")

        assert calls == [("sub_stripe_1", {"api_key": "sk_test"})]

    async def test_cancel_subscription_failure(self, monkeypatch):
        def failing_cancel(subscription_id, **params):
            raise stripe.StripeError("no such subscription")

        monkeypatch.setattr(stripe.Subscription, "cancel", failing_cancel)
        gateway = StripePaymentGateway(api_key="sk_test")

        with pytest.raises(UpstreamUnavailable):
            await gateway.cancel_subscription("sub_stripe_1")
