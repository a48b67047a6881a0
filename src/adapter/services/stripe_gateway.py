"""Stripe Payment Gateway

PaymentGateway implementation backed by the Stripe API, plus translation
of Stripe webhook events into processor-neutral ProcessorEvents.
"""

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import stripe
from src.app.services.payment_gateway import PaymentGateway
from src.domain.errors import CheckoutUnavailable, InvalidWebhookError, UpstreamUnavailable
from src.domain.invoice import ProcessorInvoice
from src.domain.plan import Plan
from src.domain.processor_event import ProcessorEvent, ProcessorEventType
from src.domain.subscription import SubscriptionStatus

logger = logging.getLogger(__name__)

STRIPE_EVENT_TYPES = {
    "checkout.session.completed": ProcessorEventType.CHECKOUT_COMPLETED,
    "customer.subscription.created": ProcessorEventType.SUBSCRIPTION_UPDATED,
    "customer.subscription.updated": ProcessorEventType.SUBSCRIPTION_UPDATED,
    "customer.subscription.deleted": ProcessorEventType.SUBSCRIPTION_DELETED,
}

_KNOWN_STATUSES = {status.value for status in SubscriptionStatus}


def _timestamp(value: Optional[int]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc)


def _first_item(subscription: Dict[str, Any]) -> Dict[str, Any]:
    items = (subscription.get("items") or {}).get("data") or [{}]
    return items[0] or {}


class StripePaymentGateway(PaymentGateway):
    """
    Stripe implementation of PaymentGateway

    The stripe library is synchronous; calls run in a worker thread so the
    event loop is never blocked. Checkout metadata carries user_id and
    plan_id so the confirming webhook can be mapped back.
    """

    def __init__(self, api_key: str, timeout: float = 10.0):
        self.api_key = api_key
        self.timeout = timeout

    async def _call(self, fn, *args, **params):
        return await asyncio.wait_for(
            asyncio.to_thread(fn, *args, api_key=self.api_key, **params),
            timeout=self.timeout,
        )

    async def create_checkout_session(
        self,
        user_id: str,
        plan: Plan,
        success_url: str,
        cancel_url: str,
        customer_id: str = None,
    ) -> str:
        if not plan.processor_price_id:
            raise CheckoutUnavailable(
                f"Plan {plan.id} cannot be purchased",
                reason="plan has no processor price",
            )

        metadata = {"user_id": user_id, "plan_id": plan.id}
        params = dict(
            mode="subscription",
            line_items=[{"price": plan.processor_price_id, "quantity": 1}],
            success_url=success_url,
            cancel_url=cancel_url,
            client_reference_id=user_id,
            metadata=metadata,
            subscription_data={"metadata": metadata},
        )
        if customer_id:
            params["customer"] = customer_id

        try:
            session = await self._call(stripe.checkout.Session.create, **params)
        except asyncio.TimeoutError:
            raise CheckoutUnavailable(
                "Checkout is temporarily unavailable",
                reason=f"Stripe did not answer within {self.timeout}s",
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe error creating checkout session for user {user_id}: {e}")
            raise CheckoutUnavailable("Checkout is temporarily unavailable", reason=str(e))

        logger.info(f"Created checkout session: session_id={session.id}, user_id={user_id}, plan={plan.id}")
        return session.url

    async def update_subscription(
        self, processor_subscription_id: str, patch: Dict[str, Any]
    ) -> None:
        try:
            await self._call(stripe.Subscription.modify, id=processor_subscription_id, **patch)
        except asyncio.TimeoutError:
            raise UpstreamUnavailable(
                "Payment processor is temporarily unavailable",
                reason=f"Stripe did not answer within {self.timeout}s",
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe error updating subscription {processor_subscription_id}: {e}")
            raise UpstreamUnavailable("Payment processor is temporarily unavailable", reason=str(e))

    async def cancel_subscription(self, processor_subscription_id: str) -> None:
        try:
            await self._call(stripe.Subscription.cancel, processor_subscription_id)
        except asyncio.TimeoutError:
            raise UpstreamUnavailable(
                "Payment processor is temporarily unavailable",
                reason=f"Stripe did not answer within {self.timeout}s",
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe error canceling subscription {processor_subscription_id}: {e}")
            raise UpstreamUnavailable("Payment processor is temporarily unavailable", reason=str(e))

        logger.info(f"Canceled processor subscription {processor_subscription_id}")

    async def list_invoices(self, customer_id: str, limit: int = 12) -> List[ProcessorInvoice]:
        try:
            page = await self._call(stripe.Invoice.list, customer=customer_id, limit=limit)
        except asyncio.TimeoutError:
            raise UpstreamUnavailable(
                "Invoices are temporarily unavailable",
                reason=f"Stripe did not answer within {self.timeout}s",
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe error listing invoices for customer {customer_id}: {e}")
            raise UpstreamUnavailable("Invoices are temporarily unavailable", reason=str(e))

        return [to_processor_invoice(invoice) for invoice in page["data"]]


def to_processor_invoice(invoice: Dict[str, Any]) -> ProcessorInvoice:
    return ProcessorInvoice(
        id=invoice["id"],
        number=invoice.get("number"),
        status=invoice.get("status") or "draft",
        amount_due=invoice.get("amount_due") or 0,
        amount_paid=invoice.get("amount_paid") or 0,
        currency=invoice.get("currency") or "usd",
        period_start=_timestamp(invoice.get("period_start")),
        period_end=_timestamp(invoice.get("period_end")),
        hosted_invoice_url=invoice.get("hosted_invoice_url"),
        created_at=_timestamp(invoice["created"]),
    )


def verify_webhook(payload: bytes, signature: Optional[str], secret: str) -> Dict[str, Any]:
    """
    Verify a Stripe webhook signature and return the event as a plain dict

    Raises:
        InvalidWebhookError: Missing/invalid signature or unparsable payload
    """
    if not secret:
        raise InvalidWebhookError("Webhook secret not configured")
    if not signature:
        raise InvalidWebhookError("Missing Stripe-Signature header")

    try:
        stripe.Webhook.construct_event(payload, signature, secret)
    except ValueError as e:
        logger.error(f"Invalid webhook payload: {e}")
        raise InvalidWebhookError("Invalid webhook payload", reason=str(e))
    except stripe.SignatureVerificationError as e:
        logger.error(f"Webhook signature verification failed: {e}")
        raise InvalidWebhookError("Invalid webhook signature", reason=str(e))

    return json.loads(payload)


def translate_event(event: Dict[str, Any]) -> Optional[ProcessorEvent]:
    """
    Map a Stripe event onto a ProcessorEvent

    Returns None for event types the subscription lifecycle ignores.
    """
    event_type = STRIPE_EVENT_TYPES.get(event.get("type"))
    if event_type is None:
        return None

    obj = event["data"]["object"]
    metadata = obj.get("metadata") or {}
    occurred_at = _timestamp(event["created"])

    if event_type == ProcessorEventType.CHECKOUT_COMPLETED:
        return ProcessorEvent(
            event_id=event["id"],
            event_type=event_type,
            occurred_at=occurred_at,
            user_id=metadata.get("user_id") or obj.get("client_reference_id"),
            plan_id=metadata.get("plan_id"),
            processor_subscription_id=obj.get("subscription"),
            processor_customer_id=obj.get("customer"),
        )

    item = _first_item(obj)
    price_id = (item.get("price") or {}).get("id")
    status = obj.get("status")
    return ProcessorEvent(
        event_id=event["id"],
        event_type=event_type,
        occurred_at=occurred_at,
        user_id=metadata.get("user_id"),
        # the price wins over checkout metadata once the plan changes in Stripe
        plan_id=None if price_id else metadata.get("plan_id"),
        processor_price_id=price_id,
        processor_subscription_id=obj.get("id"),
        processor_customer_id=obj.get("customer"),
        status=status if status in _KNOWN_STATUSES else None,
        current_period_start=_timestamp(
            obj.get("current_period_start") or item.get("current_period_start")
        ),
        current_period_end=_timestamp(
            obj.get("current_period_end") or item.get("current_period_end")
        ),
        cancel_at=_timestamp(obj.get("cancel_at")),
    )
