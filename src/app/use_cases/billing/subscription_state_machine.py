"""Subscription State Machine

Owns every mutation of a user's subscription. User actions (select free
plan, request checkout, schedule cancellation) and payment processor
notifications (checkout completed, status changes) are the only inputs.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional, Tuple
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.services.payment_gateway import PaymentGateway
from src.domain.errors import (
    CheckoutUnavailable,
    InvalidPlanChangeError,
    StaleEventError,
    SubscriptionNotFoundError,
    UpstreamUnavailable,
)
from src.domain.plan import Plan
from src.domain.processor_event import EventOutcome, ProcessorEvent, ProcessorEventType
from src.domain.subscription import Subscription, SubscriptionStatus
from .plan_catalog import PlanCatalog

logger = logging.getLogger(__name__)


class SubscriptionStateMachine:
    """
    Subscription lifecycle

    States: active, trialing, past_due, canceled, incomplete,
    incomplete_expired, unpaid, plus the implicit "no row" state which
    reads as an active free subscription.

    Rules:
    1. Free plan selection is applied synchronously
    2. Paid plan selection only hands out a checkout URL; state changes
       when the processor confirms the checkout
    3. Processor events overwrite status and period fields, unless they
       are older than the newest applied event (stale events are dropped)
    4. Scheduled cancellation sets cancel_at only; status flips when the
       processor confirms
    5. A subscription never references a plan missing from the catalog
    6. Events for a processor subscription the row no longer points at are
       no-ops; a checkout that replaces a live processor subscription
       cancels the old one
    """

    def __init__(
        self,
        subscription_repo: SubscriptionRepository,
        catalog: PlanCatalog,
        gateway: Optional[PaymentGateway] = None,
        processor_timeout: float = 10.0,
    ):
        self.subscription_repo = subscription_repo
        self.catalog = catalog
        self.gateway = gateway
        self.processor_timeout = processor_timeout

    async def get_current(self, user_id: str, for_update: bool = False) -> Optional[Subscription]:
        """The stored row of a user, None if the user never had one"""
        return await self.subscription_repo.get_by_user_id(user_id, for_update=for_update)

    async def get_effective(self, user_id: str, for_update: bool = False) -> Subscription:
        """
        The subscription that is in force right now

        Returns the stored row unless there is none or it has ended, in
        which case a virtual free subscription is returned. The virtual
        subscription keeps the version of an ended row so optimistic checks
        still see later changes.
        """
        row = await self.get_current(user_id, for_update=for_update)
        if row is not None and not row.is_ended():
            return row

        free_plan = await self.catalog.get_free_plan()
        virtual = Subscription.virtual(user_id, free_plan.id)
        if row is not None:
            virtual.version = row.version
        return virtual

    async def select_free_plan(self, user_id: str, plan: Plan) -> Subscription:
        """Switch to a free plan immediately; creates the row if needed"""
        if not plan.is_free():
            raise InvalidPlanChangeError(
                f"Plan {plan.id} is not free",
                reason="paid plans require checkout",
            )

        now = datetime.utcnow()
        row = await self.get_current(user_id, for_update=True)

        if row is None:
            subscription = Subscription(
                user_id=user_id,
                plan_id=plan.id,
                status=SubscriptionStatus.ACTIVE,
                current_period_start=now,
            )
            created = await self.subscription_repo.create(subscription)
            logger.info(f"Created free subscription for user {user_id} on plan {plan.id}")
            return created

        row.plan_id = plan.id
        row.status = SubscriptionStatus.ACTIVE
        row.current_period_start = now
        row.current_period_end = None
        row.cancel_at = None
        row.touch()
        updated = await self.subscription_repo.update(row)
        logger.info(f"Moved user {user_id} to free plan {plan.id}")
        return updated

    async def request_checkout(
        self, user_id: str, plan: Plan, success_url: str, cancel_url: str
    ) -> str:
        """
        Obtain a checkout URL for a paid plan without touching state

        Raises:
            CheckoutUnavailable: gateway failed or timed out; safe to retry
        """
        if plan.is_free():
            raise InvalidPlanChangeError(
                f"Plan {plan.id} is free",
                reason="free plans do not go through checkout",
            )
        if self.gateway is None:
            raise CheckoutUnavailable("No payment gateway configured")

        row = await self.get_current(user_id)
        customer_id = row.processor_customer_id if row is not None else None

        try:
            url = await asyncio.wait_for(
                self.gateway.create_checkout_session(
                    user_id=user_id,
                    plan=plan,
                    success_url=success_url,
                    cancel_url=cancel_url,
                    customer_id=customer_id,
                ),
                timeout=self.processor_timeout,
            )
        except asyncio.TimeoutError:
            logger.error(f"Checkout request for user {user_id} timed out")
            raise CheckoutUnavailable(
                "Checkout is temporarily unavailable",
                reason=f"processor did not answer within {self.processor_timeout}s",
            )
        except UpstreamUnavailable as e:
            logger.error(f"Checkout request for user {user_id} failed: {e.message}")
            if isinstance(e, CheckoutUnavailable):
                raise
            raise CheckoutUnavailable("Checkout is temporarily unavailable", reason=e.reason)

        logger.info(f"Issued checkout session for user {user_id} on plan {plan.id}")
        return url

    async def schedule_cancellation(self, user_id: str) -> Subscription:
        """
        Cancel at the end of the current period

        Status is left untouched; the processor's confirming event flips it
        to canceled once the period is over.
        """
        row = await self.get_current(user_id, for_update=True)
        if row is None or row.is_ended() or not row.has_processor_subscription():
            raise InvalidPlanChangeError(
                "No paid subscription to cancel",
                reason=f"user {user_id} has no active processor subscription",
            )
        if row.cancel_at is not None:
            return row
        if self.gateway is None:
            raise UpstreamUnavailable("No payment gateway configured")

        try:
            await asyncio.wait_for(
                self.gateway.update_subscription(
                    row.processor_subscription_id, {"cancel_at_period_end": True}
                ),
                timeout=self.processor_timeout,
            )
        except asyncio.TimeoutError:
            raise UpstreamUnavailable(
                "Payment processor is temporarily unavailable",
                reason=f"processor did not answer within {self.processor_timeout}s",
            )

        row.cancel_at = row.current_period_end or datetime.utcnow()
        row.touch()
        updated = await self.subscription_repo.update(row)
        logger.info(f"Scheduled cancellation for user {user_id} at {updated.cancel_at.isoformat()}")
        return updated

    async def apply_event(self, event: ProcessorEvent) -> Tuple[EventOutcome, Subscription]:
        """
        Apply a processor notification

        Returns:
            (EventOutcome, Subscription) - APPLIED or NO_OP

        Raises:
            StaleEventError: event is older than the newest applied one
            PlanNotFoundError: event references a plan missing from the catalog
            SubscriptionNotFoundError: status change for an unknown subscription
        """
        plan = await self._resolve_event_plan(event)

        if event.event_type == ProcessorEventType.CHECKOUT_COMPLETED:
            return await self._apply_checkout_completed(event, plan)
        return await self._apply_status_change(event, plan)

    async def _resolve_event_plan(self, event: ProcessorEvent) -> Optional[Plan]:
        if event.plan_id:
            return await self.catalog.get_plan(event.plan_id)
        if event.processor_price_id:
            return await self.catalog.get_by_processor_price(event.processor_price_id)
        return None

    async def _find_row(self, event: ProcessorEvent) -> Optional[Subscription]:
        """
        The row an event applies to

        Falls back to the user's row when no row carries the event's
        processor subscription id. Such a row may belong to a different
        processor subscription; callers check with _is_superseded.
        """
        row = None
        if event.processor_subscription_id:
            row = await self.subscription_repo.get_by_processor_subscription_id(
                event.processor_subscription_id, for_update=True
            )
        if row is None and event.user_id:
            row = await self.get_current(event.user_id, for_update=True)
        return row

    @staticmethod
    def _is_superseded(row: Subscription, event: ProcessorEvent) -> bool:
        """True when the row is bound to another processor subscription than the event"""
        return (
            event.processor_subscription_id is not None
            and row.processor_subscription_id is not None
            and row.processor_subscription_id != event.processor_subscription_id
        )

    async def _apply_checkout_completed(self, event: ProcessorEvent, plan: Optional[Plan]):
        if plan is None or not event.user_id:
            raise InvalidPlanChangeError(
                f"Checkout event {event.event_id} lacks user or plan",
                reason="checkout metadata must carry user_id and plan_id",
            )

        target = {
            "plan_id": plan.id,
            "status": SubscriptionStatus.ACTIVE,
            "current_period_start": event.current_period_start or event.occurred_at,
            "current_period_end": event.current_period_end,
            "cancel_at": None,
            "processor_subscription_id": event.processor_subscription_id,
            "processor_customer_id": event.processor_customer_id,
        }

        row = await self._find_row(event)
        if row is None:
            subscription = Subscription(user_id=event.user_id, last_event_at=event.occurred_at, **target)
            created = await self.subscription_repo.create(subscription)
            logger.info(f"Checkout confirmed: user {event.user_id} subscribed to plan {plan.id}")
            return EventOutcome.APPLIED, created

        replaced = None
        if self._is_superseded(row, event) and not row.is_ended():
            replaced = row.processor_subscription_id

        outcome, updated = await self._overwrite(row, event, target)
        if replaced is not None:
            await self._cancel_replaced(replaced, updated.user_id)
        return outcome, updated

    async def _cancel_replaced(self, processor_subscription_id: str, user_id: str) -> None:
        """
        End the processor subscription a new checkout replaced

        The new subscription stays applied when this fails; the failure is
        logged with the id so billing can cancel it by hand.
        """
        if self.gateway is None:
            logger.error(
                f"Cannot cancel replaced subscription {processor_subscription_id} "
                f"of user {user_id}: no payment gateway configured"
            )
            return
        try:
            await asyncio.wait_for(
                self.gateway.cancel_subscription(processor_subscription_id),
                timeout=self.processor_timeout,
            )
        except (UpstreamUnavailable, asyncio.TimeoutError) as e:
            logger.error(
                f"Failed to cancel replaced subscription {processor_subscription_id} "
                f"of user {user_id}: {e}"
            )
            return
        logger.info(f"Canceled replaced subscription {processor_subscription_id} of user {user_id}")

    async def _apply_status_change(self, event: ProcessorEvent, plan: Optional[Plan]):
        row = await self._find_row(event)
        if row is None:
            raise SubscriptionNotFoundError(
                f"No subscription for processor event {event.event_id}",
                reason=f"processor_subscription_id={event.processor_subscription_id}",
            )
        if self._is_superseded(row, event):
            logger.info(
                f"Ignoring {event.event_type.value} {event.event_id} for replaced subscription "
                f"{event.processor_subscription_id}; user {row.user_id} is on "
                f"{row.processor_subscription_id}"
            )
            return EventOutcome.NO_OP, row

        status = event.status
        if event.event_type == ProcessorEventType.SUBSCRIPTION_DELETED:
            status = SubscriptionStatus.CANCELED

        target = {
            "status": status or row.status,
            "current_period_start": event.current_period_start or row.current_period_start,
            "current_period_end": event.current_period_end or row.current_period_end,
            "cancel_at": event.cancel_at,
        }
        if plan is not None:
            target["plan_id"] = plan.id
        if event.processor_customer_id:
            target["processor_customer_id"] = event.processor_customer_id

        return await self._overwrite(row, event, target)

    async def _overwrite(self, row: Subscription, event: ProcessorEvent, target: dict):
        if row.last_event_at is not None and event.occurred_at < row.last_event_at:
            raise StaleEventError(
                f"Event {event.event_id} is older than the last applied event",
                reason=(
                    f"occurred_at={event.occurred_at.isoformat()} < "
                    f"last_event_at={row.last_event_at.isoformat()}"
                ),
            )

        if all(getattr(row, field) == value for field, value in target.items()):
            return EventOutcome.NO_OP, row

        for field, value in target.items():
            setattr(row, field, value)
        row.last_event_at = event.occurred_at
        row.touch()
        updated = await self.subscription_repo.update(row)
        logger.info(
            f"Applied {event.event_type.value} {event.event_id} to user {updated.user_id}: "
            f"status={updated.status.value}, plan={updated.plan_id}"
        )
        return EventOutcome.APPLIED, updated
