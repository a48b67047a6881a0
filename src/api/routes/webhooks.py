"""Payment processor webhook

Receives Stripe-signed events and feeds them to the subscription state
machine. Unknown event types are acknowledged and ignored.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, Header, Request
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.api.error import ClientError
from src.api.wiring import build_subscriptions
from src.adapter.repositories import SqlAlchemyProcessedEventRepository
from src.adapter.services.stripe_gateway import translate_event, verify_webhook
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.event_publisher import EventPublisher
from src.app.services.payment_gateway import PaymentGateway
from src.app.use_cases.billing import HandleProcessorEvent
from src.domain.errors import BillingError, InvalidWebhookError
from src.depends import get_event_publisher, get_payment_gateway, get_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/billing/webhooks", tags=["Webhooks"])


@router.post("/processor")
async def processor_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None),
    session: AsyncSession = Depends(get_session),
    publisher: EventPublisher = Depends(get_event_publisher),
    gateway: Optional[PaymentGateway] = Depends(get_payment_gateway),
):
    """
    Stripe webhook endpoint.

    **Returns:**
    - 200: `{"event_id", "outcome"}` with outcome applied, no_op, stale or
      duplicate; `{"outcome": "ignored"}` for event types not handled
    - 400: Invalid signature or payload
    - 404: Event references an unknown plan or subscription (the processor
      will redeliver)
    """
    payload = await request.body()

    try:
        raw_event = verify_webhook(payload, stripe_signature, ApplicationConfig.STRIPE_WEBHOOK_SECRET)
        event = translate_event(raw_event)
    except BillingError as e:
        raise ClientError(e.to_error())
    except (KeyError, ValueError) as e:
        logger.error(f"Malformed processor event: {e}")
        raise ClientError(InvalidWebhookError("Malformed processor event", reason=str(e)).to_error())

    if event is None:
        logger.info(f"Ignoring processor event type {raw_event.get('type')}")
        return {"event_id": raw_event.get("id"), "outcome": "ignored"}

    use_case = HandleProcessorEvent(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyProcessedEventRepository(session),
        build_subscriptions(session, gateway),
        publisher=publisher,
    )
    result = await use_case.execute(event)

    if result.is_err():
        raise ClientError(result.error)
    return {"event_id": result.value.event_id, "outcome": result.value.outcome.value}
