from .unit_of_work import SqlAlchemyUnitOfWork
from .event_publisher import (
    LoggingEventPublisher,
    WebhookEventPublisher,
    CompositeEventPublisher,
    create_event_publisher,
)
from .stripe_gateway import StripePaymentGateway, translate_event, verify_webhook

__all__ = [
    "SqlAlchemyUnitOfWork",
    "LoggingEventPublisher",
    "WebhookEventPublisher",
    "CompositeEventPublisher",
    "create_event_publisher",
    "StripePaymentGateway",
    "translate_event",
    "verify_webhook",
]
