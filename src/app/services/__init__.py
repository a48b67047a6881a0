from .unit_of_work import UnitOfWork
from .payment_gateway import PaymentGateway
from .event_publisher import EventPublisher

__all__ = [
    "UnitOfWork",
    "PaymentGateway",
    "EventPublisher",
]
