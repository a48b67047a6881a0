from typing import Optional
from fastapi import Header
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.event_publisher import create_event_publisher
from src.adapter.services.stripe_gateway import StripePaymentGateway
from src.app.services.event_publisher import EventPublisher
from src.app.services.payment_gateway import PaymentGateway

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


def get_payment_gateway() -> Optional[PaymentGateway]:
    """Stripe gateway, or None when no secret key is configured"""
    if not ApplicationConfig.STRIPE_SECRET_KEY:
        return None
    return StripePaymentGateway(
        ApplicationConfig.STRIPE_SECRET_KEY,
        timeout=ApplicationConfig.PROCESSOR_TIMEOUT_SECONDS,
    )


def get_event_publisher() -> EventPublisher:
    return create_event_publisher(ApplicationConfig.EVENT_WEBHOOK_URL)


async def get_current_user_id(x_user_id: str = Header(..., min_length=1)) -> str:
    """Identity forwarded by the authenticating gateway in front of this service"""
    return x_user_id
