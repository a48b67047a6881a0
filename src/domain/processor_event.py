"""Payment Processor Events

ProcessorEvent is the processor-neutral shape of an asynchronous
notification; ProcessedEvent records which notifications were handled so
that redelivery is a no-op.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from pydantic import BaseModel as PydanticBaseModel, ConfigDict, field_validator
from sqlmodel import Field, Column, Index
from sqlalchemy import String
from src.domain.base import BaseModel, generate_uuid
from src.domain.subscription import SubscriptionStatus


class ProcessorEventType(str, Enum):
    """Notifications the subscription state machine reacts to"""
    CHECKOUT_COMPLETED = "checkout.completed"
    SUBSCRIPTION_UPDATED = "subscription.updated"
    SUBSCRIPTION_DELETED = "subscription.deleted"


class EventOutcome(str, Enum):
    APPLIED = "applied"
    NO_OP = "no_op"        # fields already identical
    STALE = "stale"        # older than the last applied event
    DUPLICATE = "duplicate"  # event id seen before (never stored)


class ProcessorEvent(PydanticBaseModel):
    """
    Processor notification translated by the payment gateway adapter

    user_id/plan_id come from checkout metadata; subscription updates
    may only carry the processor subscription id and price id.
    """

    model_config = ConfigDict(frozen=True)

    event_id: str
    event_type: ProcessorEventType
    occurred_at: datetime
    user_id: Optional[str] = None
    plan_id: Optional[str] = None
    processor_price_id: Optional[str] = None
    processor_subscription_id: Optional[str] = None
    processor_customer_id: Optional[str] = None
    status: Optional[SubscriptionStatus] = None
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at: Optional[datetime] = None

    @field_validator(
        "occurred_at", "current_period_start", "current_period_end", "cancel_at"
    )
    @classmethod
    def naive_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Stored timestamps are naive UTC; normalise aware values to match"""
        if v is not None and v.tzinfo is not None:
            return v.astimezone(timezone.utc).replace(tzinfo=None)
        return v


class ProcessedEvent(BaseModel, table=True):
    """
    Processed Event - idempotency record of a handled processor notification

    Domain Rules:
    - event_id is unique (the processor's idempotency token)
    - Records are append-only
    """

    __tablename__ = "processed_events"
    __table_args__ = (
        Index('ix_processed_events_event_id', 'event_id', unique=True),
    )

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
        description="Unique record identifier"
    )

    event_id: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Processor event id"
    )

    event_type: str = Field(
        sa_column=Column(String(64), nullable=False),
        description="Processor event type"
    )

    user_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Affected user, when known"
    )

    outcome: EventOutcome = Field(
        description="What handling the event did"
    )

    occurred_at: datetime = Field(
        description="When the processor emitted the event"
    )

    processed_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event was handled"
    )
