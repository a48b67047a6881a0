"""Subscription Domain Entity

Tracks a recruiter's current plan and billing status with the payment
processor.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import ForeignKey, Integer, String
from src.domain.base import BaseModel, generate_uuid


class SubscriptionStatus(str, Enum):
    """Subscription status types (mirrors the payment processor)"""
    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    INCOMPLETE = "incomplete"
    INCOMPLETE_EXPIRED = "incomplete_expired"
    UNPAID = "unpaid"


# A row in one of these states is history; the user is back on the free plan
ENDED_STATUSES = frozenset({
    SubscriptionStatus.CANCELED,
    SubscriptionStatus.INCOMPLETE_EXPIRED,
})


class Subscription(BaseModel, table=True):
    """
    Subscription - a user's billing relationship

    Domain Rules:
    - One row per user (user_id is unique); rows are never deleted
    - No row at all means an implicit free plan with status active; such
      a virtual subscription has id None and is never persisted as is
    - Status changes driven by the processor are applied only when the
      event is not older than last_event_at
    - version increases on every mutation (optimistic concurrency token)
    - cancel_at never changes status by itself
    """

    __tablename__ = "subscriptions"
    __table_args__ = (
        Index('ix_subscriptions_user_id', 'user_id', unique=True),
        Index('ix_subscriptions_status', 'status'),
        Index('ix_subscriptions_processor_subscription_id', 'processor_subscription_id'),
    )

    id: Optional[str] = Field(
        default_factory=generate_uuid,
        primary_key=True,
        description="Unique subscription identifier (None for a virtual subscription)"
    )

    user_id: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Owning user"
    )

    plan_id: str = Field(
        sa_column=Column(String(36), ForeignKey("plans.id"), nullable=False),
        description="Foreign key to Plan"
    )

    status: SubscriptionStatus = Field(
        default=SubscriptionStatus.ACTIVE,
        description="Lifecycle status"
    )

    current_period_start: Optional[datetime] = Field(
        default=None,
        description="Current billing period start"
    )

    current_period_end: Optional[datetime] = Field(
        default=None,
        description="Current billing period end"
    )

    cancel_at: Optional[datetime] = Field(
        default=None,
        description="Scheduled cancellation timestamp"
    )

    processor_subscription_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Payment processor subscription reference"
    )

    processor_customer_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Payment processor customer reference"
    )

    last_event_at: Optional[datetime] = Field(
        default=None,
        description="Occurrence time of the newest applied processor event"
    )

    version: int = Field(
        default=1,
        sa_column=Column(Integer, nullable=False, default=1),
        description="Incremented on every mutation"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Subscription creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last update timestamp"
    )

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": "0b5c8a7e-3f2d-4c1a-9e8b-7d6c5b4a3f2e",
                "user_id": "user_123",
                "plan_id": "6f1c9a0e-8f1b-4d59-9d0b-3b8e6f1c9a0e",
                "status": "active",
                "current_period_start": "2024-01-01T00:00:00Z",
                "current_period_end": "2024-02-01T00:00:00Z",
                "cancel_at": None,
                "processor_subscription_id": "sub_123",
                "processor_customer_id": "cus_123",
                "version": 3,
            }
        }

    @classmethod
    def virtual(cls, user_id: str, free_plan_id: str) -> "Subscription":
        """The implicit free subscription of a user without a row"""
        now = datetime.utcnow()
        return cls(
            id=None,
            user_id=user_id,
            plan_id=free_plan_id,
            status=SubscriptionStatus.ACTIVE,
            version=0,
            created_at=now,
            updated_at=now,
        )

    def is_virtual(self) -> bool:
        return self.id is None

    def is_ended(self) -> bool:
        return self.status in ENDED_STATUSES

    def has_processor_subscription(self) -> bool:
        return self.processor_subscription_id is not None

    def touch(self) -> None:
        self.version = (self.version or 0) + 1
        self.updated_at = datetime.utcnow()
