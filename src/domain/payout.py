"""Payout Domain Entity

A single scheduled or completed commission disbursement to a recruiter.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, Text, UniqueConstraint
from src.domain.base import BaseModel, generate_uuid
from src.domain.commission import CommissionRole


class PayoutStatus(str, Enum):
    """Payout status types"""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    ON_HOLD = "on_hold"

    def can_transition_to(self, target: "PayoutStatus") -> bool:
        return target in PAYOUT_TRANSITIONS[self]

    def is_terminal(self) -> bool:
        return not PAYOUT_TRANSITIONS[self]


PAYOUT_TRANSITIONS = {
    PayoutStatus.PENDING: frozenset({PayoutStatus.PROCESSING, PayoutStatus.ON_HOLD}),
    PayoutStatus.PROCESSING: frozenset({
        PayoutStatus.COMPLETED, PayoutStatus.FAILED, PayoutStatus.ON_HOLD,
    }),
    PayoutStatus.FAILED: frozenset({PayoutStatus.PENDING, PayoutStatus.ON_HOLD}),
    PayoutStatus.ON_HOLD: frozenset({PayoutStatus.PENDING}),
    PayoutStatus.COMPLETED: frozenset(),
}


class Payout(BaseModel, table=True):
    """
    Payout - commission disbursement to a recruiter

    Domain Rules:
    - One payout per (placement_id, role) pair
    - amount is positive and never edited; corrections are new payouts
    - Status transitions: pending -> processing -> completed,
      processing -> failed, non-terminal -> on_hold,
      failed/on_hold -> pending (retry); completed is terminal
    """

    __tablename__ = "payouts"
    __table_args__ = (
        UniqueConstraint('placement_id', 'role', name='uq_payouts_placement_role'),
        CheckConstraint('amount > 0', name='payout_amount_positive'),
        Index('ix_payouts_recruiter_id', 'recruiter_id'),
        Index('ix_payouts_status', 'status'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
        description="Unique payout identifier"
    )

    recruiter_id: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Recruiter receiving the payout"
    )

    placement_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Placement the commission was earned on"
    )

    role: Optional[CommissionRole] = Field(
        default=None,
        description="Role the recruiter held in the placement"
    )

    snapshot_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(36), ForeignKey("commission_snapshots.id"), nullable=True),
        description="Commission snapshot the amount was derived from"
    )

    amount: int = Field(
        sa_column=Column(Integer, nullable=False),
        description="Amount in minor currency units (immutable)"
    )

    currency: str = Field(
        default="usd",
        sa_column=Column(String(3), nullable=False),
        description="Currency code (ISO 4217, lowercase)"
    )

    status: PayoutStatus = Field(
        default=PayoutStatus.PENDING,
        description="Payout status"
    )

    scheduled_at: Optional[datetime] = Field(default=None)
    processing_started_at: Optional[datetime] = Field(default=None)
    completed_at: Optional[datetime] = Field(default=None)
    failed_at: Optional[datetime] = Field(default=None)

    failure_reason: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
        description="Why the payout failed or was put on hold"
    )

    retry_count: int = Field(default=0)

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Payout creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last status change timestamp"
    )

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "recruiter_id": "user_123",
                "placement_id": "placement_456",
                "role": "candidate_recruiter",
                "amount": 720000,
                "currency": "usd",
                "status": "pending",
                "retry_count": 0,
            }
        }

    def earned_at(self) -> datetime:
        """Timestamp used to bucket the payout into a calendar year"""
        return self.completed_at or self.created_at
