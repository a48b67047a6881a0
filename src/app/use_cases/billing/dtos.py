"""Data Transfer Objects for Billing Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from src.domain.commission import CommissionRole, CommissionTier
from src.domain.commission_snapshot import CommissionSnapshot
from src.domain.invoice import ProcessorInvoice
from src.domain.payout import Payout, PayoutStatus
from src.domain.plan import Plan, PlanFeatures
from src.domain.processor_event import EventOutcome
from src.domain.subscription import Subscription, SubscriptionStatus


class PlanDTO(BaseModel):
    """Catalog entry as shown to presentation layers"""

    id: str
    tier: str
    display_tier: str = Field(..., description="Tier label; 'Custom' for unknown tiers")
    name: str
    price_monthly: int = Field(..., description="Monthly price in minor currency units")
    currency: str
    is_free: bool
    features: PlanFeatures

    @classmethod
    def from_entity(cls, plan: Plan) -> "PlanDTO":
        return cls(
            id=plan.id,
            tier=plan.tier,
            display_tier=plan.display_tier(),
            name=plan.name,
            price_monthly=plan.price_monthly,
            currency=plan.currency,
            is_free=plan.is_free(),
            features=plan.feature_flags(),
        )


class SubscriptionDTO(BaseModel):
    id: Optional[str] = Field(default=None, description="None for the implicit free subscription")
    user_id: str
    plan_id: str
    status: SubscriptionStatus
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at: Optional[datetime] = None
    is_virtual: bool
    version: int

    class Config:
        json_schema_extra = {
            "example": {
                "id": "0b5c8a7e-3f2d-4c1a-9e8b-7d6c5b4a3f2e",
                "user_id": "user_123",
                "plan_id": "6f1c9a0e-8f1b-4d59-9d0b-3b8e6f1c9a0e",
                "status": "active",
                "current_period_start": "2024-01-01T00:00:00Z",
                "current_period_end": "2024-02-01T00:00:00Z",
                "cancel_at": None,
                "is_virtual": False,
                "version": 3,
            }
        }

    @classmethod
    def from_entity(cls, subscription: Subscription) -> "SubscriptionDTO":
        return cls(
            id=subscription.id,
            user_id=subscription.user_id,
            plan_id=subscription.plan_id,
            status=subscription.status,
            current_period_start=subscription.current_period_start,
            current_period_end=subscription.current_period_end,
            cancel_at=subscription.cancel_at,
            is_virtual=subscription.is_virtual(),
            version=subscription.version,
        )


class RateDTO(BaseModel):
    tier: CommissionTier
    role: CommissionRole
    percentage: int


class RateTableResponseDTO(BaseModel):
    """Every tier x role rate, ordered by tier rank"""

    rates: List[RateDTO]


class ResolvedRateDTO(BaseModel):
    user_id: str
    role: CommissionRole
    tier: CommissionTier
    percentage: int


class PayoutDTO(BaseModel):
    id: str
    recruiter_id: str
    placement_id: Optional[str] = None
    role: Optional[CommissionRole] = None
    amount: int = Field(..., description="Amount in minor currency units")
    currency: str
    status: PayoutStatus
    scheduled_at: Optional[datetime] = None
    processing_started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    failure_reason: Optional[str] = None
    retry_count: int = 0
    created_at: datetime

    @classmethod
    def from_entity(cls, payout: Payout) -> "PayoutDTO":
        return cls(
            id=payout.id,
            recruiter_id=payout.recruiter_id,
            placement_id=payout.placement_id,
            role=payout.role,
            amount=payout.amount,
            currency=payout.currency,
            status=payout.status,
            scheduled_at=payout.scheduled_at,
            processing_started_at=payout.processing_started_at,
            completed_at=payout.completed_at,
            failed_at=payout.failed_at,
            failure_reason=payout.failure_reason,
            retry_count=payout.retry_count,
            created_at=payout.created_at,
        )


class BillingStatsDTO(BaseModel):
    """
    Earnings aggregate of a recruiter, recomputed on every read

    Failed payouts are excluded from every figure.
    """

    year: int
    ytd_earnings: int = Field(0, description="Completed payouts earned this calendar year")
    lifetime_earnings: int = Field(0, description="All completed payouts")
    pending_total: int = Field(0, description="Payouts pending or processing")
    on_hold_total: int = Field(0, description="Payouts on hold")
    ytd_placements: int = 0
    lifetime_placements: int = 0


class BillingViewDTO(BaseModel):
    subscription: SubscriptionDTO
    current_plan: PlanDTO
    plans: List[PlanDTO]
    payouts: List[PayoutDTO]
    invoices: List[ProcessorInvoice]
    stats: BillingStatsDTO
    degraded: List[str] = Field(
        default_factory=list,
        description="Sections rendered empty because a collaborator was unavailable"
    )


class ChangePlanCommandDTO(BaseModel):
    user_id: str = Field(..., min_length=1)
    plan_id: str = Field(..., min_length=1)
    success_url: Optional[str] = None
    cancel_url: Optional[str] = None


class PlanChangeKind(str, Enum):
    CONFIRMED = "confirmed"  # free plan applied immediately
    REDIRECT = "redirect"    # paid plan, user must complete checkout
    SCHEDULED = "scheduled"  # downgrade at the end of the paid period


class PlanChangeResultDTO(BaseModel):
    kind: PlanChangeKind
    plan_id: str
    subscription: Optional[SubscriptionDTO] = None
    checkout_url: Optional[str] = None
    cancel_at: Optional[datetime] = None

    class Config:
        json_schema_extra = {
            "example": {
                "kind": "redirect",
                "plan_id": "6f1c9a0e-8f1b-4d59-9d0b-3b8e6f1c9a0e",
                "subscription": None,
                "checkout_url": "https://checkout.stripe.com/c/pay/cs_test_123",
                "cancel_at": None,
            }
        }


class ProcessorEventResultDTO(BaseModel):
    event_id: str
    outcome: EventOutcome
    subscription: Optional[SubscriptionDTO] = None


class CreateSnapshotCommandDTO(BaseModel):
    """
    Command DTO for locking commission rates at hire time

    roles maps each participating role to the recruiter holding it.
    """

    placement_id: str = Field(..., min_length=1)
    total_placement_fee: int = Field(..., gt=0, description="Placement fee in minor units")
    currency: str = Field(default="usd", min_length=3, max_length=3)
    hired_at: Optional[datetime] = None
    roles: Dict[CommissionRole, str] = Field(..., min_length=1)

    class Config:
        json_schema_extra = {
            "example": {
                "placement_id": "placement_456",
                "total_placement_fee": 2400000,
                "currency": "usd",
                "roles": {
                    "candidate_recruiter": "user_123",
                    "job_owner": "user_456",
                },
            }
        }


class SnapshotEntryDTO(BaseModel):
    role: CommissionRole
    recruiter_id: str
    rate: int
    tier: CommissionTier


class CommissionSnapshotDTO(BaseModel):
    id: str
    placement_id: str
    total_placement_fee: int
    currency: str
    hired_at: datetime
    entries: List[SnapshotEntryDTO]
    created_at: datetime

    @classmethod
    def from_entity(cls, snapshot: CommissionSnapshot) -> "CommissionSnapshotDTO":
        return cls(
            id=snapshot.id,
            placement_id=snapshot.placement_id,
            total_placement_fee=snapshot.total_placement_fee,
            currency=snapshot.currency,
            hired_at=snapshot.hired_at,
            entries=[SnapshotEntryDTO(**entry._asdict()) for entry in snapshot.entries()],
            created_at=snapshot.created_at,
        )


class RecordPayoutCommandDTO(BaseModel):
    placement_id: str = Field(..., min_length=1)
    role: CommissionRole
    amount: Optional[int] = Field(
        default=None,
        gt=0,
        description="Amount in minor units (defaults to fee x snapshot rate)"
    )
    scheduled_at: Optional[datetime] = None


class FinalizePayoutsResponseDTO(BaseModel):
    placement_id: str
    created: List[PayoutDTO]
    skipped_roles: List[CommissionRole]
    platform_remainder: int = Field(..., description="Fee share kept by the platform (minor units)")


class TransitionPayoutCommandDTO(BaseModel):
    payout_id: str = Field(..., min_length=1)
    status: PayoutStatus
    reason: Optional[str] = None
