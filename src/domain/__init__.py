from .base import BaseModel, generate_uuid
from .commission import (
    CommissionTier,
    CommissionRole,
    RATE_TABLE,
    TIER_ORDER,
    commission_amount,
    rate_for,
)
from .plan import Plan, PlanFeatures, UNLIMITED
from .subscription import Subscription, SubscriptionStatus, ENDED_STATUSES
from .processor_event import ProcessorEvent, ProcessorEventType, ProcessedEvent, EventOutcome
from .commission_snapshot import CommissionSnapshot, SnapshotEntry
from .payout import Payout, PayoutStatus, PAYOUT_TRANSITIONS
from .invoice import ProcessorInvoice

__all__ = [
    "BaseModel",
    "generate_uuid",
    "CommissionTier",
    "CommissionRole",
    "RATE_TABLE",
    "TIER_ORDER",
    "rate_for",
    "commission_amount",
    "Plan",
    "PlanFeatures",
    "UNLIMITED",
    "Subscription",
    "SubscriptionStatus",
    "ENDED_STATUSES",
    "ProcessorEvent",
    "ProcessorEventType",
    "ProcessedEvent",
    "EventOutcome",
    "CommissionSnapshot",
    "SnapshotEntry",
    "Payout",
    "PayoutStatus",
    "PAYOUT_TRANSITIONS",
    "ProcessorInvoice",
]
