from .plan_repository import PlanRepository
from .subscription_repository import SubscriptionRepository
from .processed_event_repository import ProcessedEventRepository
from .commission_snapshot_repository import CommissionSnapshotRepository
from .payout_repository import PayoutRepository

__all__ = [
    "PlanRepository",
    "SubscriptionRepository",
    "ProcessedEventRepository",
    "CommissionSnapshotRepository",
    "PayoutRepository",
]
