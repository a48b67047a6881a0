from .plan_repository import SqlAlchemyPlanRepository
from .subscription_repository import SqlAlchemySubscriptionRepository
from .processed_event_repository import SqlAlchemyProcessedEventRepository
from .commission_snapshot_repository import SqlAlchemyCommissionSnapshotRepository
from .payout_repository import SqlAlchemyPayoutRepository

__all__ = [
    "SqlAlchemyPlanRepository",
    "SqlAlchemySubscriptionRepository",
    "SqlAlchemyProcessedEventRepository",
    "SqlAlchemyCommissionSnapshotRepository",
    "SqlAlchemyPayoutRepository",
]
