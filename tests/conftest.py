"""Shared fixtures for unit tests"""

import pytest
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

from src.domain.commission import CommissionRole, CommissionTier
from src.domain.commission_snapshot import CommissionSnapshot
from src.domain.payout import Payout, PayoutStatus
from src.domain.plan import Plan
from src.domain.subscription import Subscription, SubscriptionStatus


@pytest.fixture
def mock_uow():
    """Mock unit of work"""
    uow = MagicMock()
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    return uow


@pytest.fixture
def mock_publisher():
    """Mock event publisher that always delivers"""
    publisher = MagicMock()
    publisher.publish = AsyncMock(return_value=True)
    return publisher


@pytest.fixture
def free_plan():
    return Plan(
        id="plan_free",
        tier="free",
        name="Free",
        price_monthly=0,
        features={"applications_per_month": 10},
        created_at=datetime(2024, 1, 1),
    )


@pytest.fixture
def pro_plan():
    return Plan(
        id="plan_pro",
        tier="pro",
        name="Pro",
        price_monthly=9900,
        features={"applications_per_month": 100, "ai_matching": True},
        processor_price_id="price_pro",
    )


@pytest.fixture
def partner_plan():
    return Plan(
        id="plan_partner",
        tier="partner",
        name="Partner",
        price_monthly=29900,
        features={"applications_per_month": -1, "ai_matching": True, "api_access": True},
        processor_price_id="price_partner",
    )


@pytest.fixture
def plans_by_id(free_plan, pro_plan, partner_plan):
    return {plan.id: plan for plan in (free_plan, pro_plan, partner_plan)}


@pytest.fixture
def mock_plan_repo(free_plan, plans_by_id):
    """Plan repository backed by the free/pro/partner fixtures"""
    repo = MagicMock()
    repo.list_active = AsyncMock(return_value=list(plans_by_id.values()))
    repo.get_by_id = AsyncMock(side_effect=lambda plan_id: plans_by_id.get(plan_id))
    repo.get_by_processor_price_id = AsyncMock(
        side_effect=lambda price_id: next(
            (p for p in plans_by_id.values() if p.processor_price_id == price_id), None
        )
    )
    repo.get_free_plan = AsyncMock(return_value=free_plan)
    return repo


@pytest.fixture
def mock_subscription_repo():
    """Subscription repository with no rows"""
    repo = MagicMock()
    repo.get_by_user_id = AsyncMock(return_value=None)
    repo.get_by_processor_subscription_id = AsyncMock(return_value=None)
    repo.get_version = AsyncMock(return_value=0)
    repo.create = AsyncMock(side_effect=lambda subscription: subscription)
    repo.update = AsyncMock(side_effect=lambda subscription: subscription)
    return repo


@pytest.fixture
def pro_subscription():
    """Paid, processor-backed subscription of user_123"""
    return Subscription(
        id="sub_1",
        user_id="user_123",
        plan_id="plan_pro",
        status=SubscriptionStatus.ACTIVE,
        current_period_start=datetime(2024, 3, 1),
        current_period_end=datetime(2024, 4, 1),
        processor_subscription_id="sub_stripe_1",
        processor_customer_id="cus_1",
        last_event_at=datetime(2024, 3, 1),
        version=3,
    )


@pytest.fixture
def placement_snapshot():
    """Snapshot of placement_1: user_123 on pro recruits, user_456 on free owns the job"""
    snapshot = CommissionSnapshot(
        id="snap_1",
        placement_id="placement_1",
        total_placement_fee=2_400_000,
        currency="usd",
        hired_at=datetime(2024, 3, 1),
        created_at=datetime(2024, 3, 1),
    )
    snapshot.set_entry(CommissionRole.CANDIDATE_RECRUITER, "user_123", 30, CommissionTier.PRO)
    snapshot.set_entry(CommissionRole.JOB_OWNER, "user_456", 10, CommissionTier.FREE)
    return snapshot


@pytest.fixture
def mock_payout_repo():
    """Payout repository with an empty ledger"""
    repo = MagicMock()
    repo.get_by_id = AsyncMock(return_value=None)
    repo.get_by_placement_and_role = AsyncMock(return_value=None)
    repo.list_by_placement = AsyncMock(return_value=[])
    repo.list_by_recruiter = AsyncMock(return_value=[])
    repo.create = AsyncMock(side_effect=lambda payout: payout)
    repo.update = AsyncMock(side_effect=lambda payout: payout)
    return repo


@pytest.fixture
def make_payout():
    """Factory for payouts of user_123"""

    def _make(status=PayoutStatus.PENDING, amount=1000, placement_id="placement_1", **kwargs):
        return Payout(
            id=kwargs.pop("id", f"payout_{placement_id}_{status.value}"),
            recruiter_id=kwargs.pop("recruiter_id", "user_123"),
            placement_id=placement_id,
            role=kwargs.pop("role", CommissionRole.CANDIDATE_RECRUITER),
            amount=amount,
            status=status,
            created_at=kwargs.pop("created_at", datetime.utcnow()),
            **kwargs,
        )

    return _make
