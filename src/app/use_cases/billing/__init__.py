"""Billing domain use cases"""
from .plan_catalog import PlanCatalog
from .subscription_state_machine import SubscriptionStateMachine
from .commission_resolver import CommissionResolver, ResolvedRate
from .payout_ledger import PayoutLedger, aggregate_payouts, platform_remainder
from .list_plans import ListPlans
from .list_rates import ListRates
from .resolve_commission import ResolveCommission
from .get_billing_view import GetBillingView
from .change_plan import ChangePlan
from .schedule_cancellation import ScheduleCancellation
from .handle_processor_event import HandleProcessorEvent
from .wait_for_plan_change import WaitForPlanChange
from .create_commission_snapshot import CreateCommissionSnapshot
from .record_payout import RecordPayout
from .finalize_placement_payouts import FinalizePlacementPayouts
from .transition_payout import TransitionPayout
from .list_payouts import ListPayouts
from .get_billing_stats import GetBillingStats
from .dtos import (
    PlanDTO,
    SubscriptionDTO,
    RateDTO,
    RateTableResponseDTO,
    ResolvedRateDTO,
    PayoutDTO,
    BillingStatsDTO,
    BillingViewDTO,
    ChangePlanCommandDTO,
    PlanChangeKind,
    PlanChangeResultDTO,
    ProcessorEventResultDTO,
    CreateSnapshotCommandDTO,
    SnapshotEntryDTO,
    CommissionSnapshotDTO,
    RecordPayoutCommandDTO,
    FinalizePayoutsResponseDTO,
    TransitionPayoutCommandDTO,
)

__all__ = [
    "PlanCatalog",
    "SubscriptionStateMachine",
    "CommissionResolver",
    "ResolvedRate",
    "PayoutLedger",
    "aggregate_payouts",
    "platform_remainder",
    "ListPlans",
    "ListRates",
    "ResolveCommission",
    "GetBillingView",
    "ChangePlan",
    "ScheduleCancellation",
    "HandleProcessorEvent",
    "WaitForPlanChange",
    "CreateCommissionSnapshot",
    "RecordPayout",
    "FinalizePlacementPayouts",
    "TransitionPayout",
    "ListPayouts",
    "GetBillingStats",
    "PlanDTO",
    "SubscriptionDTO",
    "RateDTO",
    "RateTableResponseDTO",
    "ResolvedRateDTO",
    "PayoutDTO",
    "BillingStatsDTO",
    "BillingViewDTO",
    "ChangePlanCommandDTO",
    "PlanChangeKind",
    "PlanChangeResultDTO",
    "ProcessorEventResultDTO",
    "CreateSnapshotCommandDTO",
    "SnapshotEntryDTO",
    "CommissionSnapshotDTO",
    "RecordPayoutCommandDTO",
    "FinalizePayoutsResponseDTO",
    "TransitionPayoutCommandDTO",
]
