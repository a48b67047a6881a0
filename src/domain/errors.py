"""Billing domain errors

Every error carries a stable ``code`` so use cases can turn it into a
``libs.result.Error`` and the API can map it to a status code by category.
"""

from typing import Optional
from libs.result import Error


class BillingError(Exception):
    """Base class for all billing domain errors"""

    code = "BILLING_ERROR"
    category = "BILLING_ERROR"

    def __init__(self, message: str, reason: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.reason = reason

    def to_error(self) -> Error:
        return Error(code=self.code, message=self.message, reason=self.reason)


# Validation: reject before any mutation

class ValidationError(BillingError):
    code = "VALIDATION_ERROR"
    category = "VALIDATION_ERROR"


class InvalidTierError(ValidationError):
    code = "INVALID_TIER"


class InvalidRoleError(ValidationError):
    code = "INVALID_ROLE"


class MalformedPlanError(ValidationError):
    code = "MALFORMED_PLAN"


class InvalidPlanChangeError(ValidationError):
    code = "INVALID_PLAN_CHANGE"


class InvalidWebhookError(ValidationError):
    code = "INVALID_WEBHOOK"


class InvalidPayoutAmountError(ValidationError):
    code = "INVALID_PAYOUT_AMOUNT"


# Conflict: caller must retry or give up

class ConflictError(BillingError):
    code = "CONFLICT"
    category = "CONFLICT"


class DuplicatePayoutError(ConflictError):
    code = "DUPLICATE_PAYOUT"


class DuplicateEventError(ConflictError):
    code = "DUPLICATE_EVENT"


class StaleEventError(ConflictError):
    code = "STALE_EVENT"


class ConcurrentPlanChangeError(ConflictError):
    code = "CONCURRENT_PLAN_CHANGE"


class InvalidPayoutTransitionError(ConflictError):
    code = "INVALID_PAYOUT_TRANSITION"


class PlanChangeTimeoutError(ConflictError):
    code = "PLAN_CHANGE_TIMEOUT"


# Upstream: payment processor or another collaborator is unreachable

class UpstreamUnavailable(BillingError):
    code = "UPSTREAM_UNAVAILABLE"
    category = "UPSTREAM_UNAVAILABLE"


class CheckoutUnavailable(UpstreamUnavailable):
    code = "CHECKOUT_UNAVAILABLE"


# Not found

class NotFoundError(BillingError):
    code = "NOT_FOUND"
    category = "NOT_FOUND"


class PlanNotFoundError(NotFoundError):
    code = "PLAN_NOT_FOUND"


class SubscriptionNotFoundError(NotFoundError):
    code = "SUBSCRIPTION_NOT_FOUND"


class PayoutNotFoundError(NotFoundError):
    code = "PAYOUT_NOT_FOUND"


class SnapshotNotFoundError(NotFoundError):
    code = "SNAPSHOT_NOT_FOUND"


def category_of(code: str) -> Optional[str]:
    """Return the category of a known error code, None if unknown"""
    return _CATEGORY_BY_CODE.get(code)


def _collect(cls, acc):
    for sub in cls.__subclasses__():
        acc[sub.code] = sub.category
        _collect(sub, acc)
    return acc


_CATEGORY_BY_CODE = _collect(BillingError, {})
