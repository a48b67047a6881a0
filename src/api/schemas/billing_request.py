"""Request schemas for Billing API

Pydantic models for validating incoming HTTP requests.
"""

from datetime import datetime
from typing import Dict, Optional
from pydantic import BaseModel, Field, field_validator
from src.domain.commission import CommissionRole
from src.domain.payout import PayoutStatus


class ChangePlanRequestSchema(BaseModel):
    """
    Request schema for selecting a plan

    Used for POST /billing/plan endpoint.
    """

    plan_id: str = Field(
        ...,
        min_length=1,
        description="Catalog plan to switch to"
    )

    success_url: Optional[str] = Field(
        default=None,
        description="Where checkout returns after payment (defaults to configured URL)"
    )

    cancel_url: Optional[str] = Field(
        default=None,
        description="Where checkout returns if abandoned (defaults to configured URL)"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "plan_id": "6f1c9a0e-8f1b-4d59-9d0b-3b8e6f1c9a0e",
            }
        }


class CreateSnapshotRequestSchema(BaseModel):
    """
    Request schema for locking commission rates at hire time

    Used for POST /billing/placements/{placement_id}/snapshot endpoint.
    """

    total_placement_fee: int = Field(
        ...,
        gt=0,
        description="Total placement fee in minor currency units (must be > 0)"
    )

    currency: Optional[str] = Field(
        default=None,
        min_length=3,
        max_length=3,
        description="ISO 4217 currency code (defaults to the billing currency)"
    )

    hired_at: Optional[datetime] = Field(
        default=None,
        description="When the candidate was hired (defaults to now)"
    )

    roles: Dict[CommissionRole, str] = Field(
        ...,
        description="Recruiter holding each participating role"
    )

    @field_validator('roles')
    @classmethod
    def validate_roles(cls, v: Dict[CommissionRole, str]) -> Dict[CommissionRole, str]:
        """At least one role, and no blank recruiter ids"""
        if not v:
            raise ValueError("at least one role must be assigned")
        for role, recruiter_id in v.items():
            if not recruiter_id or not recruiter_id.strip():
                raise ValueError(f"recruiter id for {role.value} must not be empty")
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "total_placement_fee": 2400000,
                "currency": "usd",
                "roles": {
                    "candidate_recruiter": "user_123",
                    "job_owner": "user_456",
                },
            }
        }


class FinalizePayoutsRequestSchema(BaseModel):
    scheduled_at: Optional[datetime] = Field(
        default=None,
        description="When the payouts are due to be paid"
    )


class RecordPayoutRequestSchema(BaseModel):
    amount: Optional[int] = Field(
        default=None,
        gt=0,
        description="Override amount in minor units (defaults to fee x snapshot rate)"
    )

    scheduled_at: Optional[datetime] = None


class TransitionPayoutRequestSchema(BaseModel):
    """
    Request schema for changing payout status

    Used for POST /billing/payouts/{payout_id}/status endpoint.
    """

    status: PayoutStatus = Field(
        ...,
        description="Target status"
    )

    reason: Optional[str] = Field(
        default=None,
        max_length=1000,
        description="Failure or hold reason"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "status": "failed",
                "reason": "Bank account closed",
            }
        }
