"""Plan Domain Entity

A purchasable plan of the recruiter marketplace. Plans are created and
retired by an administrative process; this service only reads them.
"""

from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel as PydanticBaseModel, ConfigDict, Field as PydanticField
from pydantic import ValidationError as PydanticValidationError
from sqlmodel import Field, Column, Index
from sqlalchemy import CheckConstraint, Integer, JSON, String
from src.domain.base import BaseModel, generate_uuid
from src.domain.commission import CommissionTier
from src.domain.errors import MalformedPlanError

UNLIMITED = -1
FEATURES_VERSION = 1


class PlanFeatures(PydanticBaseModel):
    """
    Closed, versioned feature-flag set of a plan

    Absent boolean flags mean the feature is disabled. The monthly
    application limit is mandatory; UNLIMITED (-1) means no limit.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    version: int = PydanticField(default=FEATURES_VERSION, ge=1, le=FEATURES_VERSION)
    applications_per_month: int = PydanticField(..., ge=UNLIMITED)
    ai_matching: bool = False
    marketplace_listing: bool = False
    priority_support: bool = False
    advanced_analytics: bool = False
    team_collaboration: bool = False
    api_access: bool = False

    @property
    def unlimited_applications(self) -> bool:
        return self.applications_per_month == UNLIMITED

    @classmethod
    def decode(cls, raw: Optional[Dict[str, Any]], plan_id: Optional[str] = None) -> "PlanFeatures":
        """
        Decode the stored feature dictionary of a plan

        Raises:
            MalformedPlanError: unknown key, missing limit or wrong type
        """
        try:
            return cls.model_validate(raw or {})
        except PydanticValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'features'}: {err['msg']}"
                for err in e.errors()
            )
            raise MalformedPlanError(
                f"Plan {plan_id} has malformed features",
                reason=problems,
            )


class Plan(BaseModel, table=True):
    """
    Plan - purchasable recruiter plan

    Domain Rules:
    - tier is stored as a free-form slug so future tiers still load
    - price_monthly is in minor currency units and never negative
    - features decode into PlanFeatures (see PlanFeatures.decode)
    - Price 0 plans are selected without checkout
    """

    __tablename__ = "plans"
    __table_args__ = (
        CheckConstraint('price_monthly >= 0', name='price_non_negative'),
        Index('ix_plans_tier', 'tier'),
        Index('ix_plans_processor_price_id', 'processor_price_id'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
        description="Unique plan identifier"
    )

    tier: str = Field(
        sa_column=Column(String(32), nullable=False),
        description="Tier slug (free, pro, partner; unknown slugs tolerated)"
    )

    name: str = Field(
        sa_column=Column(String(100), nullable=False),
        description="Display name of the plan"
    )

    price_monthly: int = Field(
        sa_column=Column(Integer, nullable=False, default=0),
        description="Monthly price in minor currency units"
    )

    currency: str = Field(
        default="usd",
        sa_column=Column(String(3), nullable=False),
        description="Currency code (ISO 4217, lowercase)"
    )

    features: Dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
        description="Raw feature flags, decoded through PlanFeatures"
    )

    processor_product_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Payment processor product reference"
    )

    processor_price_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Payment processor price reference"
    )

    is_active: bool = Field(
        default=True,
        description="Inactive plans are hidden from the catalog"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Plan creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last update timestamp"
    )

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": "6f1c9a0e-8f1b-4d59-9d0b-3b8e6f1c9a0e",
                "tier": "pro",
                "name": "Pro",
                "price_monthly": 9900,
                "currency": "usd",
                "features": {"applications_per_month": 100, "ai_matching": True},
                "processor_product_id": "prod_Pro",
                "processor_price_id": "price_Pro",
                "is_active": True,
            }
        }

    def is_free(self) -> bool:
        return self.price_monthly == 0

    def feature_flags(self) -> PlanFeatures:
        return PlanFeatures.decode(self.features, plan_id=self.id)

    def commission_tier(self) -> CommissionTier:
        """Raises InvalidTierError for an unrecognised tier slug"""
        return CommissionTier.parse(self.tier)

    def known_tier(self) -> Optional[CommissionTier]:
        try:
            return CommissionTier(self.tier)
        except ValueError:
            return None

    def display_tier(self) -> str:
        tier = self.known_tier()
        return tier.value.title() if tier else "Custom"
