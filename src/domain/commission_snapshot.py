"""Commission Snapshot Domain Entity

The commission rates of every role in a placement, resolved at the moment
the candidate was hired. A snapshot is an append-only fact: a recruiter's
later plan never changes what they earn on an earlier placement.
"""

from datetime import datetime
from typing import List, NamedTuple, Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import CheckConstraint, Integer, String
from src.domain.base import BaseModel, generate_uuid
from src.domain.commission import CommissionRole, CommissionTier


class SnapshotEntry(NamedTuple):
    role: CommissionRole
    recruiter_id: str
    rate: int
    tier: CommissionTier


class CommissionSnapshot(BaseModel, table=True):
    """
    Commission Snapshot - immutable per-placement commission rates

    Domain Rules:
    - One snapshot per placement (placement_id is unique)
    - Never updated after insert and never recomputed
    - For each role either all of (recruiter_id, rate, tier) are set or none
    """

    __tablename__ = "commission_snapshots"
    __table_args__ = (
        Index('ix_commission_snapshots_placement_id', 'placement_id', unique=True),
        CheckConstraint('total_placement_fee > 0', name='placement_fee_positive'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
        description="Unique snapshot identifier"
    )

    placement_id: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Placement the snapshot belongs to"
    )

    total_placement_fee: int = Field(
        sa_column=Column(Integer, nullable=False),
        description="Total placement fee in minor currency units"
    )

    currency: str = Field(
        default="usd",
        sa_column=Column(String(3), nullable=False),
        description="Currency code (ISO 4217, lowercase)"
    )

    hired_at: datetime = Field(
        description="When the candidate was marked hired"
    )

    candidate_recruiter_id: Optional[str] = Field(default=None, max_length=255)
    candidate_recruiter_rate: Optional[int] = Field(default=None)
    candidate_recruiter_tier: Optional[CommissionTier] = Field(default=None)

    job_owner_id: Optional[str] = Field(default=None, max_length=255)
    job_owner_rate: Optional[int] = Field(default=None)
    job_owner_tier: Optional[CommissionTier] = Field(default=None)

    company_recruiter_id: Optional[str] = Field(default=None, max_length=255)
    company_recruiter_rate: Optional[int] = Field(default=None)
    company_recruiter_tier: Optional[CommissionTier] = Field(default=None)

    sourcer_id: Optional[str] = Field(default=None, max_length=255)
    sourcer_rate: Optional[int] = Field(default=None)
    sourcer_tier: Optional[CommissionTier] = Field(default=None)

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Snapshot creation timestamp (immutable)"
    )

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "placement_id": "placement_456",
                "total_placement_fee": 2400000,
                "currency": "usd",
                "hired_at": "2024-03-01T00:00:00Z",
                "candidate_recruiter_id": "user_123",
                "candidate_recruiter_rate": 30,
                "candidate_recruiter_tier": "pro",
                "job_owner_id": "user_456",
                "job_owner_rate": 10,
                "job_owner_tier": "free",
            }
        }

    def set_entry(
        self, role: CommissionRole, recruiter_id: str, rate: int, tier: CommissionTier
    ) -> None:
        prefix = _FIELD_PREFIX[role]
        setattr(self, f"{prefix}_id", recruiter_id)
        setattr(self, f"{prefix}_rate", rate)
        setattr(self, f"{prefix}_tier", tier)

    def entry(self, role: CommissionRole) -> Optional[SnapshotEntry]:
        prefix = _FIELD_PREFIX[role]
        recruiter_id = getattr(self, f"{prefix}_id")
        if recruiter_id is None:
            return None
        return SnapshotEntry(
            role=role,
            recruiter_id=recruiter_id,
            rate=getattr(self, f"{prefix}_rate"),
            tier=CommissionTier(getattr(self, f"{prefix}_tier")),
        )

    def entries(self) -> List[SnapshotEntry]:
        return [e for e in (self.entry(role) for role in CommissionRole) if e is not None]

    def total_rate(self) -> int:
        return sum(e.rate for e in self.entries())


_FIELD_PREFIX = {
    CommissionRole.CANDIDATE_RECRUITER: "candidate_recruiter",
    CommissionRole.JOB_OWNER: "job_owner",
    CommissionRole.COMPANY_RECRUITER: "company_recruiter",
    CommissionRole.SOURCER: "sourcer",
}
