"""Commission Rate Table

Static mapping from plan tier to per-role commission percentage of the
placement fee. The table is the single source of commission rates; it is
only read when a commission is resolved at hire time.
"""

from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Dict, List, Tuple, Union
from src.domain.errors import InvalidRoleError, InvalidTierError


class CommissionTier(str, Enum):
    """Commission plan tiers, declared in ascending rank"""
    FREE = "free"
    PRO = "pro"
    PARTNER = "partner"

    @property
    def rank(self) -> int:
        return TIER_ORDER.index(self)

    @classmethod
    def parse(cls, value: Union[str, "CommissionTier"]) -> "CommissionTier":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidTierError(
                f"Unknown commission tier: {value!r}",
                reason=f"expected one of {[t.value for t in TIER_ORDER]}",
            )


class CommissionRole(str, Enum):
    """Participants of a placement whose earnings depend on their tier"""
    CANDIDATE_RECRUITER = "candidate_recruiter"  # represents the candidate
    JOB_OWNER = "job_owner"                      # owns the job posting
    COMPANY_RECRUITER = "company_recruiter"      # represents the company
    SOURCER = "sourcer"                          # sourcing bonus

    @classmethod
    def parse(cls, value: Union[str, "CommissionRole"]) -> "CommissionRole":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidRoleError(
                f"Unknown commission role: {value!r}",
                reason=f"expected one of {[r.value for r in CommissionRole]}",
            )


TIER_ORDER: Tuple[CommissionTier, ...] = (
    CommissionTier.FREE,
    CommissionTier.PRO,
    CommissionTier.PARTNER,
)

# Percentages of the total placement fee
RATE_TABLE: Dict[CommissionTier, Dict[CommissionRole, int]] = {
    CommissionTier.FREE: {
        CommissionRole.CANDIDATE_RECRUITER: 20,
        CommissionRole.JOB_OWNER: 10,
        CommissionRole.COMPANY_RECRUITER: 10,
        CommissionRole.SOURCER: 5,
    },
    CommissionTier.PRO: {
        CommissionRole.CANDIDATE_RECRUITER: 30,
        CommissionRole.JOB_OWNER: 15,
        CommissionRole.COMPANY_RECRUITER: 15,
        CommissionRole.SOURCER: 8,
    },
    CommissionTier.PARTNER: {
        CommissionRole.CANDIDATE_RECRUITER: 40,
        CommissionRole.JOB_OWNER: 20,
        CommissionRole.COMPANY_RECRUITER: 20,
        CommissionRole.SOURCER: 10,
    },
}


def rate_for(
    tier: Union[str, CommissionTier], role: Union[str, CommissionRole]
) -> int:
    """
    Look up the commission percentage for a tier and role

    Raises:
        InvalidTierError: tier is not a known commission tier
        InvalidRoleError: role is not a known commission role
    """
    return RATE_TABLE[CommissionTier.parse(tier)][CommissionRole.parse(role)]


def rate_rows() -> List[Tuple[CommissionTier, CommissionRole, int]]:
    """All (tier, role, rate) entries in tier rank order"""
    return [
        (tier, role, RATE_TABLE[tier][role])
        for tier in TIER_ORDER
        for role in CommissionRole
    ]


def commission_amount(total_fee: int, rate: int) -> int:
    """Share of a fee (minor units) at a percentage, rounded half up"""
    share = Decimal(total_fee) * Decimal(rate) / Decimal(100)
    return int(share.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
