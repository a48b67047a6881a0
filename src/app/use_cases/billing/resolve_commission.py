"""ResolveCommission Use Case"""

from libs.result import Result, Return, Error
from src.domain.errors import BillingError
from .commission_resolver import CommissionResolver
from .dtos import ResolvedRateDTO


class ResolveCommission:
    """
    Use Case: The rate a user would earn in a role right now

    Display only; the value is not locked. Placements lock rates through
    CreateCommissionSnapshot.
    """

    def __init__(self, resolver: CommissionResolver):
        self.resolver = resolver

    async def execute(self, user_id: str, role: str) -> Result[ResolvedRateDTO]:
        try:
            rate = await self.resolver.resolve(user_id, role)
            return Return.ok(
                ResolvedRateDTO(
                    user_id=rate.user_id,
                    role=rate.role,
                    tier=rate.tier,
                    percentage=rate.percentage,
                )
            )

        except BillingError as e:
            return Return.err(e.to_error())
        except Exception as e:
            return Return.err(
                Error(
                    code="RESOLVE_COMMISSION_FAILED",
                    message="Failed to resolve commission rate",
                    reason=str(e),
                )
            )
