"""GetBillingStats Use Case"""

from typing import Optional
from libs.result import Result, Return, Error
from src.domain.errors import BillingError
from .dtos import BillingStatsDTO
from .payout_ledger import PayoutLedger


class GetBillingStats:
    """
    Use Case: Earnings totals of a recruiter

    Recomputed from the payout ledger on every call; failed payouts are
    excluded and YTD uses the calendar year of completion.
    """

    def __init__(self, ledger: PayoutLedger):
        self.ledger = ledger

    async def execute(self, user_id: str, year: Optional[int] = None) -> Result[BillingStatsDTO]:
        try:
            return Return.ok(await self.ledger.aggregate(user_id, year=year))

        except BillingError as e:
            return Return.err(e.to_error())
        except Exception as e:
            return Return.err(
                Error(
                    code="BILLING_STATS_FAILED",
                    message="Failed to compute billing stats",
                    reason=str(e),
                )
            )
