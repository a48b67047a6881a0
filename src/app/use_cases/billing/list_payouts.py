"""ListPayouts Use Case"""

from typing import List, Optional
from libs.result import Result, Return, Error
from src.domain.errors import BillingError
from .dtos import PayoutDTO
from .payout_ledger import PayoutLedger


class ListPayouts:
    """Use Case: Payouts of a recruiter, newest first"""

    def __init__(self, ledger: PayoutLedger):
        self.ledger = ledger

    async def execute(
        self, user_id: str, limit: Optional[int] = None, offset: int = 0
    ) -> Result[List[PayoutDTO]]:
        try:
            payouts = await self.ledger.list_for_user(user_id, limit=limit, offset=offset)
            return Return.ok([PayoutDTO.from_entity(payout) for payout in payouts])

        except BillingError as e:
            return Return.err(e.to_error())
        except Exception as e:
            return Return.err(
                Error(
                    code="LIST_PAYOUTS_FAILED",
                    message="Failed to list payouts",
                    reason=str(e),
                )
            )
