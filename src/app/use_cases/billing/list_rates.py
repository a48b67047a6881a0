"""ListRates Use Case

Exposes the static commission rate table for display.
"""

from libs.result import Result, Return
from src.domain.commission import rate_rows
from .dtos import RateDTO, RateTableResponseDTO


class ListRates:
    """Use Case: Every tier x role commission rate"""

    async def execute(self) -> Result[RateTableResponseDTO]:
        rates = [
            RateDTO(tier=tier, role=role, percentage=percentage)
            for tier, role, percentage in rate_rows()
        ]
        return Return.ok(RateTableResponseDTO(rates=rates))
