"""Processor Invoice

Read-only mirror of the payment processor's billing documents. Never
persisted or mutated locally; only displayed.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict


class ProcessorInvoice(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    number: Optional[str] = None
    status: str
    amount_due: int
    amount_paid: int
    currency: str
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None
    hosted_invoice_url: Optional[str] = None
    created_at: datetime
