"""
Payout Service Event Models

Pydantic models for events published by payout service.
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime, timezone
from decimal import Decimal


class PayoutRecordedEvent(BaseModel):
    """Event published when a payout is recorded for a seller"""
    seller_id: str
    payout_id: str
    amount: Decimal
    currency: str = "INR"
    external_reference: Optional[str] = None
    pending_amount: Decimal
    message: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
