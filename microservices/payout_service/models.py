"""
Payout Service Data Models

Payout records and the derived seller/platform summaries. Summaries are
recomputed from orders and payouts on every read and never persisted.
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum


class PayoutStatus(str, Enum):
    """Status of a recorded payout"""
    COMPLETED = "Completed"


class PayoutPaymentStatus(str, Enum):
    """Derived payout progress of a seller"""
    COMPLETED = "Completed"
    PARTIAL = "Partial"
    PENDING = "Pending"


class PayoutRecord(BaseModel):
    """Money paid out to a seller (immutable once created)"""
    payout_id: str
    seller_id: str
    amount: Decimal = Field(..., gt=0)
    currency: str = "INR"
    status: PayoutStatus = PayoutStatus.COMPLETED
    external_reference: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class PayoutCreateRequest(BaseModel):
    """Record a payout; validated by the service"""
    seller_id: Optional[str] = None
    amount: Optional[Decimal] = None
    external_reference: Optional[str] = None
    notes: Optional[str] = None


class SellerPayoutSummary(BaseModel):
    """Eligibility figures for one seller"""
    seller_id: str
    total_orders: int = 0
    total_revenue: Decimal = Decimal("0")
    confirmed_revenue: Decimal = Decimal("0")
    non_confirmed_revenue: Decimal = Decimal("0")
    eligible_orders: int = 0
    eligible_revenue: Decimal = Decimal("0")
    completed_payments: Decimal = Decimal("0")
    pending_amount: Decimal = Decimal("0")
    payment_status: PayoutPaymentStatus = PayoutPaymentStatus.PENDING
    can_pay: bool = False
    pay_disabled_reason: Optional[str] = None
    eligibility_cutoff: datetime
    currency: str = "INR"


class NetPayableBreakdown(BaseModel):
    """Display-only net payable after commissions and fees"""
    seller_id: str
    eligible_orders: int
    eligible_revenue: Decimal
    gateway_commission: Decimal
    handling_fees: Decimal
    seller_commission: Decimal
    net_payable: Decimal
    paid: Decimal
    pending_net: Decimal


class PlatformSummary(BaseModel):
    """Platform-wide order figures"""
    total_orders: int = 0
    completed_orders: int = 0
    cancelled_orders: int = 0
    total_revenue: Decimal = Decimal("0")


class BrandSummary(BaseModel):
    """Per-seller order figures"""
    seller_id: str
    total_orders: int = 0
    completed_orders: int = 0
    completed_revenue: Decimal = Decimal("0")
