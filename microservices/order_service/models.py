"""
Order Service Data Models

Pydantic models for the order aggregate, its embedded refund ledger,
cancellation requests and lifecycle requests.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum


CENT = Decimal("0.01")
CURRENT_SCHEMA_VERSION = 2


def quantize_money(value: Decimal) -> Decimal:
    """Round a money amount to 2 places"""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DeliveryStatus(str, Enum):
    """Fulfillment stage"""
    PENDING = "Pending"
    ACCEPTED = "Accepted"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    OUT_FOR_DELIVERY = "Out for Delivery"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"
    CANCELLATION_REQUESTED = "Cancellation Requested"


class LifecycleStatus(str, Enum):
    """Workflow state (cancellation/refund progression)"""
    PENDING = "pending"
    COMPLETED = "completed"
    CANCEL_REQUESTED = "cancel_requested"
    CANCELLED = "cancelled"
    CANCEL_REJECTED = "cancel_rejected"
    REFUND_REQUESTED = "refund_requested"
    REFUND_APPROVED = "refund_approved"
    REFUND_INITIATED = "refund_initiated"
    REFUNDED = "refunded"
    REFUND_REJECTED = "refund_rejected"


class PaymentStatus(str, Enum):
    """Payment status enumeration"""
    PENDING = "Pending"
    PAID = "Paid"
    FAILED = "Failed"
    CAPTURED = "Captured"

    @property
    def is_paid(self) -> bool:
        return self in (PaymentStatus.PAID, PaymentStatus.CAPTURED)


class RefundStatus(str, Enum):
    """Refund progress on the order"""
    NOT_INITIATED = "not_initiated"
    INITIATED = "initiated"
    COMPLETED = "completed"


class RefundInitiator(str, Enum):
    """Who bears a refund"""
    PLATFORM = "platform"
    BRAND = "brand"


class CancelRequestStatus(str, Enum):
    """Cancellation request status"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ResponseAction(str, Enum):
    """Seller/admin response to a request"""
    APPROVE = "approve"
    REJECT = "reject"


# Core Order Models

class OrderLineItem(BaseModel):
    """Ordered product line"""
    product_id: str
    name: Optional[str] = None
    quantity: int = Field(default=1, gt=0)
    price: Decimal = Field(default=Decimal("0"), ge=0)
    original_price: Optional[Decimal] = Field(default=None, ge=0)
    offer_percentage: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    size: Optional[str] = None
    color: Optional[str] = None
    image: Optional[str] = None

    @property
    def line_total(self) -> Decimal:
        return quantize_money(self.price * (self.quantity or 1))


class RefundEvent(BaseModel):
    """One immutable monetary refund recorded against an order"""
    model_config = ConfigDict(frozen=True)

    amount: Decimal
    initiated_by: RefundInitiator
    payment_reference: Optional[str] = None
    refund_reference: Optional[str] = None
    refunded_at: datetime = Field(default_factory=utcnow)
    notes: Optional[str] = None


class Order(BaseModel):
    """Order aggregate"""
    order_id: str
    buyer_id: str
    buyer_email: Optional[str] = None
    buyer_name: Optional[str] = None
    seller_id: str
    items: List[OrderLineItem] = Field(default_factory=list)
    address: Optional[str] = None
    estimated_delivery: Optional[datetime] = None

    delivery_status: DeliveryStatus = DeliveryStatus.PENDING
    lifecycle_status: LifecycleStatus = LifecycleStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    refund_status: RefundStatus = RefundStatus.NOT_INITIATED

    total_amount: Decimal
    currency: str = "INR"
    payment_reference: Optional[str] = None

    # Refund ledger
    refunded_amount: Decimal = Decimal("0")
    platform_refunded_amount: Decimal = Decimal("0")
    brand_refunded_amount: Decimal = Decimal("0")
    refunds: List[RefundEvent] = Field(default_factory=list)
    last_refund_reference: Optional[str] = None

    cancel_requested_by: Optional[str] = None
    cancel_approved_by: Optional[str] = None
    refund_reason: Optional[str] = None

    # Stock flags
    stock_deducted: bool = False
    stock_deducted_at: Optional[datetime] = None
    stock_updated: bool = False
    stock_updated_at: Optional[datetime] = None

    delivered_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    version: int = 1
    schema_version: int = CURRENT_SCHEMA_VERSION

    @property
    def is_paid(self) -> bool:
        return self.payment_status.is_paid

    @property
    def is_delivered(self) -> bool:
        return self.delivery_status == DeliveryStatus.DELIVERED

    def details(self) -> Dict[str, Any]:
        """Summary embedded in events and e-mails"""
        return {
            "order_id": self.order_id,
            "buyer_id": self.buyer_id,
            "buyer_name": self.buyer_name,
            "total_amount": str(self.total_amount),
            "currency": self.currency,
            "delivery_status": self.delivery_status.value,
            "lifecycle_status": self.lifecycle_status.value,
            "items": [
                {
                    "product_id": item.product_id,
                    "name": item.name,
                    "quantity": item.quantity,
                    "size": item.size,
                    "price": str(item.price),
                }
                for item in self.items
            ],
        }


class CancelRequest(BaseModel):
    """Buyer cancellation request for an order or one of its lines"""
    request_id: str
    order_id: str
    seller_id: str
    buyer_id: str
    product_id: Optional[str] = None
    product_index: Optional[int] = None
    reason: str = Field(..., max_length=500)
    status: CancelRequestStatus = CancelRequestStatus.PENDING
    requested_at: datetime = Field(default_factory=utcnow)
    processed_at: Optional[datetime] = None
    processed_by: Optional[str] = None
    admin_notes: Optional[str] = Field(default=None, max_length=500)
    order_details: Dict[str, Any] = Field(default_factory=dict)


# Request Models

class OrderLineRequest(BaseModel):
    """Line item as submitted by the buyer"""
    product_id: str
    name: Optional[str] = None
    quantity: int = Field(default=1, gt=0)
    price: Optional[Decimal] = Field(default=None, ge=0)
    original_price: Optional[Decimal] = Field(default=None, ge=0)
    offer_percentage: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    size: Optional[str] = None
    color: Optional[str] = None
    image: Optional[str] = None


class OrderCreateRequest(BaseModel):
    """Create order request"""
    buyer_id: Optional[str] = Field(None, description="Buyer placing the order")
    buyer_email: Optional[str] = None
    buyer_name: Optional[str] = None
    seller_id: Optional[str] = Field(None, description="Brand fulfilling the order")
    items: List[OrderLineRequest] = Field(default_factory=list)
    address: Optional[str] = None
    estimated_delivery: Optional[datetime] = None
    payment_status: Optional[PaymentStatus] = None
    payment_reference: Optional[str] = None
    currency: str = "INR"


class RefundExecutionRequest(BaseModel):
    """Execute (part of) a refund through the payment gateway"""
    amount: Optional[Decimal] = None
    initiated_by: RefundInitiator = RefundInitiator.PLATFORM
    notes: Optional[str] = None

    @field_validator("amount")
    @classmethod
    def normalize_amount(cls, v):
        # absent or non-positive means "refund the remaining balance"
        if v is None or v <= 0:
            return None
        return quantize_money(v)


# Response Models

class RefundResult(BaseModel):
    """Outcome of a refund execution"""
    order: Order
    event: RefundEvent
    remaining_balance: Decimal


class DeliveryResult(BaseModel):
    """Outcome of marking an order delivered"""
    order: Order
    stock_adjustments: List[Dict[str, Any]] = Field(default_factory=list)
    message: str
