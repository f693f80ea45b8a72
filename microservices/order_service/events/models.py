"""
Order Service Event Models

Pydantic models for events published by order service.
Every order notification carries seller, order, a human-readable message
and the order details.
"""

from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List
from datetime import datetime, timezone
from decimal import Decimal


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderNotificationEvent(BaseModel):
    """Base payload for order notifications"""
    seller_id: str
    order_id: str
    message: str
    order_details: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=_utcnow)


class OrderCreatedEvent(OrderNotificationEvent):
    """Event published when order is created"""
    buyer_id: str
    total_amount: Decimal
    currency: str = "INR"
    stock_deducted: bool = False


class OrderCancellationEvent(OrderNotificationEvent):
    """Event published when cancellation is requested, approved or rejected"""
    buyer_id: str
    reason: Optional[str] = None
    product_index: Optional[int] = None
    processed_by: Optional[str] = None
    admin_notes: Optional[str] = None


class OrderRefundEvent(OrderNotificationEvent):
    """Event published when a refund is requested, approved or rejected"""
    buyer_id: str
    reason: Optional[str] = None
    notes: Optional[str] = None


class OrderRefundProcessedEvent(OrderNotificationEvent):
    """Event published when money is refunded through the gateway"""
    buyer_id: str
    refund_amount: Decimal
    initiated_by: str
    refund_reference: Optional[str] = None
    refunded_amount_total: Decimal
    remaining_balance: Decimal
    currency: str = "INR"


class StockUpdatedEvent(OrderNotificationEvent):
    """Event published when delivery-time stock handling completes"""
    stock_updates: List[Dict[str, Any]] = Field(default_factory=list)
