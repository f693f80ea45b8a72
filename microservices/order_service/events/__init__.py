"""
Order Service Event Handling

Standard Structure:
- models.py: Event data models (Pydantic)
- publishers.py: Event publishers (publish events to other services)
"""

# Event Models
from .models import (
    OrderNotificationEvent,
    OrderCreatedEvent,
    OrderCancellationEvent,
    OrderRefundEvent,
    OrderRefundProcessedEvent,
    StockUpdatedEvent,
)

# Event Publishers
from .publishers import (
    publish_order_created,
    publish_cancel_requested,
    publish_cancel_approved,
    publish_cancel_rejected,
    publish_refund_requested,
    publish_refund_approved,
    publish_refund_rejected,
    publish_refund_processed,
    publish_stock_updated,
)

__all__ = [
    # Event Publishers
    "publish_order_created",
    "publish_cancel_requested",
    "publish_cancel_approved",
    "publish_cancel_rejected",
    "publish_refund_requested",
    "publish_refund_approved",
    "publish_refund_rejected",
    "publish_refund_processed",
    "publish_stock_updated",
    # Event Models
    "OrderNotificationEvent",
    "OrderCreatedEvent",
    "OrderCancellationEvent",
    "OrderRefundEvent",
    "OrderRefundProcessedEvent",
    "StockUpdatedEvent",
]
