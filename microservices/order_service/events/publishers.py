"""
Order Service Event Publishers

Functions to publish events from order service.
Publication is best-effort: every function returns False instead of raising.
"""

import logging
from decimal import Decimal
from typing import Optional, Dict, Any, List

from pydantic import BaseModel

from core.nats_client import Event, EventType, ServiceSource
from ..models import Order
from .models import (
    OrderCreatedEvent,
    OrderCancellationEvent,
    OrderRefundEvent,
    OrderRefundProcessedEvent,
    StockUpdatedEvent,
)

logger = logging.getLogger(__name__)


async def _publish(event_bus, event_type: EventType, payload: BaseModel) -> bool:
    if not event_bus:
        logger.warning(f"Event bus not available, skipping {event_type.value} event")
        return False

    try:
        event = Event(
            event_type=event_type,
            source=ServiceSource.ORDER_SERVICE,
            data=payload.model_dump(mode='json')
        )

        await event_bus.publish_event(event)
        logger.info(f"✅ Published {event_type.value} event for order {payload.order_id}")
        return True

    except Exception as e:
        logger.error(f"❌ Failed to publish {event_type.value} event: {e}")
        return False


async def publish_order_created(event_bus, order: Order) -> bool:
    """Publish order.created event"""
    payload = OrderCreatedEvent(
        seller_id=order.seller_id,
        order_id=order.order_id,
        message=f"New order {order.order_id} received",
        order_details=order.details(),
        buyer_id=order.buyer_id,
        total_amount=order.total_amount,
        currency=order.currency,
        stock_deducted=order.stock_deducted,
    )
    return await _publish(event_bus, EventType.ORDER_CREATED, payload)


async def publish_cancel_requested(
    event_bus,
    order: Order,
    reason: Optional[str] = None,
    product_index: Optional[int] = None,
) -> bool:
    """Publish order.cancel_requested event"""
    payload = OrderCancellationEvent(
        seller_id=order.seller_id,
        order_id=order.order_id,
        message=f"Cancellation requested for order {order.order_id}",
        order_details=order.details(),
        buyer_id=order.buyer_id,
        reason=reason,
        product_index=product_index,
    )
    return await _publish(event_bus, EventType.ORDER_CANCEL_REQUESTED, payload)


async def publish_cancel_approved(
    event_bus,
    order: Order,
    processed_by: Optional[str] = None,
    product_index: Optional[int] = None,
    admin_notes: Optional[str] = None,
) -> bool:
    """Publish order.cancel_approved event"""
    payload = OrderCancellationEvent(
        seller_id=order.seller_id,
        order_id=order.order_id,
        message=f"Cancellation approved for order {order.order_id}",
        order_details=order.details(),
        buyer_id=order.buyer_id,
        product_index=product_index,
        processed_by=processed_by,
        admin_notes=admin_notes,
    )
    return await _publish(event_bus, EventType.ORDER_CANCEL_APPROVED, payload)


async def publish_cancel_rejected(
    event_bus,
    order: Order,
    processed_by: Optional[str] = None,
    admin_notes: Optional[str] = None,
) -> bool:
    """Publish order.cancel_rejected event"""
    payload = OrderCancellationEvent(
        seller_id=order.seller_id,
        order_id=order.order_id,
        message=f"Cancellation rejected for order {order.order_id}",
        order_details=order.details(),
        buyer_id=order.buyer_id,
        processed_by=processed_by,
        admin_notes=admin_notes,
    )
    return await _publish(event_bus, EventType.ORDER_CANCEL_REJECTED, payload)


async def publish_refund_requested(event_bus, order: Order, reason: Optional[str] = None) -> bool:
    """Publish order.refund_requested event"""
    payload = OrderRefundEvent(
        seller_id=order.seller_id,
        order_id=order.order_id,
        message=f"Refund requested for order {order.order_id}",
        order_details=order.details(),
        buyer_id=order.buyer_id,
        reason=reason,
    )
    return await _publish(event_bus, EventType.ORDER_REFUND_REQUESTED, payload)


async def publish_refund_approved(event_bus, order: Order, notes: Optional[str] = None) -> bool:
    """Publish order.refund_approved event"""
    payload = OrderRefundEvent(
        seller_id=order.seller_id,
        order_id=order.order_id,
        message=f"Refund approved for order {order.order_id}",
        order_details=order.details(),
        buyer_id=order.buyer_id,
        reason=order.refund_reason,
        notes=notes,
    )
    return await _publish(event_bus, EventType.ORDER_REFUND_APPROVED, payload)


async def publish_refund_rejected(event_bus, order: Order, notes: Optional[str] = None) -> bool:
    """Publish order.refund_rejected event"""
    payload = OrderRefundEvent(
        seller_id=order.seller_id,
        order_id=order.order_id,
        message=f"Refund rejected for order {order.order_id}",
        order_details=order.details(),
        buyer_id=order.buyer_id,
        reason=order.refund_reason,
        notes=notes,
    )
    return await _publish(event_bus, EventType.ORDER_REFUND_REJECTED, payload)


async def publish_refund_processed(
    event_bus,
    order: Order,
    refund_amount: Decimal,
    initiated_by: str,
    refund_reference: Optional[str],
    remaining_balance: Decimal,
) -> bool:
    """Publish order.refund_processed event"""
    payload = OrderRefundProcessedEvent(
        seller_id=order.seller_id,
        order_id=order.order_id,
        message=f"Refund of {refund_amount} {order.currency} processed for order {order.order_id}",
        order_details=order.details(),
        buyer_id=order.buyer_id,
        refund_amount=refund_amount,
        initiated_by=initiated_by,
        refund_reference=refund_reference,
        refunded_amount_total=order.refunded_amount,
        remaining_balance=remaining_balance,
        currency=order.currency,
    )
    return await _publish(event_bus, EventType.ORDER_REFUND_PROCESSED, payload)


async def publish_stock_updated(
    event_bus,
    order: Order,
    stock_updates: List[Dict[str, Any]],
    message: str,
) -> bool:
    """Publish inventory.stock_updated event"""
    payload = StockUpdatedEvent(
        seller_id=order.seller_id,
        order_id=order.order_id,
        message=message,
        order_details=order.details(),
        stock_updates=stock_updates,
    )
    return await _publish(event_bus, EventType.STOCK_UPDATED, payload)
