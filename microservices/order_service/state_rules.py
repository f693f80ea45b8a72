"""
Order State Rules

Delivery status and lifecycle status are independent axes. This module
holds the allow-list of (delivery, lifecycle) pairs an order may occupy
and the status sets the lifecycle controller checks before transitions.
"""
from typing import Dict, FrozenSet

from .models import DeliveryStatus, LifecycleStatus, Order
from .protocols import InvalidOrderStateError

_PRE_SHIPMENT = frozenset({
    DeliveryStatus.PENDING,
    DeliveryStatus.ACCEPTED,
    DeliveryStatus.PROCESSING,
})

_IN_FLIGHT = frozenset({
    DeliveryStatus.SHIPPED,
    DeliveryStatus.OUT_FOR_DELIVERY,
})

ALLOWED_STATES: Dict[LifecycleStatus, FrozenSet[DeliveryStatus]] = {
    # Cancelled appears under pending for orders cancelled by the legacy direct path
    LifecycleStatus.PENDING: _PRE_SHIPMENT | _IN_FLIGHT | {DeliveryStatus.DELIVERED, DeliveryStatus.CANCELLED},
    LifecycleStatus.COMPLETED: frozenset({DeliveryStatus.DELIVERED}),
    LifecycleStatus.CANCEL_REQUESTED: frozenset({DeliveryStatus.CANCELLATION_REQUESTED}),
    # Line-level cancellation leaves the rest of the order in fulfillment
    LifecycleStatus.CANCELLED: _PRE_SHIPMENT | _IN_FLIGHT | {
        DeliveryStatus.DELIVERED,
        DeliveryStatus.CANCELLED,
        DeliveryStatus.CANCELLATION_REQUESTED,
    },
    LifecycleStatus.CANCEL_REJECTED: _PRE_SHIPMENT | _IN_FLIGHT | {DeliveryStatus.DELIVERED},
    LifecycleStatus.REFUND_REQUESTED: frozenset({DeliveryStatus.DELIVERED}),
    LifecycleStatus.REFUND_APPROVED: frozenset({DeliveryStatus.DELIVERED}),
    LifecycleStatus.REFUND_REJECTED: frozenset({DeliveryStatus.DELIVERED}),
    LifecycleStatus.REFUND_INITIATED: frozenset({DeliveryStatus.DELIVERED, DeliveryStatus.CANCELLED}),
    LifecycleStatus.REFUNDED: frozenset({DeliveryStatus.DELIVERED, DeliveryStatus.CANCELLED}),
}

# Delivery stages from which an order can no longer be cancelled
CANCELLATION_BLOCKED = _IN_FLIGHT | {DeliveryStatus.DELIVERED, DeliveryStatus.CANCELLED}

# Lifecycle states in which a new refund request is a duplicate
REFUND_REQUEST_BLOCKED = frozenset({
    LifecycleStatus.REFUND_REQUESTED,
    LifecycleStatus.REFUND_APPROVED,
    LifecycleStatus.REFUNDED,
})

# Lifecycle states that authorize money movement
REFUNDABLE_LIFECYCLES = frozenset({
    LifecycleStatus.CANCELLED,
    LifecycleStatus.REFUND_APPROVED,
    LifecycleStatus.REFUND_INITIATED,
})

# Refund workflow states that advance to refund_initiated / refunded
REFUND_WORKFLOW = frozenset({
    LifecycleStatus.REFUND_APPROVED,
    LifecycleStatus.REFUND_INITIATED,
})


def is_allowed(delivery: DeliveryStatus, lifecycle: LifecycleStatus) -> bool:
    return delivery in ALLOWED_STATES.get(lifecycle, frozenset())


def ensure_allowed(order: Order) -> None:
    """Raise InvalidOrderStateError if the order's status pair is not allowed"""
    if not is_allowed(order.delivery_status, order.lifecycle_status):
        raise InvalidOrderStateError(
            f"Order {order.order_id} cannot be {order.delivery_status.value} "
            f"while {order.lifecycle_status.value}"
        )


def can_cancel(order: Order) -> bool:
    return order.delivery_status not in CANCELLATION_BLOCKED


def is_refundable_state(order: Order) -> bool:
    return (
        order.lifecycle_status in REFUNDABLE_LIFECYCLES
        or order.delivery_status == DeliveryStatus.CANCELLED
    )
