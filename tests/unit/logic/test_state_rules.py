"""
Order State Rules - Unit Tests

Allow-list of (delivery, lifecycle) pairs and the cancellation/refund gates.
"""

import pytest
from decimal import Decimal

from microservices.order_service.models import DeliveryStatus, LifecycleStatus, Order
from microservices.order_service.protocols import InvalidOrderStateError
from microservices.order_service.state_rules import (
    ALLOWED_STATES,
    can_cancel,
    ensure_allowed,
    is_allowed,
    is_refundable_state,
)

pytestmark = [pytest.mark.unit]


def make_order(delivery: DeliveryStatus, lifecycle: LifecycleStatus) -> Order:
    return Order(
        order_id="order_rules_1",
        buyer_id="buyer_1",
        seller_id="seller_1",
        total_amount=Decimal("100"),
        delivery_status=delivery,
        lifecycle_status=lifecycle,
    )


def test_every_lifecycle_has_an_entry():
    assert set(ALLOWED_STATES) == set(LifecycleStatus)


@pytest.mark.parametrize("delivery,lifecycle", [
    (DeliveryStatus.PENDING, LifecycleStatus.PENDING),
    (DeliveryStatus.SHIPPED, LifecycleStatus.PENDING),
    (DeliveryStatus.DELIVERED, LifecycleStatus.COMPLETED),
    (DeliveryStatus.CANCELLATION_REQUESTED, LifecycleStatus.CANCEL_REQUESTED),
    (DeliveryStatus.CANCELLED, LifecycleStatus.CANCELLED),
    (DeliveryStatus.PROCESSING, LifecycleStatus.CANCEL_REJECTED),
    (DeliveryStatus.DELIVERED, LifecycleStatus.REFUND_REQUESTED),
    (DeliveryStatus.DELIVERED, LifecycleStatus.REFUND_APPROVED),
    (DeliveryStatus.CANCELLED, LifecycleStatus.REFUNDED),
])
def test_allowed_pairs(delivery, lifecycle):
    assert is_allowed(delivery, lifecycle)
    ensure_allowed(make_order(delivery, lifecycle))


@pytest.mark.parametrize("delivery,lifecycle", [
    (DeliveryStatus.SHIPPED, LifecycleStatus.REFUND_REQUESTED),
    (DeliveryStatus.PENDING, LifecycleStatus.COMPLETED),
    (DeliveryStatus.DELIVERED, LifecycleStatus.CANCEL_REQUESTED),
    (DeliveryStatus.CANCELLED, LifecycleStatus.CANCEL_REJECTED),
    (DeliveryStatus.PENDING, LifecycleStatus.REFUNDED),
])
def test_forbidden_pairs(delivery, lifecycle):
    assert not is_allowed(delivery, lifecycle)
    with pytest.raises(InvalidOrderStateError):
        ensure_allowed(make_order(delivery, lifecycle))


@pytest.mark.parametrize("delivery,expected", [
    (DeliveryStatus.PENDING, True),
    (DeliveryStatus.ACCEPTED, True),
    (DeliveryStatus.PROCESSING, True),
    (DeliveryStatus.SHIPPED, False),
    (DeliveryStatus.OUT_FOR_DELIVERY, False),
    (DeliveryStatus.DELIVERED, False),
    (DeliveryStatus.CANCELLED, False),
])
def test_can_cancel(delivery, expected):
    assert can_cancel(make_order(delivery, LifecycleStatus.PENDING)) is expected


@pytest.mark.parametrize("delivery,lifecycle,expected", [
    (DeliveryStatus.CANCELLED, LifecycleStatus.CANCELLED, True),
    (DeliveryStatus.DELIVERED, LifecycleStatus.REFUND_APPROVED, True),
    (DeliveryStatus.DELIVERED, LifecycleStatus.REFUND_INITIATED, True),
    (DeliveryStatus.CANCELLED, LifecycleStatus.PENDING, True),
    (DeliveryStatus.DELIVERED, LifecycleStatus.REFUND_REQUESTED, False),
    (DeliveryStatus.DELIVERED, LifecycleStatus.COMPLETED, False),
])
def test_is_refundable_state(delivery, lifecycle, expected):
    assert is_refundable_state(make_order(delivery, lifecycle)) is expected
