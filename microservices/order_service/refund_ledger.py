"""
Refund Ledger

Pure functions over the refund events embedded in an order. The events are
the source of truth for who refunded how much; the running totals on the
order are kept consistent with them.

Only platform-initiated refunds reduce a seller's payout-eligible revenue:
brand-initiated refunds are already borne by the seller.
"""
import logging
from decimal import Decimal
from typing import Iterable

from .models import (
    CURRENT_SCHEMA_VERSION,
    LifecycleStatus,
    Order,
    RefundEvent,
    RefundInitiator,
    RefundStatus,
    quantize_money,
    utcnow,
)
from .protocols import RefundInvariantError
from .state_rules import REFUND_WORKFLOW

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
LEGACY_BACKFILL_NOTE = "legacy backfill"


def _sum(amounts: Iterable[Decimal]) -> Decimal:
    return quantize_money(sum(amounts, ZERO))


def platform_event_total(order: Order) -> Decimal:
    return _sum(e.amount for e in order.refunds if e.initiated_by == RefundInitiator.PLATFORM)


def brand_event_total(order: Order) -> Decimal:
    return _sum(e.amount for e in order.refunds if e.initiated_by == RefundInitiator.BRAND)


def deductible_refund(order: Order) -> Decimal:
    """
    Refund amount that reduces the seller's eligible revenue.

    Resolution order:
        1. the platform-refunded total, when positive
        2. the sum of platform ledger events, when the ledger has events
        3. the aggregate refunded amount (orders predating the ledger)
    """
    if order.platform_refunded_amount > 0:
        return quantize_money(order.platform_refunded_amount)
    if order.refunds:
        return platform_event_total(order)
    return quantize_money(order.refunded_amount)


def refundable_balance(order: Order) -> Decimal:
    """Remaining refundable amount, never negative"""
    return max(quantize_money(order.total_amount - order.refunded_amount), ZERO)


def check_refund_invariant(order: Order) -> None:
    """Raise RefundInvariantError unless platform + brand == refunded <= total"""
    split = quantize_money(order.platform_refunded_amount + order.brand_refunded_amount)
    refunded = quantize_money(order.refunded_amount)
    if split != refunded:
        raise RefundInvariantError(
            f"Order {order.order_id}: platform {order.platform_refunded_amount} + "
            f"brand {order.brand_refunded_amount} != refunded {refunded}"
        )
    if refunded > quantize_money(order.total_amount):
        raise RefundInvariantError(
            f"Order {order.order_id}: refunded {refunded} exceeds total {order.total_amount}"
        )


def apply_refund_event(order: Order, event: RefundEvent) -> Order:
    """
    Return a copy of order with event appended and totals advanced.

    Raises:
        RefundInvariantError: if the event would overdraw the order
    """
    if event.amount <= 0:
        raise RefundInvariantError(f"Refund amount must be positive, got {event.amount}")
    if event.amount > refundable_balance(order):
        raise RefundInvariantError(
            f"Refund of {event.amount} exceeds remaining balance {refundable_balance(order)} "
            f"on order {order.order_id}"
        )

    updated = order.model_copy(deep=True)
    updated.refunds = [*order.refunds, event]
    updated.refunded_amount = quantize_money(order.refunded_amount + event.amount)
    if event.initiated_by == RefundInitiator.PLATFORM:
        updated.platform_refunded_amount = quantize_money(order.platform_refunded_amount + event.amount)
    else:
        updated.brand_refunded_amount = quantize_money(order.brand_refunded_amount + event.amount)

    if event.refund_reference:
        updated.last_refund_reference = event.refund_reference

    fully_refunded = updated.refunded_amount >= quantize_money(updated.total_amount)
    updated.refund_status = RefundStatus.COMPLETED if fully_refunded else RefundStatus.INITIATED

    if order.lifecycle_status in REFUND_WORKFLOW:
        updated.lifecycle_status = (
            LifecycleStatus.REFUNDED if fully_refunded else LifecycleStatus.REFUND_INITIATED
        )

    updated.updated_at = utcnow()
    check_refund_invariant(updated)
    return updated


def backfill_refund_ledger(order: Order) -> Order:
    """
    Bring an order written before the refund ledger to the current schema.

    A legacy refunded amount with no events becomes a single platform event,
    and the platform total is derived so the refund invariant holds.
    """
    if order.schema_version >= CURRENT_SCHEMA_VERSION:
        return order

    updated = order.model_copy(deep=True)
    if not order.refunds and order.refunded_amount > 0:
        legacy_platform = quantize_money(order.refunded_amount - order.brand_refunded_amount)
        if legacy_platform > 0:
            updated.refunds = [
                RefundEvent(
                    amount=legacy_platform,
                    initiated_by=RefundInitiator.PLATFORM,
                    payment_reference=order.payment_reference,
                    refund_reference=order.last_refund_reference,
                    refunded_at=order.updated_at,
                    notes=LEGACY_BACKFILL_NOTE,
                )
            ]
    elif order.refunds:
        # Events exist; rebuild totals from them
        updated.brand_refunded_amount = brand_event_total(order)
        updated.refunded_amount = quantize_money(
            platform_event_total(order) + updated.brand_refunded_amount
        )

    updated.platform_refunded_amount = quantize_money(
        updated.refunded_amount - updated.brand_refunded_amount
    )
    if updated.refunded_amount > 0 and updated.refund_status == RefundStatus.NOT_INITIATED:
        fully_refunded = updated.refunded_amount >= quantize_money(updated.total_amount)
        updated.refund_status = RefundStatus.COMPLETED if fully_refunded else RefundStatus.INITIATED

    updated.schema_version = CURRENT_SCHEMA_VERSION
    check_refund_invariant(updated)

    logger.info(
        f"Backfilled refund ledger for order {order.order_id}: "
        f"platform={updated.platform_refunded_amount} brand={updated.brand_refunded_amount}"
    )
    return updated


def to_minor_units(amount: Decimal) -> int:
    """Gateway amounts are integers in the currency's minor unit (paise)"""
    return int(quantize_money(amount) * 100)
