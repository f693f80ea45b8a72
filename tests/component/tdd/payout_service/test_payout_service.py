"""
Payout Service Component Tests

Seller payout eligibility, payout recording and reporting over in-memory
orders and payouts.

Usage:
    pytest tests/component/tdd/payout_service -v
"""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from microservices.order_service.models import (
    DeliveryStatus,
    LifecycleStatus,
    PaymentStatus,
    RefundEvent,
    RefundInitiator,
)
from microservices.payout_service.models import PayoutCreateRequest, PayoutPaymentStatus
from microservices.payout_service.payout_service import PayoutService
from microservices.payout_service.protocols import PayoutValidationError
from tests.component.tdd.order_service.mocks import MockOrderRepository
from tests.component.tdd.payout_service.mocks import MockPayoutRepository

pytestmark = [pytest.mark.component, pytest.mark.asyncio]

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


def days_ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def orders():
    return MockOrderRepository()


@pytest.fixture
def payouts():
    return MockPayoutRepository()


@pytest.fixture
def service(payouts, orders, mock_event_bus, fast_config):
    return PayoutService(
        repository=payouts,
        order_reader=orders,
        event_bus=mock_event_bus,
        config=fast_config,
    )


def delivered(orders, order_id, total, age_days, **fields):
    return orders.set_order(
        order_id=order_id,
        total_amount=Decimal(total),
        delivery_status=DeliveryStatus.DELIVERED,
        payment_status=PaymentStatus.PAID,
        created_at=days_ago(age_days),
        **fields,
    )


# =============================================================================
# get_seller_summary
# =============================================================================

class TestSellerSummary:

    async def test_eligible_after_window(self, service, orders):
        delivered(orders, "order_old", "2000", 8)

        summary = await service.get_seller_summary("seller_1", now=NOW)

        assert summary.eligible_orders == 1
        assert summary.eligible_revenue == Decimal("2000.00")
        assert summary.pending_amount == Decimal("2000.00")
        assert summary.payment_status == PayoutPaymentStatus.PENDING
        assert summary.can_pay is True
        assert summary.pay_disabled_reason is None

    async def test_recent_order_not_yet_eligible(self, service, orders):
        delivered(orders, "order_recent", "2000", 6)

        summary = await service.get_seller_summary("seller_1", now=NOW)

        assert summary.total_revenue == Decimal("2000.00")
        assert summary.confirmed_revenue == Decimal("2000.00")
        assert summary.eligible_revenue == Decimal("0.00")
        assert summary.can_pay is False
        assert summary.pay_disabled_reason == (
            "No eligible delivered orders older than 7 days available for payout."
        )

    async def test_window_boundary_is_inclusive(self, service, orders):
        delivered(orders, "order_edge", "500", 7)

        summary = await service.get_seller_summary("seller_1", now=NOW)

        assert summary.eligible_orders == 1

    async def test_revenue_buckets(self, service, orders):
        delivered(orders, "order_delivered", "1000", 10)
        orders.set_order(
            order_id="order_shipped",
            total_amount=Decimal("300"),
            delivery_status=DeliveryStatus.SHIPPED,
            created_at=days_ago(10),
        )
        orders.set_order(
            order_id="order_unpaid",
            total_amount=Decimal("700"),
            delivery_status=DeliveryStatus.DELIVERED,
            payment_status=PaymentStatus.PENDING,
            created_at=days_ago(10),
        )

        summary = await service.get_seller_summary("seller_1", now=NOW)

        assert summary.total_orders == 3
        assert summary.total_revenue == Decimal("1300.00")
        assert summary.confirmed_revenue == Decimal("1000.00")
        assert summary.non_confirmed_revenue == Decimal("300.00")
        assert summary.eligible_revenue == Decimal("1000.00")

    async def test_only_platform_refunds_reduce_eligible_revenue(self, service, orders):
        delivered(
            orders, "order_refunded", "1000", 10,
            lifecycle_status=LifecycleStatus.REFUNDED,
            refunded_amount=Decimal("1000.00"),
            platform_refunded_amount=Decimal("400.00"),
            brand_refunded_amount=Decimal("600.00"),
            refunds=[
                RefundEvent(amount=Decimal("400.00"), initiated_by=RefundInitiator.PLATFORM),
                RefundEvent(amount=Decimal("600.00"), initiated_by=RefundInitiator.BRAND),
            ],
        )

        summary = await service.get_seller_summary("seller_1", now=NOW)

        assert summary.total_revenue == Decimal("0.00")
        assert summary.eligible_revenue == Decimal("600.00")

    async def test_legacy_refund_without_ledger_is_deducted(self, service, orders):
        delivered(
            orders, "order_legacy", "1000", 10,
            refunded_amount=Decimal("250.00"),
            schema_version=1,
        )

        summary = await service.get_seller_summary("seller_1", now=NOW)

        assert summary.eligible_revenue == Decimal("750.00")

    async def test_date_filter_is_inclusive(self, service, orders):
        delivered(orders, "order_a", "100", 20)
        delivered(orders, "order_b", "200", 10)

        summary = await service.get_seller_summary(
            "seller_1", start=days_ago(10), end=days_ago(10), now=NOW
        )

        assert summary.total_orders == 1
        assert summary.total_revenue == Decimal("200.00")

    async def test_partial_status(self, service, orders, payouts):
        delivered(orders, "order_old", "2000", 8)
        payouts.add_payout("seller_1", Decimal("500"))

        summary = await service.get_seller_summary("seller_1", now=NOW)

        assert summary.completed_payments == Decimal("500.00")
        assert summary.pending_amount == Decimal("1500.00")
        assert summary.payment_status == PayoutPaymentStatus.PARTIAL


# =============================================================================
# create_payout
# =============================================================================

class TestCreatePayout:

    async def test_full_payout_then_nothing_left(self, service, orders, mock_event_bus):
        delivered(orders, "order_old", "2000", 8)

        record = await service.create_payout(
            PayoutCreateRequest(seller_id="seller_1", amount=Decimal("2000")), now=NOW
        )

        assert record.amount == Decimal("2000.00")
        assert record.currency == "INR"
        mock_event_bus.assert_event_published("payout.recorded", {"payout_id": record.payout_id})

        summary = await service.get_seller_summary("seller_1", now=NOW)
        assert summary.pending_amount == Decimal("0")
        assert summary.payment_status == PayoutPaymentStatus.COMPLETED
        assert summary.pay_disabled_reason == "All eligible revenue has already been paid out."

        with pytest.raises(PayoutValidationError):
            await service.create_payout(
                PayoutCreateRequest(seller_id="seller_1", amount=Decimal("1")), now=NOW
            )

    async def test_one_paisa_over_pending_is_rejected(self, service, orders, payouts):
        delivered(orders, "order_old", "2000", 8)
        payouts.add_payout("seller_1", Decimal("750.50"))

        with pytest.raises(PayoutValidationError):
            await service.create_payout(
                PayoutCreateRequest(seller_id="seller_1", amount=Decimal("1249.51")), now=NOW
            )

        record = await service.create_payout(
            PayoutCreateRequest(seller_id="seller_1", amount=Decimal("1249.50")), now=NOW
        )
        assert record.amount == Decimal("1249.50")

    @pytest.mark.parametrize("request_data", [
        {"amount": Decimal("100")},
        {"seller_id": "seller_1", "amount": Decimal("0")},
        {"seller_id": "seller_1", "amount": Decimal("-5")},
        {"seller_id": "seller_1"},
    ])
    async def test_validation(self, service, payouts, request_data):
        with pytest.raises(PayoutValidationError):
            await service.create_payout(PayoutCreateRequest(**request_data), now=NOW)
        assert payouts.get_call_count("create_payout") == 0

    async def test_repository_rechecks_cap(self, service, orders, payouts, mock_event_bus):
        delivered(orders, "order_old", "2000", 8)
        payouts.before_insert(lambda: payouts.add_payout("seller_1", Decimal("1500")))

        with pytest.raises(PayoutValidationError):
            await service.create_payout(
                PayoutCreateRequest(seller_id="seller_1", amount=Decimal("1000")), now=NOW
            )

        assert await payouts.total_paid("seller_1") == Decimal("1500")
        mock_event_bus.assert_no_events_published("payout.recorded")

    async def test_list_payouts(self, service, payouts):
        payouts.add_payout("seller_1", Decimal("10"))
        payouts.add_payout("seller_2", Decimal("20"))

        records = await service.list_payouts("seller_1")

        assert [r.amount for r in records] == [Decimal("10")]


# =============================================================================
# Net payable and reports
# =============================================================================

class TestReports:

    async def test_net_payable_breakdown(self, service, orders, payouts):
        delivered(orders, "order_old", "2000", 8)
        payouts.add_payout("seller_1", Decimal("500"))

        breakdown = await service.get_net_payable("seller_1", now=NOW)

        assert breakdown.gateway_commission == Decimal("40.00")
        assert breakdown.handling_fees == Decimal("100.00")
        assert breakdown.seller_commission == Decimal("300.00")
        assert breakdown.net_payable == Decimal("1560.00")
        assert breakdown.paid == Decimal("500.00")
        assert breakdown.pending_net == Decimal("1060.00")

    async def test_net_payable_never_negative(self, service, orders):
        delivered(orders, "order_small", "50", 8)

        breakdown = await service.get_net_payable("seller_1", now=NOW)

        assert breakdown.net_payable == Decimal("0")
        assert breakdown.pending_net == Decimal("0")

    async def test_platform_summary(self, service, orders):
        delivered(orders, "order_1", "1000", 8, refunded_amount=Decimal("200"), platform_refunded_amount=Decimal("200"))
        orders.set_order(
            order_id="order_2",
            seller_id="seller_2",
            total_amount=Decimal("500"),
            delivery_status=DeliveryStatus.CANCELLED,
            lifecycle_status=LifecycleStatus.CANCELLED,
            created_at=days_ago(3),
        )

        summary = await service.get_platform_summary()

        assert summary.total_orders == 2
        assert summary.completed_orders == 1
        assert summary.cancelled_orders == 1
        assert summary.total_revenue == Decimal("1300.00")

    async def test_brand_summary(self, service, orders):
        delivered(orders, "order_1", "1000", 8)
        orders.set_order(order_id="order_2", total_amount=Decimal("400"))

        summary = await service.get_brand_summary("seller_1")

        assert summary.total_orders == 2
        assert summary.completed_orders == 1
        assert summary.completed_revenue == Decimal("1000.00")

    async def test_list_seller_summaries_by_status(self, service, orders, payouts):
        delivered(orders, "order_1", "1000", 8)
        orders.set_order(
            order_id="order_2",
            seller_id="seller_2",
            total_amount=Decimal("800"),
            delivery_status=DeliveryStatus.DELIVERED,
            created_at=days_ago(9),
        )
        payouts.add_payout("seller_2", Decimal("800"))

        all_summaries = await service.list_seller_summaries(now=NOW)
        pending = await service.list_seller_summaries(status=PayoutPaymentStatus.PENDING, now=NOW)

        assert [s.seller_id for s in all_summaries] == ["seller_1", "seller_2"]
        assert [s.seller_id for s in pending] == ["seller_1"]
