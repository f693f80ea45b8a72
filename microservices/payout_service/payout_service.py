"""
Payout Service Business Logic

Seller payout eligibility calculator. Every figure is recomputed from the
order store and the payout records on each call.

An order is payout-eligible once it is delivered, paid, and was created
at least PAYOUT_ELIGIBILITY_DAYS ago. Only platform-initiated refunds
reduce eligible revenue.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Iterable, List, Optional

from core.config import CommerceConfig
from microservices.order_service.models import DeliveryStatus, Order, quantize_money
from microservices.order_service.refund_ledger import deductible_refund

from .models import (
    BrandSummary,
    NetPayableBreakdown,
    PayoutCreateRequest,
    PayoutPaymentStatus,
    PayoutRecord,
    PayoutStatus,
    PlatformSummary,
    SellerPayoutSummary,
)
from .protocols import (
    EventBusProtocol,
    OrderReaderProtocol,
    PayoutRepositoryProtocol,
    PayoutValidationError,
)
from .events.publishers import publish_payout_recorded

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def _in_range(order: Order, start: Optional[datetime], end: Optional[datetime]) -> bool:
    if start and order.created_at < start:
        return False
    if end and order.created_at > end:
        return False
    return True


def _money_sum(amounts: Iterable[Decimal]) -> Decimal:
    return quantize_money(sum(amounts, ZERO))


def summarize_seller(
    seller_id: str,
    orders: List[Order],
    completed_payments: Decimal,
    cutoff: datetime,
    eligibility_days: int,
    currency: str = "INR",
) -> SellerPayoutSummary:
    """Pure computation of a seller's payout figures"""
    paid = [o for o in orders if o.is_paid]
    delivered_paid = [o for o in paid if o.is_delivered]
    eligible = [o for o in delivered_paid if o.created_at <= cutoff]

    total_revenue = _money_sum(o.total_amount - o.refunded_amount for o in paid)
    confirmed_revenue = _money_sum(o.total_amount - o.refunded_amount for o in delivered_paid)
    eligible_revenue = _money_sum(o.total_amount - deductible_refund(o) for o in eligible)
    completed_payments = quantize_money(completed_payments)
    pending_amount = max(eligible_revenue - completed_payments, ZERO)

    if pending_amount <= 0:
        payment_status = PayoutPaymentStatus.COMPLETED
    elif completed_payments > 0:
        payment_status = PayoutPaymentStatus.PARTIAL
    else:
        payment_status = PayoutPaymentStatus.PENDING

    if not eligible:
        reason = (
            f"No eligible delivered orders older than {eligibility_days} days available for payout."
        )
    elif pending_amount <= 0:
        reason = "All eligible revenue has already been paid out."
    else:
        reason = None

    return SellerPayoutSummary(
        seller_id=seller_id,
        total_orders=len(orders),
        total_revenue=total_revenue,
        confirmed_revenue=confirmed_revenue,
        non_confirmed_revenue=max(total_revenue - confirmed_revenue, ZERO),
        eligible_orders=len(eligible),
        eligible_revenue=eligible_revenue,
        completed_payments=completed_payments,
        pending_amount=pending_amount,
        payment_status=payment_status,
        can_pay=pending_amount > 0,
        pay_disabled_reason=reason,
        eligibility_cutoff=cutoff,
        currency=currency,
    )


class PayoutService:
    """
    Payout eligibility business logic

    Handles seller summaries, payout recording and platform reporting.
    """

    def __init__(
        self,
        repository: PayoutRepositoryProtocol,
        order_reader: OrderReaderProtocol,
        event_bus: Optional[EventBusProtocol] = None,
        config: Optional[CommerceConfig] = None,
    ):
        """
        Initialize Payout Service

        Args:
            repository: Payout repository
            order_reader: Read-only order store
            event_bus: NATS event bus instance (optional)
            config: Commerce policy (eligibility window, commissions)
        """
        self.repository = repository
        self.orders = order_reader
        self.event_bus = event_bus
        self.config = config or CommerceConfig()

        logger.info("✅ PayoutService initialized")

    def _cutoff(self, now: Optional[datetime] = None) -> datetime:
        now = now or datetime.now(timezone.utc)
        return now - timedelta(days=self.config.payout_eligibility_days)

    async def get_seller_summary(
        self,
        seller_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> SellerPayoutSummary:
        """
        Revenue and payout eligibility of a seller

        Args:
            seller_id: Seller to summarize
            start: Only orders created at or after start
            end: Only orders created at or before end
            now: Reference time for the eligibility window
        """
        orders = [o for o in await self.orders.list_seller_orders(seller_id) if _in_range(o, start, end)]
        completed = await self.repository.total_paid(seller_id)

        return summarize_seller(
            seller_id,
            orders,
            completed,
            cutoff=self._cutoff(now),
            eligibility_days=self.config.payout_eligibility_days,
            currency=self.config.currency,
        )

    async def create_payout(
        self, request: PayoutCreateRequest, now: Optional[datetime] = None
    ) -> PayoutRecord:
        """
        Record a payout to a seller

        The cap is recomputed from the order store at call time and
        re-checked by the repository under a per-seller lock.

        Raises:
            PayoutValidationError: missing seller, amount <= 0, or amount above pending
        """
        if not request.seller_id:
            raise PayoutValidationError("seller_id is required")
        if request.amount is None or request.amount <= 0:
            raise PayoutValidationError("Payout amount must be greater than 0")

        amount = quantize_money(request.amount)
        summary = await self.get_seller_summary(request.seller_id, now=now)
        if amount > summary.pending_amount:
            raise PayoutValidationError(
                f"Payout amount {amount} exceeds pending amount {summary.pending_amount}"
            )

        record = PayoutRecord(
            payout_id=f"payout_{uuid.uuid4().hex[:12]}",
            seller_id=request.seller_id,
            amount=amount,
            currency=self.config.currency,
            status=PayoutStatus.COMPLETED,
            external_reference=request.external_reference,
            notes=request.notes,
        )
        record = await self.repository.create_payout(record, cap=summary.eligible_revenue)

        pending = max(summary.pending_amount - amount, ZERO)
        await publish_payout_recorded(self.event_bus, record, pending_amount=pending)

        logger.info(f"Payout {record.payout_id} of {amount} recorded for seller {record.seller_id}")
        return record

    async def get_net_payable(self, seller_id: str, now: Optional[datetime] = None) -> NetPayableBreakdown:
        """Display-only net payable after gateway commission, handling fees and seller commission"""
        summary = await self.get_seller_summary(seller_id, now=now)
        eligible = summary.eligible_revenue
        hundred = Decimal("100")

        gateway = quantize_money(eligible * self.config.gateway_commission_percent / hundred)
        fees = quantize_money(self.config.handling_fee_per_order * summary.eligible_orders)
        commission = quantize_money(eligible * self.config.seller_commission_percent / hundred)
        net = max(eligible - gateway - fees - commission, ZERO)

        return NetPayableBreakdown(
            seller_id=seller_id,
            eligible_orders=summary.eligible_orders,
            eligible_revenue=eligible,
            gateway_commission=gateway,
            handling_fees=fees,
            seller_commission=commission,
            net_payable=net,
            paid=summary.completed_payments,
            pending_net=max(net - summary.completed_payments, ZERO),
        )

    async def list_payouts(self, seller_id: str) -> List[PayoutRecord]:
        return await self.repository.list_payouts(seller_id)

    async def get_platform_summary(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> PlatformSummary:
        """Platform-wide order counts and revenue net of refunds"""
        orders = await self.orders.list_orders(start=start, end=end)
        paid_total = _money_sum(o.total_amount for o in orders if o.is_paid)
        refunded = _money_sum(o.refunded_amount for o in orders)

        return PlatformSummary(
            total_orders=len(orders),
            completed_orders=sum(1 for o in orders if o.is_delivered),
            cancelled_orders=sum(1 for o in orders if o.delivery_status == DeliveryStatus.CANCELLED),
            total_revenue=max(paid_total - refunded, ZERO),
        )

    async def get_brand_summary(self, seller_id: str) -> BrandSummary:
        orders = await self.orders.list_seller_orders(seller_id)
        delivered = [o for o in orders if o.is_delivered]

        return BrandSummary(
            seller_id=seller_id,
            total_orders=len(orders),
            completed_orders=len(delivered),
            completed_revenue=_money_sum(o.total_amount for o in delivered),
        )

    async def list_seller_summaries(
        self,
        seller_ids: Optional[List[str]] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        status: Optional[PayoutPaymentStatus] = None,
        now: Optional[datetime] = None,
    ) -> List[SellerPayoutSummary]:
        """One summary per seller, optionally filtered by payment status"""
        if seller_ids is None:
            seller_ids = await self.orders.list_seller_ids()

        summaries = []
        for seller_id in seller_ids:
            summary = await self.get_seller_summary(seller_id, start=start, end=end, now=now)
            if status is None or summary.payment_status == status:
                summaries.append(summary)
        return summaries
