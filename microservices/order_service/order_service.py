"""
Order Service Business Logic

Order lifecycle controller: the only writer of order state and the only
trigger of inventory and refund-ledger mutations.

Every transition is a load-validate-mutate-save unit. Saves are
version-checked and the whole unit is retried on conflict.
"""

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

from core.config import CommerceConfig
from core.retry import optimistic_retry
from microservices.inventory_service.models import StockLine

from .models import (
    CURRENT_SCHEMA_VERSION,
    CancelRequest,
    CancelRequestStatus,
    DeliveryResult,
    DeliveryStatus,
    LifecycleStatus,
    Order,
    OrderCreateRequest,
    OrderLineItem,
    OrderLineRequest,
    RefundEvent,
    RefundExecutionRequest,
    RefundInitiator,
    RefundResult,
    ResponseAction,
    quantize_money,
)
from .protocols import (
    CancelRequestRepositoryProtocol,
    EmailNotifierProtocol,
    EmailTemplate,
    EventBusProtocol,
    InvalidOrderStateError,
    InventoryLedgerProtocol,
    OrderNotFoundError,
    OrderRepositoryProtocol,
    OrderValidationError,
    PaymentGatewayError,
    PaymentGatewayProtocol,
    RefundRecordingError,
)
from .refund_ledger import (
    apply_refund_event,
    backfill_refund_ledger,
    check_refund_invariant,
    refundable_balance,
)
from .state_rules import (
    REFUND_REQUEST_BLOCKED,
    can_cancel,
    ensure_allowed,
    is_refundable_state,
)
from .events.publishers import (
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

logger = logging.getLogger(__name__)

DEFAULT_REFUND_REASON = "Delayed Order Refund"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _recompute_total(items: List[OrderLineItem]) -> Decimal:
    return quantize_money(sum((item.line_total for item in items), Decimal("0")))


def _remove_line(order: Order, index: int) -> None:
    """Drop one line and recompute the total; the total never falls below what was refunded"""
    remaining = order.items[:index] + order.items[index + 1:]
    new_total = _recompute_total(remaining)
    if new_total < quantize_money(order.refunded_amount):
        raise OrderValidationError(
            f"Cannot remove line {index}: new total {new_total} is below "
            f"the refunded amount {quantize_money(order.refunded_amount)}"
        )
    order.items = remaining
    order.total_amount = new_total
    if not order.items:
        order.delivery_status = DeliveryStatus.CANCELLED


def _parse_action(action) -> ResponseAction:
    try:
        return ResponseAction(action)
    except ValueError:
        raise OrderValidationError("Invalid action")


class OrderLifecycleService:
    """
    Order lifecycle business logic

    Handles creation, cancellation, refunds and delivery. Events and
    e-mails are best-effort and never roll back a committed transition.
    """

    def __init__(
        self,
        repository: OrderRepositoryProtocol,
        cancel_request_repository: CancelRequestRepositoryProtocol,
        inventory: InventoryLedgerProtocol,
        event_bus: Optional[EventBusProtocol] = None,
        payment_gateway: Optional[PaymentGatewayProtocol] = None,
        email_notifier: Optional[EmailNotifierProtocol] = None,
        config: Optional[CommerceConfig] = None,
    ):
        """
        Initialize Order Lifecycle Service

        Args:
            repository: Order repository
            cancel_request_repository: Cancel request repository
            inventory: Inventory ledger used for stock pre-check and deduction
            event_bus: NATS event bus instance (optional)
            payment_gateway: Payment gateway adapter (required for gateway refunds)
            email_notifier: Buyer e-mail notifier (optional)
            config: Commerce policy (currency, retry settings)
        """
        self.repository = repository
        self.cancel_requests = cancel_request_repository
        self.inventory = inventory
        self.event_bus = event_bus
        self.payment_gateway = payment_gateway
        self.email_notifier = email_notifier
        self.config = config or CommerceConfig()

        logger.info("✅ OrderLifecycleService initialized")

    # ====================
    # Internals
    # ====================

    async def _load(self, order_id: str) -> Order:
        order = await self.repository.get_order(order_id)
        if not order:
            raise OrderNotFoundError(f"Order not found: {order_id}")
        return order

    async def _transition(
        self,
        order_id: str,
        mutate: Callable[[Order], Order],
        check_state: bool = True,
    ) -> Order:
        """Load, mutate a copy, validate the status pair and refund ledger, save with a version check"""
        async for attempt in optimistic_retry(self.config):
            with attempt:
                current = await self._load(order_id)
                updated = mutate(current.model_copy(deep=True))
                if check_state:
                    ensure_allowed(updated)
                if updated.schema_version >= CURRENT_SCHEMA_VERSION:
                    check_refund_invariant(updated)
                updated.updated_at = _now()
                saved = await self.repository.save_order(updated, expected_version=current.version)
        return saved

    async def _release_creation_claim(self, order: Order) -> Order:
        """Clear stock_deducted after a failed creation-time deduction; never raises"""

        def release(o: Order) -> Order:
            o.stock_deducted = False
            o.stock_deducted_at = None
            return o

        try:
            return await self._transition(order.order_id, release, check_state=False)
        except Exception as e:
            logger.critical(
                f"❌ Could not release stock claim for order {order.order_id}; "
                f"stock_deducted stays set without a deduction: {e}"
            )
            return order

    @staticmethod
    def _check_owner(order: Order, buyer_id: Optional[str] = None, seller_id: Optional[str] = None):
        if buyer_id and order.buyer_id != buyer_id:
            raise OrderNotFoundError(f"Order {order.order_id} not found for buyer {buyer_id}")
        if seller_id and order.seller_id != seller_id:
            raise OrderNotFoundError(f"Order {order.order_id} not found for seller {seller_id}")

    async def _notify(self, order: Order, template: EmailTemplate, data: Dict[str, Any]):
        if not self.email_notifier or not order.buyer_email:
            return
        try:
            await self.email_notifier.send(
                order.buyer_email,
                template,
                {"order_id": order.order_id, "buyer_name": order.buyer_name, **data},
            )
        except Exception as e:
            logger.warning(f"Failed to send {template.value} e-mail for order {order.order_id}: {e}")

    async def _resolve_cancel_requests(
        self,
        order_id: str,
        status: CancelRequestStatus,
        processed_by: str,
        admin_notes: Optional[str] = None,
    ):
        try:
            count = await self.cancel_requests.resolve_pending(
                order_id, status, processed_by=processed_by, admin_notes=admin_notes
            )
            if count:
                logger.info(f"Marked {count} cancel request(s) {status.value} for order {order_id}")
        except Exception as e:
            logger.error(f"Failed to mark cancel requests {status.value} for order {order_id}: {e}")

    @staticmethod
    def _stock_lines(order: Order) -> List[StockLine]:
        return [
            StockLine(product_id=item.product_id, quantity=item.quantity or 1, size=item.size, name=item.name)
            for item in order.items
        ]

    # ====================
    # Creation
    # ====================

    @staticmethod
    def _validate_create_request(request: OrderCreateRequest):
        missing = []
        if not request.buyer_id:
            missing.append("buyer_id")
        if not request.items:
            missing.append("items")
        if not request.address:
            missing.append("address")
        if not request.estimated_delivery:
            missing.append("estimated_delivery")
        if not request.payment_status:
            missing.append("payment_status")
        if not request.seller_id:
            missing.append("seller_id")
        if missing:
            raise OrderValidationError(f"Missing required fields: {', '.join(missing)}")

    @staticmethod
    def _build_line_item(line: OrderLineRequest) -> OrderLineItem:
        if line.original_price is None and line.price is None:
            raise OrderValidationError(f"Price missing for product {line.product_id}")

        original = line.original_price if line.original_price is not None else line.price
        price = quantize_money(original * (1 - line.offer_percentage / Decimal("100")))

        return OrderLineItem(
            product_id=line.product_id,
            name=line.name,
            quantity=line.quantity,
            price=price,
            original_price=quantize_money(original),
            offer_percentage=line.offer_percentage,
            size=line.size,
            color=line.color,
            image=line.image,
        )

    async def create_order(self, request: OrderCreateRequest) -> Order:
        """
        Create an order

        Stock is pre-checked for every line before anything is written.
        The order is inserted with stock_deducted already claimed, then stock
        is deducted. A deduction failure is logged and releases the claim so
        delivery can deduct later.

        Raises:
            OrderValidationError: missing fields or insufficient stock
        """
        self._validate_create_request(request)

        lines = [
            StockLine(product_id=l.product_id, quantity=l.quantity, size=l.size, name=l.name)
            for l in request.items
        ]
        stock_errors = await self.inventory.check_availability(lines)
        if stock_errors:
            raise OrderValidationError(f"Stock validation failed: {'; '.join(stock_errors)}")

        items = [self._build_line_item(line) for line in request.items]
        now = _now()
        order = Order(
            order_id=f"order_{uuid.uuid4().hex[:12]}",
            buyer_id=request.buyer_id,
            buyer_email=request.buyer_email,
            buyer_name=request.buyer_name,
            seller_id=request.seller_id,
            items=items,
            address=request.address,
            estimated_delivery=request.estimated_delivery,
            delivery_status=DeliveryStatus.PENDING,
            lifecycle_status=LifecycleStatus.PENDING,
            payment_status=request.payment_status,
            total_amount=_recompute_total(items),
            currency=request.currency or self.config.currency,
            payment_reference=request.payment_reference,
            stock_deducted=True,
            stock_deducted_at=now,
            created_at=now,
            updated_at=now,
        )
        order = await self.repository.create_order(order)
        logger.info(f"Order created: {order.order_id} for buyer {order.buyer_id}")

        try:
            await self.inventory.deduct_for_order(lines)
            logger.info(f"✅ Stock deducted for order {order.order_id}")
        except Exception as e:
            logger.error(
                f"❌ Stock deduction failed for order {order.order_id}; "
                f"order kept, delivery will retry the deduction: {e}"
            )
            order = await self._release_creation_claim(order)

        await publish_order_created(self.event_bus, order)
        return order

    # ====================
    # Cancellation
    # ====================

    async def user_request_cancel(
        self,
        order_id: str,
        buyer_id: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> Order:
        """Buyer asks to cancel an order that has not shipped"""

        def mutate(order: Order) -> Order:
            self._check_owner(order, buyer_id=buyer_id)
            if not can_cancel(order):
                raise InvalidOrderStateError(
                    f"Order cannot be cancelled once it is {order.delivery_status.value}"
                )
            order.lifecycle_status = LifecycleStatus.CANCEL_REQUESTED
            order.delivery_status = DeliveryStatus.CANCELLATION_REQUESTED
            order.cancel_requested_by = buyer_id or "user"
            return order

        order = await self._transition(order_id, mutate)

        try:
            pending = await self.cancel_requests.get_pending_for_order(order_id)
            if not pending:
                await self.cancel_requests.create_request(
                    self._build_cancel_request(order, reason or "Cancelled by user")
                )
        except Exception as e:
            logger.error(f"Failed to record cancel request for order {order_id}: {e}")

        await publish_cancel_requested(self.event_bus, order, reason=reason)
        logger.info(f"Cancellation requested for order {order_id}")
        return order

    @staticmethod
    def _build_cancel_request(
        order: Order,
        reason: str,
        product_index: Optional[int] = None,
    ) -> CancelRequest:
        item = order.items[product_index] if product_index is not None else None
        details: Dict[str, Any] = {
            "customer_name": order.buyer_name,
            "customer_email": order.buyer_email,
            "total_amount": str(order.total_amount),
        }
        if item:
            details.update({
                "product_name": item.name,
                "quantity": item.quantity,
                "size": item.size,
                "price": str(item.price),
            })

        return CancelRequest(
            request_id=f"cr_{uuid.uuid4().hex[:12]}",
            order_id=order.order_id,
            seller_id=order.seller_id,
            buyer_id=order.buyer_id,
            product_id=item.product_id if item else None,
            product_index=product_index,
            reason=reason[:500],
            order_details=details,
        )

    async def submit_cancel_request(
        self,
        order_id: str,
        buyer_id: str,
        reason: str,
        product_id: Optional[str] = None,
        product_index: Optional[int] = None,
    ) -> CancelRequest:
        """
        Record a line-level cancellation request for the seller to review.

        The order itself is not changed until the seller responds.
        """
        if not reason:
            raise OrderValidationError("Cancellation reason is required")

        order = await self._load(order_id)
        self._check_owner(order, buyer_id=buyer_id)
        if order.delivery_status in (DeliveryStatus.DELIVERED, DeliveryStatus.CANCELLED):
            raise InvalidOrderStateError(
                f"Cannot request cancellation for a {order.delivery_status.value} order"
            )

        if await self.cancel_requests.get_pending_for_order(order_id):
            raise OrderValidationError("A cancellation request for this order is already pending")

        if product_index is None and product_id:
            product_index = next(
                (i for i, item in enumerate(order.items) if item.product_id == product_id), None
            )
            if product_index is None:
                raise OrderValidationError(f"Product {product_id} not found in order")
        if product_index is not None and not 0 <= product_index < len(order.items):
            raise OrderValidationError(f"Invalid product index: {product_index}")

        request = await self.cancel_requests.create_request(
            self._build_cancel_request(order, reason, product_index)
        )
        await publish_cancel_requested(self.event_bus, order, reason=reason, product_index=product_index)
        return request

    async def brand_respond_cancel(
        self,
        order_id: str,
        action: str,
        product_index: Optional[int] = None,
        admin_notes: Optional[str] = None,
        processed_by: Optional[str] = None,
        seller_id: Optional[str] = None,
    ) -> Order:
        """
        Seller approves or rejects a cancellation.

        Approving with product_index removes that line and recomputes the
        total; the order is Cancelled once no lines remain.
        """
        decision = _parse_action(action)

        def approve(order: Order) -> Order:
            self._check_owner(order, seller_id=seller_id)
            if not can_cancel(order):
                raise InvalidOrderStateError(
                    f"Cannot cancel an order that is {order.delivery_status.value}"
                )
            if product_index is not None:
                if not 0 <= product_index < len(order.items):
                    raise OrderValidationError(f"Invalid product index: {product_index}")
                _remove_line(order, product_index)
            else:
                order.delivery_status = DeliveryStatus.CANCELLED
            order.lifecycle_status = LifecycleStatus.CANCELLED
            order.cancel_approved_by = processed_by or "brand"
            return order

        def reject(order: Order) -> Order:
            self._check_owner(order, seller_id=seller_id)
            if not can_cancel(order):
                raise InvalidOrderStateError(
                    f"Cannot respond to cancellation of an order that is {order.delivery_status.value}"
                )
            order.lifecycle_status = LifecycleStatus.CANCEL_REJECTED
            if order.delivery_status == DeliveryStatus.CANCELLATION_REQUESTED:
                order.delivery_status = DeliveryStatus.PENDING
            return order

        if decision == ResponseAction.APPROVE:
            order = await self._transition(order_id, approve)
            await self._resolve_cancel_requests(
                order_id, CancelRequestStatus.APPROVED, processed_by or "Brand", admin_notes
            )
            await publish_cancel_approved(
                self.event_bus, order,
                processed_by=processed_by, product_index=product_index, admin_notes=admin_notes,
            )
            await self._notify(order, EmailTemplate.ORDER_CANCELLED, {
                "product_index": product_index,
                "total_amount": str(order.total_amount),
                "currency": order.currency,
            })
            logger.info(f"Cancellation approved for order {order_id}")
        else:
            order = await self._transition(order_id, reject)
            await self._resolve_cancel_requests(
                order_id, CancelRequestStatus.REJECTED, processed_by or "Brand", admin_notes
            )
            await publish_cancel_rejected(
                self.event_bus, order, processed_by=processed_by, admin_notes=admin_notes
            )
            logger.info(f"Cancellation rejected for order {order_id}")

        return order

    async def admin_cancel_order(self, order_id: str, product_id: Optional[str] = None) -> Order:
        """Direct cancellation of a whole order or one product line"""

        def mutate(order: Order) -> Order:
            if order.delivery_status == DeliveryStatus.DELIVERED:
                raise InvalidOrderStateError("Cannot cancel delivered order")
            if order.delivery_status == DeliveryStatus.CANCELLED:
                raise InvalidOrderStateError("Order is already cancelled")

            if product_id:
                index = next(
                    (i for i, item in enumerate(order.items) if item.product_id == product_id), None
                )
                if index is None:
                    raise OrderValidationError(f"Product {product_id} not found in order")
                _remove_line(order, index)
            else:
                order.delivery_status = DeliveryStatus.CANCELLED

            order.lifecycle_status = LifecycleStatus.CANCELLED
            order.cancel_approved_by = "admin"
            return order

        order = await self._transition(order_id, mutate)
        await self._resolve_cancel_requests(order_id, CancelRequestStatus.APPROVED, "Admin")
        await publish_cancel_approved(self.event_bus, order, processed_by="admin")
        await self._notify(order, EmailTemplate.ORDER_CANCELLED, {
            "total_amount": str(order.total_amount),
            "currency": order.currency,
        })
        return order

    # ====================
    # Refund workflow
    # ====================

    async def request_refund(
        self,
        order_id: str,
        reason: Optional[str] = None,
        buyer_id: Optional[str] = None,
    ) -> Order:
        """Buyer requests a refund on a delivered order"""

        def mutate(order: Order) -> Order:
            self._check_owner(order, buyer_id=buyer_id)
            if order.delivery_status != DeliveryStatus.DELIVERED:
                raise InvalidOrderStateError("Refund can only be requested for delivered orders")
            if order.lifecycle_status in REFUND_REQUEST_BLOCKED:
                raise InvalidOrderStateError(
                    f"Refund already {order.lifecycle_status.value.replace('refund_', '')} for this order"
                )
            order.lifecycle_status = LifecycleStatus.REFUND_REQUESTED
            order.refund_reason = reason or DEFAULT_REFUND_REASON
            return order

        order = await self._transition(order_id, mutate)
        await publish_refund_requested(self.event_bus, order, reason=order.refund_reason)
        logger.info(f"Refund requested for order {order_id}")
        return order

    async def respond_refund(self, order_id: str, action: str, notes: Optional[str] = None) -> Order:
        """Approve (no money moves) or reject a refund request"""
        decision = _parse_action(action)

        def mutate(order: Order) -> Order:
            if order.lifecycle_status != LifecycleStatus.REFUND_REQUESTED:
                raise InvalidOrderStateError(
                    f"No refund request to respond to (order is {order.lifecycle_status.value})"
                )
            if decision == ResponseAction.REJECT:
                order.lifecycle_status = LifecycleStatus.REFUND_REJECTED
                order.refund_reason = notes or order.refund_reason
            else:
                order.lifecycle_status = LifecycleStatus.REFUND_APPROVED
            return order

        order = await self._transition(order_id, mutate)

        if decision == ResponseAction.REJECT:
            await publish_refund_rejected(self.event_bus, order, notes=notes)
            await self._notify(order, EmailTemplate.REFUND_REJECTED, {"reason": order.refund_reason})
        else:
            await publish_refund_approved(self.event_bus, order, notes=notes)
            await self._notify(order, EmailTemplate.REFUND_APPROVED, {"notes": notes})

        logger.info(f"Refund {decision.value} for order {order_id}")
        return order

    def _validate_refund(self, order: Order, amount: Optional[Decimal], initiator: RefundInitiator) -> Decimal:
        if not is_refundable_state(order):
            raise InvalidOrderStateError("Order is not eligible for refund")

        remaining = refundable_balance(order)
        if remaining <= 0:
            raise OrderValidationError("Order already fully refunded")

        amount = remaining if amount is None or amount <= 0 else quantize_money(amount)
        if amount > remaining:
            raise OrderValidationError(
                f"Requested amount exceeds refundable balance ({amount} > {remaining})"
            )

        if initiator == RefundInitiator.PLATFORM and not order.payment_reference:
            raise OrderValidationError("Missing payment id")
        return amount

    async def _record_refund(self, order_id: str, event: RefundEvent) -> Order:
        """Append the event to the freshly loaded order; never calls the gateway"""
        try:
            async for attempt in optimistic_retry(self.config):
                with attempt:
                    current = backfill_refund_ledger(await self._load(order_id))
                    updated = apply_refund_event(current, event)
                    ensure_allowed(updated)
                    saved = await self.repository.save_order(updated, expected_version=current.version)
        except Exception as e:
            logger.critical(
                f"Refund {event.refund_reference} of {event.amount} on order {order_id} "
                f"was executed at the gateway but not recorded: {e}"
            )
            raise RefundRecordingError(
                f"Refund executed but not recorded for order {order_id}",
                order_id=order_id,
                refund_reference=event.refund_reference,
                amount=event.amount,
            ) from e
        return saved

    async def execute_refund(
        self,
        order_id: str,
        request: Optional[RefundExecutionRequest] = None,
    ) -> RefundResult:
        """
        Move money back to the buyer.

        The amount defaults to the remaining balance and is validated
        against it, so refunds may be executed in several tranches. The
        ledger is written only after the gateway confirms.

        Raises:
            InvalidOrderStateError: order not cancelled or refund-approved
            OrderValidationError: fully refunded, amount too large, or no payment id
            PaymentGatewayError: gateway failure (nothing recorded)
            RefundRecordingError: gateway succeeded, ledger write failed
        """
        request = request or RefundExecutionRequest()
        initiator = request.initiated_by

        order = backfill_refund_ledger(await self._load(order_id))
        amount = self._validate_refund(order, request.amount, initiator)

        refund_reference = None
        if order.payment_reference:
            if not self.payment_gateway:
                raise PaymentGatewayError("Payment gateway not configured")
            try:
                refund_reference = await self.payment_gateway.refund(order.payment_reference, amount)
            except PaymentGatewayError:
                raise
            except Exception as e:
                raise PaymentGatewayError(f"Payment gateway refund failed: {e}") from e
        else:
            logger.info(f"Recording manual {initiator.value} refund of {amount} for order {order_id}")

        event = RefundEvent(
            amount=amount,
            initiated_by=initiator,
            payment_reference=order.payment_reference,
            refund_reference=refund_reference,
            notes=request.notes,
        )
        order = await self._record_refund(order_id, event)
        remaining = refundable_balance(order)

        await self._resolve_cancel_requests(order_id, CancelRequestStatus.APPROVED, "Admin")
        await publish_refund_processed(
            self.event_bus, order,
            refund_amount=amount,
            initiated_by=initiator.value,
            refund_reference=refund_reference,
            remaining_balance=remaining,
        )
        await self._notify(order, EmailTemplate.REFUND_PROCESSED, {
            "amount": str(amount),
            "currency": order.currency,
            "refund_reference": refund_reference,
        })

        logger.info(
            f"✅ Refund of {amount} ({initiator.value}) executed for order {order_id}, "
            f"remaining {remaining}"
        )
        return RefundResult(order=order, event=event, remaining_balance=remaining)

    # ====================
    # Delivery
    # ====================

    async def mark_delivered(self, order_id: str) -> DeliveryResult:
        """
        Mark an order delivered and settle its stock exactly once.

        If stock was deducted at creation only the delivery flag is set.
        Otherwise the delivery flag is claimed in the same versioned write,
        so concurrent calls cannot both deduct.
        """
        claimed = False
        message: Optional[str] = None

        def mutate(order: Order) -> Order:
            nonlocal claimed, message
            claimed = False
            if order.delivery_status == DeliveryStatus.CANCELLED:
                raise InvalidOrderStateError("Cannot deliver a cancelled order")

            order.delivery_status = DeliveryStatus.DELIVERED
            order.delivered_at = order.delivered_at or _now()
            if order.stock_updated:
                message = "Stock already updated for this order"
            else:
                order.stock_updated = True
                order.stock_updated_at = _now()
                claimed = not order.stock_deducted
                message = None if claimed else "Stock already deducted on order creation"
            return order

        order = await self._transition(order_id, mutate)

        adjustments: List[Dict[str, Any]] = []
        if claimed:
            try:
                results = await self.inventory.deduct_for_order(self._stock_lines(order))
                adjustments = [r.model_dump() for r in results]
            except Exception as e:
                logger.error(f"❌ Stock deduction on delivery failed for order {order_id}: {e}")

                def release(o: Order) -> Order:
                    o.stock_updated = False
                    o.stock_updated_at = None
                    return o

                try:
                    await self._transition(order_id, release, check_state=False)
                except Exception as release_error:
                    logger.critical(
                        f"❌ Could not release stock claim for order {order_id}; "
                        f"stock_updated stays set without a deduction: {release_error}"
                    )
                raise e

            def mark_deducted(o: Order) -> Order:
                o.stock_deducted = True
                o.stock_deducted_at = _now()
                return o

            try:
                order = await self._transition(order_id, mark_deducted)
            except Exception as e:
                logger.error(f"Failed to record stock_deducted for order {order_id}: {e}")
            message = "Stock deducted on delivery"

        await publish_stock_updated(self.event_bus, order, stock_updates=adjustments, message=message)
        logger.info(f"Order {order_id} delivered: {message}")
        return DeliveryResult(order=order, stock_adjustments=adjustments, message=message)

    # ====================
    # Maintenance & queries
    # ====================

    async def backfill_legacy_orders(self, limit: int = 100) -> int:
        """Migrate orders predating the refund ledger; returns the count"""
        migrated = 0
        for legacy in await self.repository.list_legacy_orders(limit=limit):
            await self._transition(legacy.order_id, backfill_refund_ledger, check_state=False)
            migrated += 1
        if migrated:
            logger.info(f"Backfilled refund ledger on {migrated} legacy order(s)")
        return migrated

    async def get_order(self, order_id: str) -> Order:
        """Get order by ID"""
        return await self._load(order_id)

    async def get_refundable_balance(self, order_id: str) -> Decimal:
        order = await self._load(order_id)
        return refundable_balance(order)

    async def list_cancel_requests(
        self, seller_id: str, status: Optional[CancelRequestStatus] = None
    ) -> List[CancelRequest]:
        return await self.cancel_requests.list_for_seller(seller_id, status=status)
