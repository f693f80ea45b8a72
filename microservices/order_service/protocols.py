"""
Order Service Protocols (Interfaces)

These interfaces define contracts for dependency injection.
NO import-time I/O dependencies - safe to import anywhere.
"""
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from core.errors import (
    CommerceError,
    ConcurrencyError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)

# Import only models (no I/O dependencies)
from .models import CancelRequest, CancelRequestStatus, Order


# ============================================================================
# Custom Exceptions - defined here to avoid importing repository
# ============================================================================

class OrderServiceError(CommerceError):
    """Base exception for order service errors"""
    pass


class OrderNotFoundError(NotFoundError):
    """Order not found error"""
    pass


class OrderValidationError(ValidationError):
    """Order validation error"""
    pass


class InvalidOrderStateError(ValidationError):
    """Invalid order state transition"""
    pass


class RefundInvariantError(ValidationError):
    """Refund totals would violate platform + brand == refunded <= total"""
    pass


class PaymentGatewayError(ExternalServiceError):
    """Payment gateway rejected or failed the refund"""
    pass


class OrderVersionConflictError(ConcurrencyError):
    """Order was modified since it was read"""
    pass


class RefundRecordingError(OrderServiceError):
    """Gateway refund succeeded but the ledger write failed.

    Carries the gateway refund reference for manual reconciliation.
    """

    def __init__(self, message: str, order_id: str, refund_reference: Optional[str], amount: Decimal):
        super().__init__(message)
        self.order_id = order_id
        self.refund_reference = refund_reference
        self.amount = amount


# ============================================================================
# Repository Protocols
# ============================================================================

@runtime_checkable
class OrderRepositoryProtocol(Protocol):
    """
    Interface for Order Repository.

    save_order must only write when the stored version equals
    expected_version, and must bump the version on success.
    """

    async def create_order(self, order: Order) -> Order:
        """Insert a new order"""
        ...

    async def get_order(self, order_id: str) -> Optional[Order]:
        """Get order by ID"""
        ...

    async def save_order(self, order: Order, expected_version: int) -> Order:
        """Persist order; raise OrderVersionConflictError on a stale version"""
        ...

    async def list_seller_orders(self, seller_id: str) -> List[Order]:
        """All orders of a seller"""
        ...

    async def list_legacy_orders(self, limit: int = 100) -> List[Order]:
        """Orders predating the refund ledger (schema_version < 2)"""
        ...


@runtime_checkable
class CancelRequestRepositoryProtocol(Protocol):
    """Interface for Cancel Request Repository"""

    async def create_request(self, request: CancelRequest) -> CancelRequest:
        """Insert a new cancel request"""
        ...

    async def get_pending_for_order(self, order_id: str) -> List[CancelRequest]:
        """Pending cancel requests of an order"""
        ...

    async def resolve_pending(
        self,
        order_id: str,
        status: CancelRequestStatus,
        processed_by: str,
        admin_notes: Optional[str] = None,
    ) -> int:
        """Mark every pending request of an order; returns the count"""
        ...

    async def list_for_seller(
        self, seller_id: str, status: Optional[CancelRequestStatus] = None
    ) -> List[CancelRequest]:
        """Cancel requests addressed to a seller"""
        ...


# ============================================================================
# Event Bus Protocol
# ============================================================================

@runtime_checkable
class EventBusProtocol(Protocol):
    """Interface for Event Bus - no I/O imports"""

    async def publish_event(self, event: Any) -> None:
        """Publish an event"""
        ...


# ============================================================================
# Collaborator Protocols
# ============================================================================

@runtime_checkable
class InventoryLedgerProtocol(Protocol):
    """Interface for the Inventory Ledger (product stock get/reduce/add)"""

    async def get_stock(self, product_id: str, size: Optional[str] = None) -> int:
        ...

    async def reduce_stock(self, product_id: str, quantity: int, size: Optional[str] = None) -> Any:
        ...

    async def add_stock(self, product_id: str, quantity: int, size: Optional[str] = None) -> Any:
        ...

    async def check_availability(self, lines: List[Any]) -> List[str]:
        ...

    async def deduct_for_order(self, lines: List[Any]) -> List[Any]:
        ...


@runtime_checkable
class PaymentGatewayProtocol(Protocol):
    """Interface for the Payment Gateway Adapter"""

    async def refund(self, payment_reference: str, amount: Decimal) -> str:
        """Refund amount against a payment; returns the refund reference.

        Raises PaymentGatewayError on failure.
        """
        ...


class EmailTemplate(str, Enum):
    """Buyer e-mail templates"""
    ORDER_CANCELLED = "order_cancelled"
    REFUND_APPROVED = "refund_approved"
    REFUND_REJECTED = "refund_rejected"
    REFUND_PROCESSED = "refund_processed"


@runtime_checkable
class EmailNotifierProtocol(Protocol):
    """Interface for the Email Notifier (fire-and-forget)"""

    async def send(self, recipient: str, template: EmailTemplate, data: Dict[str, Any]) -> bool:
        """Send a templated e-mail; never raises"""
        ...
