"""
Payout Service Protocols (Interfaces)

These interfaces define contracts for dependency injection.
NO import-time I/O dependencies - safe to import anywhere.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional, Protocol, runtime_checkable

from core.errors import CommerceError, ValidationError

# Import only models (no I/O dependencies)
from microservices.order_service.models import Order
from .models import PayoutRecord


# ============================================================================
# Custom Exceptions - defined here to avoid importing repository
# ============================================================================

class PayoutServiceError(CommerceError):
    """Base exception for payout service errors"""
    pass


class PayoutValidationError(ValidationError):
    """Missing seller, non-positive amount, or amount above the pending cap"""
    pass


# ============================================================================
# Repository Protocols
# ============================================================================

@runtime_checkable
class PayoutRepositoryProtocol(Protocol):
    """Interface for Payout Repository"""

    async def list_payouts(self, seller_id: str) -> List[PayoutRecord]:
        """All payouts of a seller, newest first"""
        ...

    async def total_paid(self, seller_id: str) -> Decimal:
        """Sum of all payout amounts of a seller"""
        ...

    async def create_payout(self, record: PayoutRecord, cap: Decimal) -> PayoutRecord:
        """
        Insert the payout only if the seller's total paid plus its amount
        stays within cap. Must check and insert atomically per seller.

        Raises:
            PayoutValidationError: cap would be exceeded
        """
        ...


@runtime_checkable
class OrderReaderProtocol(Protocol):
    """Read-only view of the order store"""

    async def list_seller_orders(self, seller_id: str) -> List[Order]:
        ...

    async def list_seller_ids(self) -> List[str]:
        ...

    async def list_orders(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> List[Order]:
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
