"""
Inventory Service Protocols (Interfaces)

These interfaces define contracts for dependency injection.
NO import-time I/O dependencies - safe to import anywhere.
"""
from typing import List, Optional, Protocol, runtime_checkable

from core.errors import (
    CommerceError,
    ConcurrencyError,
    NotFoundError,
    ValidationError,
)

# Import only models (no I/O dependencies)
from .models import ProductStock


# ============================================================================
# Custom Exceptions - defined here to avoid importing repository
# ============================================================================

class InventoryServiceError(CommerceError):
    """Base exception for inventory service errors"""
    pass


class ProductNotFoundError(NotFoundError):
    """Product not found error"""
    pass


class StockValidationError(ValidationError):
    """Invalid quantity or insufficient stock"""
    pass


class ProductVersionConflictError(ConcurrencyError):
    """Product was modified since it was read"""
    pass


# ============================================================================
# Repository Protocol
# ============================================================================

@runtime_checkable
class ProductStockRepositoryProtocol(Protocol):
    """
    Interface for Product Stock Repository.

    save_product must only write when the stored version equals
    expected_version, and must bump the version on success.
    """

    async def get_product(self, product_id: str) -> Optional[ProductStock]:
        """Get product stock by ID"""
        ...

    async def save_product(self, product: ProductStock, expected_version: int) -> ProductStock:
        """Persist stock; raise ProductVersionConflictError on a stale version"""
        ...

    async def list_products(self, seller_id: Optional[str] = None) -> List[ProductStock]:
        """List products, optionally for one seller"""
        ...
