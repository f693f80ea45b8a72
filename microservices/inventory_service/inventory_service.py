"""
Inventory Service Business Logic

Stock ledger for products with a scalar counter or color x size variants.
Every write is version-checked; stale writes are retried.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from core.config import CommerceConfig
from core.retry import optimistic_retry

from .models import (
    InventorySummary,
    ProductStock,
    StockAdjustment,
    StockLevel,
    StockLine,
)
from .protocols import (
    ProductNotFoundError,
    ProductStockRepositoryProtocol,
    StockValidationError,
)

logger = logging.getLogger(__name__)


# ============================================================================
# Stock arithmetic (pure)
# ============================================================================

def reduce_product_stock(
    product: ProductStock, quantity: int, size: Optional[str] = None
) -> Tuple[ProductStock, StockAdjustment]:
    """Subtract quantity from the first matching size cell, else the scalar.

    Results are floored at zero.
    """
    updated = product.model_copy(deep=True)
    previous = product.available(size)

    cell = None
    if updated.has_variants:
        cell = next(
            (c for v in updated.variants for c in v.sizes if c.size == size),
            None,
        )
        if cell is None:
            logger.warning(
                f"Size {size} not found in variants for product {product.product_id}, "
                f"falling back to scalar stock"
            )

    if cell is not None:
        cell.stock = max(0, cell.stock - quantity)
    else:
        updated.stock = max(0, updated.stock - quantity)

    adjustment = StockAdjustment(
        product_id=product.product_id,
        product_name=product.name,
        size=size,
        delta=-quantity,
        previous_stock=previous,
        new_stock=updated.available(size),
        scalar_fallback=updated.has_variants and cell is None,
    )
    return updated, adjustment


def add_product_stock(
    product: ProductStock, quantity: int, size: Optional[str] = None
) -> Tuple[ProductStock, StockAdjustment]:
    """Add quantity to matching size cells (every cell when size is None)"""
    updated = product.model_copy(deep=True)
    previous = product.available(size)

    matched = False
    for variant in updated.variants:
        for cell in variant.sizes:
            if size is None or cell.size == size:
                cell.stock += quantity
                matched = True

    if not matched:
        if updated.has_variants:
            logger.warning(
                f"Size {size} not found in variants for product {product.product_id}, "
                f"adding to scalar stock"
            )
        updated.stock += quantity

    adjustment = StockAdjustment(
        product_id=product.product_id,
        product_name=product.name,
        size=size,
        delta=quantity,
        previous_stock=previous,
        new_stock=updated.available(size),
        scalar_fallback=updated.has_variants and not matched,
    )
    return updated, adjustment


# ============================================================================
# Service
# ============================================================================

class InventoryLedgerService:
    """
    Inventory ledger business logic

    Used by the order lifecycle for the creation-time pre-check and for
    stock deduction at creation or delivery.
    """

    def __init__(
        self,
        repository: ProductStockRepositoryProtocol,
        config: Optional[CommerceConfig] = None,
    ):
        """
        Initialize Inventory Ledger Service

        Args:
            repository: Product stock repository
            config: Commerce policy (retry settings, low-stock threshold)
        """
        self.repository = repository
        self.config = config or CommerceConfig()

        logger.info("✅ InventoryLedgerService initialized")

    async def _load(self, product_id: str) -> ProductStock:
        product = await self.repository.get_product(product_id)
        if not product:
            raise ProductNotFoundError(f"Product not found: {product_id}")
        return product

    @staticmethod
    def _validate_quantity(quantity: int):
        if quantity is None or quantity <= 0:
            raise StockValidationError(f"Quantity must be positive, got {quantity}")

    async def get_stock(self, product_id: str, size: Optional[str] = None) -> int:
        """Current stock of a product, optionally for one size"""
        product = await self._load(product_id)
        return product.available(size)

    async def reduce_stock(
        self, product_id: str, quantity: int, size: Optional[str] = None
    ) -> StockAdjustment:
        """Reduce stock, floored at zero"""
        self._validate_quantity(quantity)

        async for attempt in optimistic_retry(self.config):
            with attempt:
                product = await self._load(product_id)
                updated, adjustment = reduce_product_stock(product, quantity, size)
                updated.updated_at = datetime.now(timezone.utc)
                await self.repository.save_product(updated, expected_version=product.version)

        logger.info(
            f"📦 Reduced stock for {product_id} (size={size}): "
            f"{adjustment.previous_stock} → {adjustment.new_stock}"
        )
        return adjustment

    async def add_stock(
        self, product_id: str, quantity: int, size: Optional[str] = None
    ) -> StockAdjustment:
        """Add stock; without a size every variant cell is restocked"""
        self._validate_quantity(quantity)

        async for attempt in optimistic_retry(self.config):
            with attempt:
                product = await self._load(product_id)
                updated, adjustment = add_product_stock(product, quantity, size)
                updated.updated_at = datetime.now(timezone.utc)
                await self.repository.save_product(updated, expected_version=product.version)

        logger.info(f"📦 Added {quantity} stock to {product_id} (size={size})")
        return adjustment

    async def check_availability(self, lines: List[StockLine]) -> List[str]:
        """
        Pre-check stock for a set of order lines.

        Quantities are summed per (product, size) before comparing, so two
        lines for the same stock cell cannot each pass on their own.

        Returns:
            One message per product/size that is missing or short; empty when all fit
        """
        requested: Dict[Tuple[str, Optional[str]], int] = {}
        first_line: Dict[Tuple[str, Optional[str]], StockLine] = {}
        for line in lines:
            key = (line.product_id, line.size)
            requested[key] = requested.get(key, 0) + line.quantity
            first_line.setdefault(key, line)

        errors: List[str] = []
        products: Dict[str, Optional[ProductStock]] = {}
        for (product_id, size), quantity in requested.items():
            if product_id not in products:
                products[product_id] = await self.repository.get_product(product_id)
                if not products[product_id]:
                    errors.append(f"Product {product_id} not found")
            product = products[product_id]
            if not product:
                continue

            available = product.available(size)
            if available < quantity:
                label = product.name or first_line[(product_id, size)].name or product_id
                size_note = f" (size {size})" if size else ""
                errors.append(
                    f"Insufficient stock for {label}{size_note}: "
                    f"requested {quantity}, available {available}"
                )
        return errors

    async def deduct_for_order(self, lines: List[StockLine]) -> List[StockAdjustment]:
        """Reduce stock for every line; the first failure propagates"""
        adjustments = []
        for line in lines:
            adjustments.append(await self.reduce_stock(line.product_id, line.quantity, line.size))
        return adjustments

    async def get_inventory_summary(self, seller_id: Optional[str] = None) -> InventorySummary:
        """Totals plus low-stock and out-of-stock products"""
        products = await self.repository.list_products(seller_id=seller_id)
        threshold = self.config.low_stock_threshold

        summary = InventorySummary(total_products=len(products), low_stock_threshold=threshold)
        for product in products:
            stock = product.available()
            summary.total_stock += stock
            level = StockLevel(product_id=product.product_id, name=product.name, stock=stock)
            if stock == 0:
                summary.out_of_stock_products.append(level)
            elif stock <= threshold:
                summary.low_stock_products.append(level)

        return summary
