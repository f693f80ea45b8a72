"""
Inventory Service Data Models

Product stock is either a scalar counter or a per-variant (color x size) map.
Counters are floored at zero and never negative.
"""

from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field


class SizeStock(BaseModel):
    """Stock cell for one size of a color variant"""
    size: str
    stock: int = Field(default=0, ge=0)


class ColorVariant(BaseModel):
    """Color variant with its size cells"""
    color: Optional[str] = None
    sizes: List[SizeStock] = Field(default_factory=list)


class ProductStock(BaseModel):
    """Stock record for a product"""
    product_id: str
    seller_id: Optional[str] = None
    name: Optional[str] = None
    stock: int = Field(default=0, ge=0)
    variants: List[ColorVariant] = Field(default_factory=list)
    version: int = 1
    updated_at: Optional[datetime] = None

    @property
    def has_variants(self) -> bool:
        return len(self.variants) > 0

    def available(self, size: Optional[str] = None) -> int:
        """Sum of matching variant cells, or the scalar counter"""
        if not self.has_variants:
            return self.stock
        return sum(
            cell.stock
            for variant in self.variants
            for cell in variant.sizes
            if size is None or cell.size == size
        )


class StockLine(BaseModel):
    """A quantity of a product (and optional size) to check or move"""
    product_id: str
    quantity: int = Field(default=1, gt=0)
    size: Optional[str] = None
    name: Optional[str] = None


class StockAdjustment(BaseModel):
    """Result of a single stock mutation"""
    product_id: str
    product_name: Optional[str] = None
    size: Optional[str] = None
    delta: int
    previous_stock: int
    new_stock: int
    scalar_fallback: bool = False


class StockLevel(BaseModel):
    """Product and its current total stock"""
    product_id: str
    name: Optional[str] = None
    stock: int


class InventorySummary(BaseModel):
    """Seller inventory summary"""
    total_products: int = 0
    total_stock: int = 0
    low_stock_threshold: int = 5
    low_stock_products: List[StockLevel] = Field(default_factory=list)
    out_of_stock_products: List[StockLevel] = Field(default_factory=list)

    @property
    def low_stock_count(self) -> int:
        return len(self.low_stock_products)

    @property
    def out_of_stock_count(self) -> int:
        return len(self.out_of_stock_products)
