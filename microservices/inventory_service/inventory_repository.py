"""
Inventory Repository

Data access layer for product stock using the asyncpg client wrapper.
Matches schema: commerce.products (variants stored as JSONB)
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from core.config import get_settings
from core.postgres_client import PostgresClientWrapper, get_postgres_client

from .models import ColorVariant, ProductStock
from .protocols import ProductVersionConflictError

logger = logging.getLogger(__name__)


class InventoryRepository:
    """
    Repository for product stock operations.

    Tables:
        - commerce.products: scalar stock, JSONB variants, version
    """

    def __init__(self, db: Optional[PostgresClientWrapper] = None):
        """Initialize Inventory Repository with the PostgreSQL client"""
        self.db = db or get_postgres_client("inventory_service")
        self.schema = get_settings().infrastructure.postgres_schema
        self.products_table = "products"

        logger.info("InventoryRepository initialized with PostgresClient")

    @property
    def _table(self) -> str:
        return f'"{self.schema}".{self.products_table}'

    async def get_product(self, product_id: str) -> Optional[ProductStock]:
        """Get product stock by ID"""
        try:
            query = f"SELECT * FROM {self._table} WHERE product_id = $1"
            row = await self.db.query_row(query, [product_id])
            return self._row_to_product(row) if row else None
        except Exception as e:
            logger.error(f"Failed to get product {product_id}: {e}")
            raise

    async def save_product(self, product: ProductStock, expected_version: int) -> ProductStock:
        """Write stock if the stored version is still expected_version"""
        now = product.updated_at or datetime.now(timezone.utc)
        variants = json.dumps([v.model_dump() for v in product.variants])

        query = f"""
            UPDATE {self._table}
            SET stock = $1, variants = $2::jsonb, version = version + 1, updated_at = $3
            WHERE product_id = $4 AND version = $5
        """
        count = await self.db.execute(
            query, [product.stock, variants, now, product.product_id, expected_version]
        )
        if count == 0:
            raise ProductVersionConflictError(
                f"Product {product.product_id} changed since version {expected_version}"
            )

        return product.model_copy(update={"version": expected_version + 1, "updated_at": now})

    async def list_products(self, seller_id: Optional[str] = None) -> List[ProductStock]:
        """List products, optionally for one seller"""
        try:
            if seller_id:
                query = f"SELECT * FROM {self._table} WHERE seller_id = $1 ORDER BY product_id"
                rows = await self.db.query(query, [seller_id])
            else:
                query = f"SELECT * FROM {self._table} ORDER BY product_id"
                rows = await self.db.query(query)
            return [self._row_to_product(row) for row in rows]
        except Exception as e:
            logger.error(f"Failed to list products: {e}")
            raise

    def _row_to_product(self, row: Dict[str, Any]) -> ProductStock:
        variants = row.get("variants") or []
        if isinstance(variants, str):
            variants = json.loads(variants)

        return ProductStock(
            product_id=row["product_id"],
            seller_id=row.get("seller_id"),
            name=row.get("name"),
            stock=max(0, row.get("stock") or 0),
            variants=[ColorVariant(**v) for v in variants],
            version=row.get("version") or 1,
            updated_at=row.get("updated_at"),
        )
