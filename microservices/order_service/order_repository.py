"""
Order Repository

Data access layer for orders using the asyncpg client wrapper.
Matches schema: commerce.orders (line items and refund events stored as JSONB)
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from core.config import get_settings
from core.postgres_client import PostgresClientWrapper, get_postgres_client

from .models import CURRENT_SCHEMA_VERSION, Order, OrderLineItem, RefundEvent
from .protocols import OrderVersionConflictError

logger = logging.getLogger(__name__)

# Columns written on insert and on every versioned save
_MUTABLE_COLUMNS = [
    "buyer_email",
    "buyer_name",
    "items",
    "address",
    "estimated_delivery",
    "delivery_status",
    "lifecycle_status",
    "payment_status",
    "refund_status",
    "total_amount",
    "currency",
    "payment_reference",
    "refunded_amount",
    "platform_refunded_amount",
    "brand_refunded_amount",
    "refunds",
    "last_refund_reference",
    "cancel_requested_by",
    "cancel_approved_by",
    "refund_reason",
    "stock_deducted",
    "stock_deducted_at",
    "stock_updated",
    "stock_updated_at",
    "delivered_at",
    "updated_at",
    "schema_version",
]

_JSONB_COLUMNS = {"items", "refunds"}


class OrderRepository:
    """
    Repository for order data operations.

    Tables:
        - commerce.orders: order aggregate with a version column
    """

    def __init__(self, db: Optional[PostgresClientWrapper] = None):
        """Initialize Order Repository with the PostgreSQL client"""
        self.db = db or get_postgres_client("order_service")
        self.schema = get_settings().infrastructure.postgres_schema
        self.orders_table = "orders"

        logger.info("OrderRepository initialized with PostgresClient")

    @property
    def _table(self) -> str:
        return f'"{self.schema}".{self.orders_table}'

    def _column_values(self, order: Order) -> List[Any]:
        values = []
        for column in _MUTABLE_COLUMNS:
            value = getattr(order, column)
            if column in _JSONB_COLUMNS:
                value = json.dumps([entry.model_dump(mode="json") for entry in value])
            elif hasattr(value, "value"):
                value = value.value
            values.append(value)
        return values

    async def create_order(self, order: Order) -> Order:
        """Insert a new order at version 1"""
        try:
            columns = ["order_id", "buyer_id", "seller_id", "created_at", "version", *_MUTABLE_COLUMNS]
            values = [order.order_id, order.buyer_id, order.seller_id, order.created_at, 1]
            values.extend(self._column_values(order))

            placeholders = ", ".join(
                f"${i}::jsonb" if column in _JSONB_COLUMNS else f"${i}"
                for i, column in enumerate(columns, start=1)
            )
            query = f"INSERT INTO {self._table} ({', '.join(columns)}) VALUES ({placeholders})"

            await self.db.execute(query, values)
            return order.model_copy(update={"version": 1})

        except Exception as e:
            logger.error(f"Failed to create order {order.order_id}: {e}")
            raise

    async def get_order(self, order_id: str) -> Optional[Order]:
        """Get order by ID"""
        try:
            query = f"SELECT * FROM {self._table} WHERE order_id = $1"
            row = await self.db.query_row(query, [order_id])
            return self._row_to_order(row) if row else None

        except Exception as e:
            logger.error(f"Failed to get order {order_id}: {e}")
            raise

    async def save_order(self, order: Order, expected_version: int) -> Order:
        """Write the order if the stored version is still expected_version"""
        set_clauses = [
            f"{column} = ${i}::jsonb" if column in _JSONB_COLUMNS else f"{column} = ${i}"
            for i, column in enumerate(_MUTABLE_COLUMNS, start=1)
        ]
        params = self._column_values(order)
        params.extend([order.order_id, expected_version])
        n = len(_MUTABLE_COLUMNS)

        query = f"""
            UPDATE {self._table}
            SET {', '.join(set_clauses)}, version = version + 1
            WHERE order_id = ${n + 1} AND version = ${n + 2}
        """
        count = await self.db.execute(query, params)
        if count == 0:
            raise OrderVersionConflictError(
                f"Order {order.order_id} changed since version {expected_version}"
            )

        return order.model_copy(update={"version": expected_version + 1})

    async def list_seller_orders(self, seller_id: str) -> List[Order]:
        """All orders of a seller, oldest first"""
        try:
            query = f"SELECT * FROM {self._table} WHERE seller_id = $1 ORDER BY created_at"
            rows = await self.db.query(query, [seller_id])
            return [self._row_to_order(row) for row in rows]

        except Exception as e:
            logger.error(f"Failed to list orders for seller {seller_id}: {e}")
            raise

    async def list_orders(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> List[Order]:
        """All orders, optionally bounded (inclusive) by created_at"""
        conditions = []
        params: List[Any] = []
        if start:
            params.append(start)
            conditions.append(f"created_at >= ${len(params)}")
        if end:
            params.append(end)
            conditions.append(f"created_at <= ${len(params)}")

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        rows = await self.db.query(f"SELECT * FROM {self._table} {where} ORDER BY created_at", params)
        return [self._row_to_order(row) for row in rows]

    async def list_seller_ids(self) -> List[str]:
        """Distinct sellers that have at least one order"""
        rows = await self.db.query(f"SELECT DISTINCT seller_id FROM {self._table} ORDER BY seller_id")
        return [row["seller_id"] for row in rows]

    async def list_legacy_orders(self, limit: int = 100) -> List[Order]:
        """Orders written before the refund ledger was introduced"""
        query = f"""
            SELECT * FROM {self._table}
            WHERE schema_version < $1
            ORDER BY created_at
            LIMIT $2
        """
        rows = await self.db.query(query, [CURRENT_SCHEMA_VERSION, limit])
        return [self._row_to_order(row) for row in rows]

    def _row_to_order(self, row: Dict[str, Any]) -> Order:
        """Convert database row to Order model"""
        items = row.get("items") or []
        if isinstance(items, str):
            items = json.loads(items)
        refunds = row.get("refunds") or []
        if isinstance(refunds, str):
            refunds = json.loads(refunds)

        data = {k: v for k, v in row.items() if v is not None and k not in _JSONB_COLUMNS}
        data["items"] = [OrderLineItem(**item) for item in items]
        data["refunds"] = [RefundEvent(**event) for event in refunds]
        # Rows predating the ledger columns carry no schema_version
        data.setdefault("schema_version", 1)
        data.setdefault("updated_at", data.get("created_at") or datetime.now(timezone.utc))

        return Order(**data)
