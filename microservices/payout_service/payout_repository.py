"""
Payout Repository

Data access layer for seller payouts.
Matches schema: commerce.payouts
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from core.config import get_settings
from core.postgres_client import PostgresClientWrapper, get_postgres_client

from .models import PayoutRecord
from .protocols import PayoutValidationError

logger = logging.getLogger(__name__)


class PayoutRepository:
    """
    Repository for payout records.

    Payouts are append-only; the cap check and the insert share one
    transaction holding a per-seller advisory lock.
    """

    def __init__(self, db: Optional[PostgresClientWrapper] = None):
        self.db = db or get_postgres_client("payout_service")
        self.schema = get_settings().infrastructure.postgres_schema
        self.payouts_table = "payouts"

        logger.info("PayoutRepository initialized with PostgresClient")

    @property
    def _table(self) -> str:
        return f'"{self.schema}".{self.payouts_table}'

    async def list_payouts(self, seller_id: str) -> List[PayoutRecord]:
        """All payouts of a seller, newest first"""
        try:
            query = f"SELECT * FROM {self._table} WHERE seller_id = $1 ORDER BY created_at DESC"
            rows = await self.db.query(query, [seller_id])
            return [self._row_to_payout(row) for row in rows]
        except Exception as e:
            logger.error(f"Failed to list payouts for seller {seller_id}: {e}")
            raise

    async def total_paid(self, seller_id: str) -> Decimal:
        query = f"SELECT COALESCE(SUM(amount), 0) AS total FROM {self._table} WHERE seller_id = $1"
        row = await self.db.query_row(query, [seller_id])
        return Decimal(row["total"]) if row else Decimal("0")

    async def create_payout(self, record: PayoutRecord, cap: Decimal) -> PayoutRecord:
        """Insert the payout if the seller's paid total stays within cap"""
        async with self.db.transaction() as conn:
            await conn.execute("SELECT pg_advisory_xact_lock(hashtext($1))", record.seller_id)

            paid = await conn.fetchval(
                f"SELECT COALESCE(SUM(amount), 0) FROM {self._table} WHERE seller_id = $1",
                record.seller_id,
            )
            if Decimal(paid) + record.amount > cap:
                raise PayoutValidationError(
                    f"Payout amount {record.amount} exceeds pending amount {max(cap - Decimal(paid), Decimal('0'))}"
                )

            await conn.execute(
                f"""
                INSERT INTO {self._table} (
                    payout_id, seller_id, amount, currency, status,
                    external_reference, notes, created_at
                ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                """,
                record.payout_id,
                record.seller_id,
                record.amount,
                record.currency,
                record.status.value,
                record.external_reference,
                record.notes,
                record.created_at,
            )

        logger.info(f"Payout {record.payout_id} stored for seller {record.seller_id}")
        return record

    def _row_to_payout(self, row: Dict[str, Any]) -> PayoutRecord:
        return PayoutRecord(**{k: v for k, v in row.items() if v is not None})
