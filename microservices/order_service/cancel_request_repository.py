"""
Cancel Request Repository

Data access layer for buyer cancellation requests.
Matches schema: commerce.cancel_requests
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from core.config import get_settings
from core.postgres_client import PostgresClientWrapper, get_postgres_client

from .models import CancelRequest, CancelRequestStatus

logger = logging.getLogger(__name__)


class CancelRequestRepository:
    """Repository for cancellation requests"""

    def __init__(self, db: Optional[PostgresClientWrapper] = None):
        self.db = db or get_postgres_client("order_service")
        self.schema = get_settings().infrastructure.postgres_schema
        self.requests_table = "cancel_requests"

        logger.info("CancelRequestRepository initialized with PostgresClient")

    @property
    def _table(self) -> str:
        return f'"{self.schema}".{self.requests_table}'

    async def create_request(self, request: CancelRequest) -> CancelRequest:
        """Insert a pending cancellation request"""
        try:
            query = f"""
                INSERT INTO {self._table} (
                    request_id, order_id, seller_id, buyer_id, product_id, product_index,
                    reason, status, requested_at, order_details
                ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10::jsonb)
            """
            await self.db.execute(query, [
                request.request_id,
                request.order_id,
                request.seller_id,
                request.buyer_id,
                request.product_id,
                request.product_index,
                request.reason,
                request.status.value,
                request.requested_at,
                json.dumps(request.order_details),
            ])
            logger.info(f"Cancel request {request.request_id} created for order {request.order_id}")
            return request

        except Exception as e:
            logger.error(f"Failed to create cancel request for order {request.order_id}: {e}")
            raise

    async def get_pending_for_order(self, order_id: str) -> Optional[CancelRequest]:
        query = f"""
            SELECT * FROM {self._table}
            WHERE order_id = $1 AND status = $2
            ORDER BY requested_at DESC
            LIMIT 1
        """
        row = await self.db.query_row(query, [order_id, CancelRequestStatus.PENDING.value])
        return self._row_to_request(row) if row else None

    async def resolve_pending(
        self,
        order_id: str,
        status: CancelRequestStatus,
        processed_by: str,
        admin_notes: Optional[str] = None,
    ) -> int:
        """Mark every pending request of the order; returns how many changed"""
        query = f"""
            UPDATE {self._table}
            SET status = $1, processed_at = $2, processed_by = $3,
                admin_notes = COALESCE($4, admin_notes)
            WHERE order_id = $5 AND status = $6
        """
        return await self.db.execute(query, [
            status.value,
            datetime.now(timezone.utc),
            processed_by,
            admin_notes,
            order_id,
            CancelRequestStatus.PENDING.value,
        ])

    async def list_for_seller(
        self,
        seller_id: str,
        status: Optional[CancelRequestStatus] = None,
    ) -> List[CancelRequest]:
        """Requests addressed to a seller, newest first"""
        try:
            if status:
                query = f"""
                    SELECT * FROM {self._table}
                    WHERE seller_id = $1 AND status = $2
                    ORDER BY requested_at DESC
                """
                rows = await self.db.query(query, [seller_id, status.value])
            else:
                query = f"SELECT * FROM {self._table} WHERE seller_id = $1 ORDER BY requested_at DESC"
                rows = await self.db.query(query, [seller_id])
            return [self._row_to_request(row) for row in rows]

        except Exception as e:
            logger.error(f"Failed to list cancel requests for seller {seller_id}: {e}")
            raise

    def _row_to_request(self, row: Dict[str, Any]) -> CancelRequest:
        details = row.get("order_details") or {}
        if isinstance(details, str):
            details = json.loads(details)

        data = {k: v for k, v in row.items() if v is not None}
        data["order_details"] = details
        return CancelRequest(**data)
