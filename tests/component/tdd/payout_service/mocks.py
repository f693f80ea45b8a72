"""
Payout Service - Mock Dependencies

Mock payout repository for component testing. Orders are served by the
order service's MockOrderRepository.
"""
from typing import Dict, List, Optional
from decimal import Decimal

from microservices.payout_service.models import PayoutRecord
from microservices.payout_service.protocols import PayoutValidationError


class MockPayoutRepository:
    """Mock payout repository implementing PayoutRepositoryProtocol

    create_payout enforces the cap against the stored total, like the
    locked transaction in the real repository.
    """

    def __init__(self):
        self._data: List[PayoutRecord] = []
        self._before_insert = None
        self._call_log: List[Dict] = []

    def add_payout(self, seller_id: str, amount: Decimal, payout_id: Optional[str] = None) -> PayoutRecord:
        """Seed an existing payout"""
        record = PayoutRecord(
            payout_id=payout_id or f"payout_seed_{len(self._data) + 1}",
            seller_id=seller_id,
            amount=amount,
        )
        self._data.append(record)
        return record

    def before_insert(self, hook):
        """Run hook() inside the next create_payout, before the cap check"""
        self._before_insert = hook

    def get_call_count(self, method: str) -> int:
        return sum(1 for c in self._call_log if c["method"] == method)

    async def list_payouts(self, seller_id: str) -> List[PayoutRecord]:
        self._call_log.append({"method": "list_payouts", "kwargs": {"seller_id": seller_id}})
        return sorted(
            (p for p in self._data if p.seller_id == seller_id),
            key=lambda p: p.created_at,
            reverse=True,
        )

    async def total_paid(self, seller_id: str) -> Decimal:
        return sum((p.amount for p in self._data if p.seller_id == seller_id), Decimal("0"))

    async def create_payout(self, record: PayoutRecord, cap: Decimal) -> PayoutRecord:
        self._call_log.append({"method": "create_payout", "kwargs": {"seller_id": record.seller_id}})
        if self._before_insert:
            hook, self._before_insert = self._before_insert, None
            hook()

        paid = await self.total_paid(record.seller_id)
        if paid + record.amount > cap:
            raise PayoutValidationError(
                f"Payout amount {record.amount} exceeds pending amount {max(cap - paid, Decimal('0'))}"
            )
        self._data.append(record)
        return record
