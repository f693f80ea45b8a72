"""
Payout Service Event Publishers

Functions to publish events from payout service.
"""

import logging
from decimal import Decimal

from core.nats_client import Event, EventType, ServiceSource
from ..models import PayoutRecord
from .models import PayoutRecordedEvent

logger = logging.getLogger(__name__)


async def publish_payout_recorded(event_bus, record: PayoutRecord, pending_amount: Decimal) -> bool:
    """
    Publish payout.recorded event

    Args:
        event_bus: NATS event bus instance
        record: The stored payout
        pending_amount: Seller's pending amount after this payout

    Returns:
        True if published, False otherwise
    """
    if not event_bus:
        logger.warning("Event bus not available, skipping payout.recorded event")
        return False

    try:
        payload = PayoutRecordedEvent(
            seller_id=record.seller_id,
            payout_id=record.payout_id,
            amount=record.amount,
            currency=record.currency,
            external_reference=record.external_reference,
            pending_amount=pending_amount,
            message=f"Payout of {record.amount} {record.currency} recorded for seller {record.seller_id}",
        )

        event = Event(
            event_type=EventType.PAYOUT_RECORDED,
            source=ServiceSource.PAYOUT_SERVICE,
            data=payload.model_dump(mode='json')
        )

        await event_bus.publish_event(event)
        logger.info(f"✅ Published payout.recorded event for payout {record.payout_id}")
        return True

    except Exception as e:
        logger.error(f"❌ Failed to publish payout.recorded event: {e}")
        return False
