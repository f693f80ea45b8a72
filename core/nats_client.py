"""
NATS JetStream Client for Python Microservices

Provides event-driven communication between the order, inventory and
payout services using nats-py with JetStream persistence.
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

import nats
from nats.aio.client import Client as NATS
from nats.js import JetStreamContext

from core.config import get_settings


class DecimalEncoder(json.JSONEncoder):
    """Custom JSON encoder that handles Decimal and datetime types"""
    def default(self, obj):
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        return super().default(obj)


logger = logging.getLogger(__name__)


class EventType(Enum):
    """Event subjects published by the commerce services"""

    # Order lifecycle
    ORDER_CREATED = "order.created"
    ORDER_CANCEL_REQUESTED = "order.cancel_requested"
    ORDER_CANCEL_APPROVED = "order.cancel_approved"
    ORDER_CANCEL_REJECTED = "order.cancel_rejected"
    ORDER_REFUND_REQUESTED = "order.refund_requested"
    ORDER_REFUND_APPROVED = "order.refund_approved"
    ORDER_REFUND_REJECTED = "order.refund_rejected"
    ORDER_REFUND_PROCESSED = "order.refund_processed"

    # Inventory
    STOCK_UPDATED = "inventory.stock_updated"

    # Payouts
    PAYOUT_RECORDED = "payout.recorded"


class ServiceSource(Enum):
    """Service sources"""

    ORDER_SERVICE = "order_service"
    INVENTORY_SERVICE = "inventory_service"
    PAYOUT_SERVICE = "payout_service"


class Event:
    """Event model"""

    def __init__(
        self,
        event_type: EventType,
        source: ServiceSource,
        data: Dict[str, Any],
        subject: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ):
        self.id = str(uuid.uuid4())
        self.type = event_type.value
        self.source = source.value
        self.data = data
        self.subject = subject
        self.timestamp = datetime.now(timezone.utc).isoformat()
        self.metadata = metadata or {}
        self.version = "1.0.0"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "source": self.source,
            "subject": self.subject,
            "timestamp": self.timestamp,
            "data": self.data,
            "metadata": self.metadata,
            "version": self.version,
        }


class NATSEventBus:
    """
    NATS JetStream event bus.

    Each event is published to the stream derived from the first segment of
    its type ("order.created" -> "order-stream").
    """

    def __init__(self, service_name: str, servers: Optional[str] = None):
        """
        Initialize NATS Event Bus.

        Args:
            service_name: Name of the service (used as the connection name)
            servers: NATS server URL (defaults to InfraConfig)
        """
        self.service_name = service_name
        self.servers = servers or get_settings().infrastructure.nats_servers

        self._nc: Optional[NATS] = None
        self._js: Optional[JetStreamContext] = None
        self._streams: Dict[str, bool] = {}
        self._is_connected = False

        logger.info(f"NATS EventBus initialized: {self.servers}")

    async def connect(self):
        """Connect to NATS and open a JetStream context"""
        try:
            self._nc = await nats.connect(servers=[self.servers], name=self.service_name)
            self._js = self._nc.jetstream()
            self._is_connected = True
            logger.info(f"Connected to NATS as {self.service_name}")
        except Exception as e:
            logger.error(f"Failed to connect to NATS: {e}")
            raise

    async def _ensure_stream(self, stream_name: str, subject_prefix: str):
        if self._streams.get(stream_name):
            return
        try:
            await self._js.add_stream(name=stream_name, subjects=[f"{subject_prefix}.>"])
        except Exception as e:
            # Stream already exists with a compatible config
            logger.debug(f"Stream creation note: {e}")
        self._streams[stream_name] = True

    async def publish_event(self, event: Event) -> bool:
        """
        Publish an event to NATS JetStream.

        Uses event.type as the subject. Returns False instead of raising so
        callers can treat publication as best-effort.
        """
        if not self._is_connected or not self._js:
            logger.error("Not connected to NATS")
            return False

        try:
            subject = event.type
            data = json.dumps(event.to_dict(), cls=DecimalEncoder).encode()

            prefix = event.type.split('.')[0]
            stream_name = self._get_stream_name_for_event(event.type)
            await self._ensure_stream(stream_name, prefix)

            ack = await self._js.publish(subject, data)
            logger.info(f"Published event {event.type} [{event.id}] to stream {ack.stream}, seq={ack.seq}")
            return True

        except Exception as e:
            logger.error(f"Error publishing event {event.id}: {e}")
            return False

    def _get_stream_name_for_event(self, event_type: str) -> str:
        """
        Determine the JetStream stream name based on event type.

        Mapping:
        - order.* -> order-stream
        - inventory.* -> inventory-stream
        - payout.* -> payout-stream
        """
        prefix = event_type.split('.')[0]
        return f"{prefix}-stream"

    async def close(self):
        """Drain and close the NATS connection"""
        if self._nc:
            await self._nc.drain()
            self._nc = None
            self._js = None

        self._is_connected = False
        logger.info("Disconnected from NATS")

    @property
    def is_connected(self) -> bool:
        """Check if connected to NATS"""
        return self._is_connected


# Singleton instance
_event_bus: Optional[NATSEventBus] = None


async def get_event_bus(service_name: str, servers: Optional[str] = None) -> NATSEventBus:
    """
    Get or create event bus instance.

    Args:
        service_name: Name of the service using the event bus
        servers: Optional NATS server URL override

    Returns:
        Connected NATSEventBus instance
    """
    global _event_bus

    if _event_bus is None:
        _event_bus = NATSEventBus(service_name=service_name, servers=servers)
        await _event_bus.connect()

    return _event_bus

