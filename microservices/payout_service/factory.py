"""
Payout Service Factory

Factory functions for creating service instances with real dependencies.
This is the ONLY place that imports I/O-dependent modules.

Usage:
    from .factory import create_payout_service
    event_bus = await get_event_bus("payout_service")
    service = create_payout_service(event_bus=event_bus)
"""
from typing import Optional

from core.config import CommerceSettings, get_settings
from core.logger import setup_service_logger

from .payout_service import PayoutService


def create_payout_service(
    settings: Optional[CommerceSettings] = None,
    event_bus=None,
    repository=None,
    order_reader=None,
) -> PayoutService:
    """
    Create PayoutService with real dependencies.

    Use this in production, NOT in tests.

    Args:
        settings: Commerce settings (defaults to global settings)
        event_bus: Event bus for publishing events
        repository: Optional payout repository override
        order_reader: Optional order store override

    Returns:
        Configured PayoutService instance
    """
    settings = settings or get_settings()
    setup_service_logger("payout_service")

    # Import real repositories here (not at module level)
    if repository is None:
        from .payout_repository import PayoutRepository
        repository = PayoutRepository()

    if order_reader is None:
        from microservices.order_service.order_repository import OrderRepository
        order_reader = OrderRepository()

    return PayoutService(
        repository=repository,
        order_reader=order_reader,
        event_bus=event_bus,
        config=settings.commerce,
    )


__all__ = ["create_payout_service"]
