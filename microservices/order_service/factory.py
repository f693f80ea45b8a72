"""
Order Service Factory

Factory functions for creating service instances with real dependencies.
This is the ONLY place that imports I/O-dependent modules.

Usage:
    from .factory import create_order_service
    event_bus = await get_event_bus("order_service")
    service = create_order_service(event_bus=event_bus)
"""
from typing import Optional

from core.config import CommerceSettings, get_settings
from core.logger import setup_service_logger

from .order_service import OrderLifecycleService


def create_order_service(
    settings: Optional[CommerceSettings] = None,
    event_bus=None,
    repository=None,
    cancel_request_repository=None,
    inventory=None,
    payment_gateway=None,
    email_notifier=None,
) -> OrderLifecycleService:
    """
    Create OrderLifecycleService with real dependencies.

    This function imports the real repositories and clients (which have
    I/O dependencies). Use this in production, NOT in tests.

    Args:
        settings: Commerce settings (defaults to global settings)
        event_bus: Event bus for publishing events
        repository: Optional order repository override
        cancel_request_repository: Optional cancel request repository override
        inventory: Optional inventory ledger override
        payment_gateway: Optional payment gateway override
        email_notifier: Optional e-mail notifier override

    Returns:
        Configured OrderLifecycleService instance
    """
    settings = settings or get_settings()
    setup_service_logger("order_service")

    # Import real dependencies here (not at module level)
    if repository is None:
        from .order_repository import OrderRepository
        repository = OrderRepository()

    if cancel_request_repository is None:
        from .cancel_request_repository import CancelRequestRepository
        cancel_request_repository = CancelRequestRepository()

    if inventory is None:
        from microservices.inventory_service.factory import create_inventory_service
        inventory = create_inventory_service(settings=settings)

    services = settings.services
    if payment_gateway is None:
        from .clients import PaymentGatewayClient
        payment_gateway = PaymentGatewayClient(
            base_url=services.payment_gateway_url,
            api_key=services.payment_gateway_api_key or None,
            timeout=services.payment_gateway_timeout,
            currency=settings.commerce.currency,
        )

    if email_notifier is None:
        from .clients import NotificationClient
        email_notifier = NotificationClient(
            base_url=services.notification_service_url,
            timeout=services.notification_timeout,
            sender=services.notification_sender,
        )

    return OrderLifecycleService(
        repository=repository,
        cancel_request_repository=cancel_request_repository,
        inventory=inventory,
        event_bus=event_bus,
        payment_gateway=payment_gateway,
        email_notifier=email_notifier,
        config=settings.commerce,
    )


__all__ = ["create_order_service"]
