"""
Inventory Service Factory

Factory functions for creating service instances with real dependencies.
This is the ONLY place that imports I/O-dependent modules.

Usage:
    from .factory import create_inventory_service
    service = create_inventory_service()
"""
from typing import Optional

from core.config import CommerceSettings, get_settings
from core.logger import setup_service_logger

from .inventory_service import InventoryLedgerService


def create_inventory_service(
    settings: Optional[CommerceSettings] = None,
    repository=None,
) -> InventoryLedgerService:
    """
    Create InventoryLedgerService with real dependencies.

    This function imports the real repository (which has I/O dependencies).
    Use this in production, NOT in tests.

    Args:
        settings: Commerce settings (defaults to global settings)
        repository: Optional repository override

    Returns:
        Configured InventoryLedgerService instance
    """
    settings = settings or get_settings()
    setup_service_logger("inventory_service")

    if repository is None:
        # Import real repository here (not at module level)
        from .inventory_repository import InventoryRepository
        repository = InventoryRepository()

    return InventoryLedgerService(repository=repository, config=settings.commerce)


__all__ = ["create_inventory_service"]
