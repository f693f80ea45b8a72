#!/usr/bin/env python3
"""
Core Module for Commerce Microservices

Shared infrastructure for the order, inventory and payout services.

COMPONENTS:
    - config/: dataclass configuration loaded from environment (python-dotenv)
    - logger.py: service logger setup
    - errors.py: shared exception bases (validation, not-found, external, concurrency)
    - nats_client.py: NATS JetStream event bus for event-driven architecture
    - postgres_client.py: asyncpg pool wrapper
    - service_client_base.py: httpx base client for external collaborators

USAGE:
    from core.config import get_settings
    from core.logger import setup_service_logger

    settings = get_settings()
    logger = setup_service_logger("order_service")
"""

__version__ = "1.0.0"
