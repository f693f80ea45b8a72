#!/usr/bin/env python3
"""Service configuration for external collaborators

Endpoints of the services the order core calls synchronously:
the payment gateway adapter (refund execution) and the notification
service (buyer e-mails).
"""
import os
from dataclasses import dataclass

def _float(val: str, default: float) -> float:
    try:
        return float(val) if val else default
    except ValueError:
        return default


@dataclass
class ServiceConfig:
    """External collaborator endpoints"""

    # ===========================================
    # Payment gateway adapter
    # ===========================================
    payment_gateway_url: str = "http://localhost:8207"
    payment_gateway_api_key: str = ""
    payment_gateway_timeout: float = 30.0

    # ===========================================
    # Notification service (e-mail)
    # ===========================================
    notification_service_url: str = "http://localhost:8208"
    notification_timeout: float = 10.0
    notification_sender: str = "orders@localhost"

    @classmethod
    def from_env(cls) -> 'ServiceConfig':
        """Load service configuration from environment variables"""
        return cls(
            payment_gateway_url=os.getenv("PAYMENT_GATEWAY_URL", "http://localhost:8207"),
            payment_gateway_api_key=os.getenv("PAYMENT_GATEWAY_API_KEY", ""),
            payment_gateway_timeout=_float(os.getenv("PAYMENT_GATEWAY_TIMEOUT", "30"), 30.0),
            notification_service_url=os.getenv("NOTIFICATION_SERVICE_URL", "http://localhost:8208"),
            notification_timeout=_float(os.getenv("NOTIFICATION_TIMEOUT", "10"), 10.0),
            notification_sender=os.getenv("NOTIFICATION_SENDER", "orders@localhost"),
        )
