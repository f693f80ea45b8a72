"""
Order Service Clients

HTTP clients for the external collaborators the lifecycle controller calls.
"""

from .payment_gateway_client import PaymentGatewayClient
from .notification_client import NotificationClient

__all__ = [
    "PaymentGatewayClient",
    "NotificationClient",
]
