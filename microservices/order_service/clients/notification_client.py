"""
Notification Service Client for Order Service

Sends templated buyer e-mails through the notification service.
Delivery is fire-and-forget: failures are logged, never raised.
"""

import logging
from typing import Any, Dict, Optional

from core.service_client_base import BaseServiceClient

from ..protocols import EmailTemplate

logger = logging.getLogger(__name__)


EMAIL_SUBJECTS: Dict[EmailTemplate, str] = {
    EmailTemplate.ORDER_CANCELLED: "Your order has been cancelled",
    EmailTemplate.REFUND_APPROVED: "Refund Request Approved",
    EmailTemplate.REFUND_REJECTED: "Refund Request Status",
    EmailTemplate.REFUND_PROCESSED: "Your refund has been processed",
}


class NotificationClient(BaseServiceClient):
    """Client for notification_service e-mail delivery"""

    service_name = "notification_service"
    default_url = "http://localhost:8208"

    def __init__(self, *args, sender: Optional[str] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.sender = sender

    async def send(self, recipient: str, template: EmailTemplate, data: Dict[str, Any]) -> bool:
        """
        Send a templated e-mail

        Args:
            recipient: Buyer e-mail address
            template: Template to render
            data: Template variables

        Returns:
            True if the notification service accepted the message
        """
        if not recipient:
            logger.warning(f"No recipient for {template.value} e-mail, skipping")
            return False

        payload = {
            "channel": "email",
            "recipient": recipient,
            "sender": self.sender,
            "template": template.value,
            "subject": EMAIL_SUBJECTS.get(template, template.value),
            "data": data,
        }

        try:
            response = await self.post("/api/v1/notifications/send", json=payload)
            if response.status_code in (200, 201, 202):
                logger.info(f"📧 Sent {template.value} e-mail to {recipient}")
                return True
            logger.warning(
                f"Notification service rejected {template.value} e-mail: "
                f"{response.status_code} - {response.text}"
            )
            return False
        except Exception as e:
            logger.error(f"Error sending {template.value} e-mail to {recipient}: {e}")
            return False
