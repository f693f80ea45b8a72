"""
Payment Gateway Client for Order Service

Executes refunds against captured payments. Amounts are sent in the
currency's minor unit.
"""

import logging
from decimal import Decimal
from typing import Optional

import httpx

from core.service_client_base import BaseServiceClient

from ..protocols import PaymentGatewayError
from ..refund_ledger import to_minor_units

logger = logging.getLogger(__name__)


class PaymentGatewayClient(BaseServiceClient):
    """Client for the payment gateway adapter"""

    service_name = "payment_gateway"
    default_url = "http://localhost:8207"

    def __init__(self, *args, currency: str = "INR", **kwargs):
        super().__init__(*args, **kwargs)
        self.currency = currency

    async def refund(self, payment_reference: str, amount: Decimal, notes: Optional[str] = None) -> str:
        """
        Refund an amount against a payment

        Args:
            payment_reference: External payment ID at the gateway
            amount: Amount in major units
            notes: Optional note stored with the refund

        Returns:
            The gateway's refund reference

        Raises:
            PaymentGatewayError: on transport failure, non-2xx status or a
                response without a refund id
        """
        payload = {
            "amount": to_minor_units(amount),
            "currency": self.currency,
        }
        if notes:
            payload["notes"] = {"reason": notes}

        try:
            response = await self.post(f"/api/v1/payments/{payment_reference}/refunds", json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"Gateway refund failed for payment {payment_reference}: "
                f"{e.response.status_code} - {e.response.text}"
            )
            raise PaymentGatewayError(
                f"Payment gateway refund failed with status {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Gateway refund error for payment {payment_reference}: {e}")
            raise PaymentGatewayError(f"Payment gateway unavailable: {e}") from e

        refund_reference = body.get("refund_id") or body.get("id")
        if not refund_reference:
            raise PaymentGatewayError(f"Payment gateway returned no refund id for payment {payment_reference}")

        logger.info(f"Gateway refund {refund_reference} created for payment {payment_reference}: {amount}")
        return refund_reference
