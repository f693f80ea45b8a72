"""
Base Service Client for External Collaborators

Base class for the httpx clients the order core uses to reach the payment
gateway adapter and the notification service.
"""

import httpx
import logging
from typing import Optional, Dict, Any
from abc import ABC

logger = logging.getLogger(__name__)


class BaseServiceClient(ABC):
    """
    Service client base class

    Handles:
    1. Base URL resolution
    2. Default headers (including an optional API key)
    3. HTTP client lifecycle
    4. Timeouts

    Example:
        class PaymentGatewayClient(BaseServiceClient):
            service_name = "payment_gateway"
            default_url = "http://localhost:8207"

            async def refund(self, payment_reference, amount):
                response = await self.post(f"/api/v1/payments/{payment_reference}/refunds", json={...})
                return response.json()
    """

    # Subclasses define these
    service_name: str = None
    default_url: str = None

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize service client

        Args:
            base_url: Service base URL (falls back to default_url)
            api_key: Optional bearer token sent with every request
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        if not self.service_name:
            raise ValueError(f"{self.__class__.__name__} must define 'service_name'")

        self.base_url = (base_url or self.default_url or "http://localhost:8000").rstrip('/')

        self.client = httpx.AsyncClient(
            timeout=timeout,
            headers=self._build_default_headers(api_key),
            transport=transport,
        )

        logger.debug(f"Initialized {self.service_name} client: {self.base_url}")

    def _build_default_headers(self, api_key: Optional[str]) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "User-Agent": f"commerce-internal-client/{self.service_name}"
        }
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        return headers

    async def close(self):
        """Close the HTTP client"""
        await self.client.aclose()
        logger.debug(f"Closed {self.service_name} client")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    # ========================================
    # HTTP helpers
    # ========================================

    async def get(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> httpx.Response:
        """GET request"""
        url = f"{self.base_url}{path}"
        return await self.client.get(url, params=params, headers=headers)

    async def post(
        self,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> httpx.Response:
        """POST request"""
        url = f"{self.base_url}{path}"
        return await self.client.post(url, json=json, headers=headers)

    async def health_check(self) -> bool:
        """
        Health check

        Returns:
            Whether the service is healthy
        """
        try:
            response = await self.get("/health")
            return response.status_code == 200
        except Exception as e:
            logger.warning(f"{self.service_name} health check failed: {e}")
            return False


__all__ = ["BaseServiceClient"]
