"""
This module provides the communication client for the remote POS API used by the engine:
- Catalog read (product snapshots)
- Sale creation (atomic stock decrement + invoice numbering on the server side)
The client encapsulates the HTTP protocol, response envelope handling, and error logging.
Error translation into engine errors happens in the checkout workflow.
"""

import logging
from typing import List, Optional

import httpx
from pydantic import ValidationError

from .config import POS_API_READ_TIMEOUT, POS_API_TIMEOUT, POS_API_URL
from .models import FinalizedSale, Product, SaleConfirmation

log = logging.getLogger(__name__)


def _unwrap(response: httpx.Response):
    """Returns the ``data`` member of the API envelope ``{statusCode, message, data}``."""
    body = response.json()
    if isinstance(body, dict) and "data" in body:
        return body["data"]
    return body


class PosApiClient:
    """
    Async client for the remote POS API (REST).
    Handles catalog reads and the creation of sales.
    """
    def __init__(self, base_url: str = POS_API_URL, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initializes the HTTP client with proper timeout configuration.

        Args:
            base_url (str): Root URL of the POS API.
            transport (httpx.AsyncBaseTransport | None): Custom transport, e.g. an
                ASGI transport pointing at the mock sales service.
        """
        timeout_config = httpx.Timeout(POS_API_TIMEOUT, read=POS_API_READ_TIMEOUT)
        self.client = httpx.AsyncClient(base_url=base_url, timeout=timeout_config, transport=transport)

    async def aclose(self):
        """Closes the HTTP client session."""
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def fetch_products(self) -> List[Product]:
        """
        Reads the sellable product catalog.
        Returns:
            list[Product]: Point-in-time snapshots; no freshness guarantee.
        Raises:
            httpx.HTTPError: If the request fails or the API returns an error status.
        """
        try:
            response = await self.client.get("/products")
            response.raise_for_status()
        except httpx.HTTPError as e:
            log.error(f"[SalesAPI] Catalog read failed: {e}")
            raise
        return [Product.model_validate(item) for item in _unwrap(response)]

    async def fetch_product(self, product_id: int) -> Optional[Product]:
        """
        Reads a single product snapshot.
        Returns:
            Product | None: None if the API does not know the product.
        Raises:
            httpx.HTTPError: On transport errors or non-404 error statuses.
        """
        try:
            response = await self.client.get(f"/products/{product_id}")
            if response.status_code == 404:
                return None
            response.raise_for_status()
        except httpx.HTTPError as e:
            log.error(f"[SalesAPI] Product {product_id} read failed: {e}")
            raise
        return Product.model_validate(_unwrap(response))

    async def create_sale(self, sale: FinalizedSale, idempotency_key: str) -> SaleConfirmation:
        """
        Creates a new sale via the POS API.
        Args:
            sale (FinalizedSale): Validated sale payload.
            idempotency_key (str): Key that stays the same when an unchanged cart is retried.
        Returns:
            SaleConfirmation: The created sale including the server-assigned invoice number.
        Raises:
            httpx.TimeoutException: If the service does not respond within the timeout.
            httpx.HTTPStatusError: If the service returns an error status (4xx or 5xx).
            httpx.RequestError: On other transport failures.
            ValueError / pydantic.ValidationError: 2xx with a body that is not a sale.
        """
        headers = {"Idempotency-Key": idempotency_key}
        try:
            response = await self.client.post("/sales", json=sale.model_dump(mode="json"), headers=headers)
            response.raise_for_status()
        except httpx.TimeoutException:
            # Outcome unknown: the sale may exist. A retry with the same key is safe.
            log.error(f"[SalesAPI] Sale creation timed out (key {idempotency_key}). Status unknown.")
            raise
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 409:
                log.warning(f"[SalesAPI] Sale rejected, stock conflict: {e.response.text}")
            else:
                log.error(f"[SalesAPI] HTTP error while creating sale: {e}")
            raise
        except httpx.RequestError as e:
            log.error(f"[SalesAPI] Sale service unreachable: {e}")
            raise
        try:
            return SaleConfirmation.model_validate(_unwrap(response))
        except (ValueError, ValidationError) as e:
            log.error(f"[SalesAPI] Sale accepted (HTTP {response.status_code}) but confirmation unreadable: {e}")
            raise
