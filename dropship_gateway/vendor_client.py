"""
Vendor Client Module

Fetches vendor data for a single product from a store's product API.

FAILURE MODES:
- Host unreachable (DNS, connect, timeout, reset) -> VendorUnreachableError
- Non-success HTTP status -> empty result, no exception
- Missing/malformed body or no 'vendors' -> empty result
"""

from typing import Any, List, Optional
import logging

import httpx

from .models import VendorLookupResult
from .config import PLATFORM_DOMAIN_SUFFIX, VENDOR_API_VERSION, VENDOR_REQUEST_TIMEOUT

logger = logging.getLogger(__name__)


class VendorUnreachableError(Exception):
    """Raised when the store's product API cannot be reached."""


def build_http_client(transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    """Shared client for product API calls; store APIs may redirect to a custom domain."""
    return httpx.AsyncClient(timeout=VENDOR_REQUEST_TIMEOUT, follow_redirects=True, transport=transport)


def product_url(tenant_id: str, line_item_id: str) -> str:
    return f"https://{tenant_id}{PLATFORM_DOMAIN_SUFFIX}/api/{VENDOR_API_VERSION}/products/{line_item_id}"


def _vendor_names(payload: Any) -> List[str]:
    if not isinstance(payload, dict):
        return []

    vendors = payload.get("vendors")
    if not isinstance(vendors, list):
        return []

    return [
        vendor["name"]
        for vendor in vendors
        if isinstance(vendor, dict) and isinstance(vendor.get("name"), str)
    ]


class VendorClient:
    """
    Product API client bound to a shared httpx.AsyncClient.

    The AsyncClient is owned by the caller (the application lifespan).
    """

    def __init__(self, http_client: httpx.AsyncClient):
        self.http_client = http_client

    async def fetch_vendor_data(self, line_item_id: str, tenant_id: str, api_key: str) -> VendorLookupResult:
        """
        Look up the vendors of one product.

        Args:
            line_item_id: Product identifier from the order
            tenant_id: Store subdomain the product belongs to
            api_key: Store API token

        Returns:
            VendorLookupResult with vendor names in response order

        Raises:
            VendorUnreachableError: If the product API cannot be reached
        """
        try:
            response = await self.http_client.get(
                product_url(tenant_id, line_item_id),
                params={"token": api_key},
                headers={"Content-Type": "application/json"},
            )
        except httpx.TransportError as e:
            raise VendorUnreachableError("Unable to reach vendor service.") from e

        if not response.is_success:
            logger.warning(
                f"Product API returned {response.status_code} for item {line_item_id} of store {tenant_id}"
            )
            return VendorLookupResult()

        try:
            payload = response.json()
        except ValueError:
            logger.warning(f"Product API returned a non-JSON body for item {line_item_id}")
            return VendorLookupResult()

        return VendorLookupResult(vendor_names=_vendor_names(payload))
