"""
Order Classifier Module

Looks up the vendors of every line item of an order concurrently and flags
orders that contain a dropship vendor.

ISOLATION:
- Each line item is looked up independently
- A failing lookup yields no vendor names for that item only
- Sibling lookups are never cancelled and the order still classifies
"""

import asyncio
from typing import Iterable, List, Optional, Sequence
import logging

from .models import LineItem, Order, OrderClassification
from .vendor_client import VendorClient, VendorUnreachableError
from .config import DROPSHIP_VENDORS

logger = logging.getLogger(__name__)


def contains_dropship_vendor(vendor_names: Iterable[str], dropship_vendors: Iterable[str] = DROPSHIP_VENDORS) -> bool:
    """Exact, case-sensitive membership test against the dropship list."""
    dropship = set(dropship_vendors)
    return any(name in dropship for name in vendor_names)


class OrderClassifier:
    """
    Fans out vendor lookups for an order and aggregates the results.

    Args:
        vendor_client: Client used for each line item lookup
        max_concurrency: Upper bound on in-flight lookups per order; 0 or None means unbounded
        dropship_vendors: Vendor names treated as dropship
    """

    def __init__(
        self,
        vendor_client: VendorClient,
        max_concurrency: Optional[int] = None,
        dropship_vendors: Sequence[str] = DROPSHIP_VENDORS,
    ):
        self.vendor_client = vendor_client
        self.max_concurrency = max_concurrency or None
        self.dropship_vendors = list(dropship_vendors)

    async def _lookup(
        self,
        line_item: LineItem,
        tenant_id: str,
        api_key: str,
        semaphore: Optional[asyncio.Semaphore],
    ) -> List[str]:
        try:
            if semaphore is None:
                result = await self.vendor_client.fetch_vendor_data(line_item.lookup_id, tenant_id, api_key)
            else:
                async with semaphore:
                    result = await self.vendor_client.fetch_vendor_data(line_item.lookup_id, tenant_id, api_key)
        except VendorUnreachableError as e:
            logger.error(f"Error processing line item {line_item.lookup_id}: {e}")
            return []
        except Exception:
            logger.exception(f"Error processing line item {line_item.lookup_id}")
            return []

        return result.vendor_names

    async def classify(self, order: Order, tenant_id: str, api_key: str) -> OrderClassification:
        """
        Classify an order by the vendors of its line items.

        Args:
            order: Order with at least one line item (checked by the caller)
            tenant_id: Store subdomain
            api_key: Store API token

        Returns:
            OrderClassification; all lookups failing yields an empty, non-dropship result
        """
        semaphore = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None

        per_item = await asyncio.gather(
            *(self._lookup(line_item, tenant_id, api_key, semaphore) for line_item in order.line_items)
        )

        vendor_names = [name for names in per_item for name in names]

        return OrderClassification(
            vendor_names=vendor_names,
            contains_dropship_vendor=contains_dropship_vendor(vendor_names, self.dropship_vendors),
        )
