"""
Tenant Directory Module for the Dropship Order Gateway

This module loads the store lookup table and derives each store's API token.

CREDENTIAL DERIVATION:
- Every store with a subdomain gets a token at load time
- The token comes from the credential lookup (environment) keyed by subdomain
- Stores without a configured token get the placeholder 'default-{subdomain}'
- Missing tokens never fail the load; the placeholder makes the gap visible

LOOKUP TABLE FORMAT:
[
    {"Subdomain": "acme-store", "Custom URL": "shop.acme.com"},
    {"Subdomain": "other-store"}
]
"""

import json
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple
import logging

from .models import TenantRecord
from .config import PLACEHOLDER_API_KEY_PREFIX

logger = logging.getLogger(__name__)

CredentialLookup = Callable[[str], Optional[str]]


def placeholder_api_key(subdomain: str) -> str:
    return f"{PLACEHOLDER_API_KEY_PREFIX}{subdomain}"


class TenantDirectory:
    """
    Read-only, ordered table of known stores.

    Lookups are exact string matches and the first matching record wins;
    duplicate subdomains or hostnames are not detected.
    """

    def __init__(self, records: Iterable[TenantRecord] = ()):
        self._records: Tuple[TenantRecord, ...] = tuple(records)

    @classmethod
    def load(
        cls,
        raw_records: Iterable[Dict[str, Any]],
        credential_lookup: CredentialLookup,
    ) -> "TenantDirectory":
        """
        Build the directory from raw lookup table rows.

        Args:
            raw_records: Rows with optional 'Subdomain' and 'Custom URL' fields
            credential_lookup: Returns the token configured for a subdomain, or None

        Returns:
            TenantDirectory holding one TenantRecord per row, in input order
        """
        records: List[TenantRecord] = []

        for raw in raw_records:
            record = TenantRecord.model_validate(raw)

            if record.subdomain:
                api_key = credential_lookup(record.subdomain)
                if not api_key:
                    logger.warning(f"No API token configured for store: {record.subdomain}")
                    api_key = placeholder_api_key(record.subdomain)
                record = record.model_copy(update={"api_key": api_key})

            records.append(record)

        logger.info(f"Loaded {len(records)} stores into tenant directory")
        return cls(records)

    @property
    def records(self) -> Tuple[TenantRecord, ...]:
        return self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self):
        return iter(self._records)

    def find_by_subdomain(self, subdomain: str) -> Optional[TenantRecord]:
        """Return the first record whose subdomain equals `subdomain`."""
        for record in self._records:
            if record.subdomain and record.subdomain == subdomain:
                return record
        return None

    def find_by_custom_hostname(self, hostname: str) -> Optional[TenantRecord]:
        """
        Return the first record mapped to `hostname` that also has a subdomain.

        A custom hostname without a subdomain does not identify a store and
        is skipped.
        """
        for record in self._records:
            if record.custom_hostname == hostname and record.subdomain:
                return record
        return None


# =============================================================================
# LOOKUP TABLE LOADING
# =============================================================================

def read_store_lookup_table(path: str) -> List[Dict[str, Any]]:
    """
    Read raw rows from the store lookup table JSON file.

    Args:
        path: Path to a JSON array of store objects

    Returns:
        List of raw rows (empty if the file does not exist)

    Raises:
        ValueError: If the file is not a JSON array
    """
    table_path = Path(path)

    if not table_path.exists():
        logger.warning(f"Store lookup table not found: {table_path}")
        return []

    rows = json.loads(table_path.read_text(encoding="utf-8"))

    if not isinstance(rows, list):
        raise ValueError(f"Store lookup table must be a JSON array: {table_path}")

    return rows


def load_tenant_directory(path: str, credential_lookup: CredentialLookup) -> TenantDirectory:
    """
    Load the store lookup table from disk and derive store tokens.

    Called once at startup.
    """
    return TenantDirectory.load(read_store_lookup_table(path), credential_lookup)
