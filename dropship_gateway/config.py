"""
Configuration module for the dropship order gateway.
Contains platform constants, the dropship vendor list and environment-backed settings.

MULTI-TENANT CREDENTIALS:
- Each store's API token lives in the environment under the store's subdomain
- Tokens are resolved server-side from the request hostname
- Tokens are NEVER returned to clients or written to logs
"""

import os
from typing import List, Optional

from dotenv import load_dotenv

# Populate os.environ from an optional .env file before reading any setting
load_dotenv()


# =============================================================================
# TENANT RESOLUTION
# =============================================================================

# Tenant used when the hostname matches no rule, and for local development
DEFAULT_TENANT_ID: str = "centricity-test-store"

LOCALHOST: str = "localhost"

# Token used on localhost when the default tenant has no configured token
LOCAL_DEFAULT_API_KEY: str = "default-api-key"

# Placeholder token prefix for tenants without a configured token
PLACEHOLDER_API_KEY_PREFIX: str = "default-"

PLATFORM_DOMAIN_SUFFIX: str = ".mybrightsites.com"


# =============================================================================
# VENDOR API
# =============================================================================

VENDOR_API_VERSION: str = "v2.6.1"

VENDOR_REQUEST_TIMEOUT: float = float(os.getenv("VENDOR_REQUEST_TIMEOUT", "10.0"))

# 0 means one concurrent lookup per line item
VENDOR_MAX_CONCURRENCY: int = int(os.getenv("VENDOR_MAX_CONCURRENCY", "0"))


# =============================================================================
# DROPSHIP VENDORS
# =============================================================================
# Exact, case-sensitive names. "Larlu" and "LarLu" both appear in the source
# data and are kept as distinct entries.

DROPSHIP_VENDORS: List[str] = [
    "Cawley",
    "Visions",
    "Moslow",
    "Larlu",
    "LarLu",
    "Edwards Garment",
    "Cannon Hill",
    "Power Sales",
    "Winning Edge",
]


# =============================================================================
# DATA PATHS
# =============================================================================

# Static list of stores: [{"Subdomain": ..., "Custom URL": ...}, ...]
STORE_LOOKUP_TABLE_PATH: str = os.getenv("STORE_LOOKUP_TABLE_PATH", "store-lookup-table.json")

# Frontend assets, mounted at / when the directory exists
STATIC_DIR: str = os.getenv("STATIC_DIR", "frontend")


# =============================================================================
# SERVER
# =============================================================================

HOST: str = os.getenv("HOST", "0.0.0.0")
PORT: int = int(os.getenv("PORT", "3000"))
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# Legacy query parameter carrying a URL-encoded JSON order
ORDER_QUERY_PARAM: str = "order_object"


def env_credential_lookup(subdomain: str) -> Optional[str]:
    """
    Look up a store's API token in the process environment.

    Args:
        subdomain: Store subdomain, used verbatim as the variable name

    Returns:
        The token, or None when unset or blank
    """
    return os.environ.get(subdomain) or None
