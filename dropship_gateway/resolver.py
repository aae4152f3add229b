"""
Tenant Resolver Module

Maps a request hostname to a store subdomain and API token.

RESOLUTION ORDER (first match wins):
1. 'localhost' -> default store, token from the credential lookup
   (handled in resolve_credentials only; the directory is not consulted)
2. Hostname equal to a store's custom hostname -> that store's subdomain
3. '{subdomain}.mybrightsites.com' -> subdomain
4. Anything else -> default store

Custom hostnames are checked before the platform pattern because a store
may have remapped its public hostname.
"""

from typing import Optional
import logging

from .models import ResolvedCredential
from .tenant_directory import TenantDirectory, CredentialLookup, placeholder_api_key
from .config import (
    DEFAULT_TENANT_ID,
    LOCALHOST,
    LOCAL_DEFAULT_API_KEY,
    PLATFORM_DOMAIN_SUFFIX,
)

logger = logging.getLogger(__name__)


class TenantResolver:
    """Resolves tenant identity from hostnames against a TenantDirectory."""

    def __init__(
        self,
        directory: TenantDirectory,
        credential_lookup: CredentialLookup,
        default_tenant_id: str = DEFAULT_TENANT_ID,
        domain_suffix: str = PLATFORM_DOMAIN_SUFFIX,
    ):
        self.directory = directory
        self.credential_lookup = credential_lookup
        self.default_tenant_id = default_tenant_id
        self.domain_suffix = domain_suffix

    def resolve_subdomain(self, hostname: str) -> str:
        """
        Determine the store subdomain for a hostname.

        Args:
            hostname: Request hostname, without port

        Returns:
            The store subdomain, or the default tenant id
        """
        store = self.directory.find_by_custom_hostname(hostname)
        if store:
            return store.subdomain

        if hostname.endswith(self.domain_suffix):
            # Leftmost occurrence: 'a.mybrightsites.com.mybrightsites.com' -> 'a'
            return hostname.split(self.domain_suffix, 1)[0]

        return self.default_tenant_id

    def resolve_credentials(self, hostname: Optional[str]) -> ResolvedCredential:
        """
        Resolve the store subdomain and API token for a hostname.

        Never fails: unknown stores get a token from the credential lookup,
        or the placeholder 'default-{subdomain}'.
        """
        if hostname == LOCALHOST:
            return ResolvedCredential(
                tenant_id=self.default_tenant_id,
                api_key=self.credential_lookup(self.default_tenant_id) or LOCAL_DEFAULT_API_KEY,
            )

        tenant_id = self.resolve_subdomain(hostname or "")
        store = self.directory.find_by_subdomain(tenant_id)

        if store:
            api_key = store.api_key
        else:
            logger.debug(f"Store not in lookup table: {tenant_id}")
            api_key = self.credential_lookup(tenant_id) or placeholder_api_key(tenant_id)

        return ResolvedCredential(tenant_id=tenant_id, api_key=api_key)
