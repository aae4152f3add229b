"""
Multi-Tenant Middleware Module

This module resolves the calling store for every request and guards
cross-origin access.

ARCHITECTURE:
- OriginGuardMiddleware rejects browser requests from origins that are not
  a known storefront (403)
- TenantMiddleware resolves the store from the request hostname and attaches
  a ResolvedCredential to request.state.tenant
- Route handlers access the store via request.state, never from request body/query
"""

from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from typing import FrozenSet, Optional
import logging

from .models import ResolvedCredential
from .tenant_directory import TenantDirectory
from .config import PLATFORM_DOMAIN_SUFFIX

logger = logging.getLogger(__name__)


class OriginGuard:
    """
    Exact-match allow-list of storefront origins.

    Built once from the directory:
    - https://{subdomain}.mybrightsites.com for every store with a subdomain
    - every custom hostname, verbatim
    """

    def __init__(self, directory: TenantDirectory, domain_suffix: str = PLATFORM_DOMAIN_SUFFIX):
        allowed = set()
        for store in directory:
            if store.subdomain:
                allowed.add(f"https://{store.subdomain}{domain_suffix}")
            if store.custom_hostname:
                allowed.add(store.custom_hostname)
        self._allowed_origins: FrozenSet[str] = frozenset(allowed)

    @property
    def allowed_origins(self) -> FrozenSet[str]:
        return self._allowed_origins

    def is_allowed(self, origin: Optional[str]) -> bool:
        """Requests without an Origin (non-browser callers) are always allowed."""
        if not origin:
            return True
        return origin in self._allowed_origins


class OriginGuardMiddleware(BaseHTTPMiddleware):
    """Reject requests whose Origin header is not on the allow-list."""

    def __init__(self, app, guard: OriginGuard):
        super().__init__(app)
        self.guard = guard

    async def dispatch(self, request: Request, call_next):
        origin = request.headers.get("origin")

        if not self.guard.is_allowed(origin):
            logger.warning(f"Blocked request from origin: {origin}")
            return JSONResponse(
                status_code=403,
                content={"error": "Not allowed by CORS"}
            )

        return await call_next(request)


class TenantMiddleware(BaseHTTPMiddleware):
    """
    FastAPI Middleware for Multi-Tenant Resolution

    FLOW:
    1. Read the hostname the request was addressed to
    2. Resolve store subdomain and API token with app.state.resolver
    3. Attach ResolvedCredential to request.state.tenant

    Resolution never fails; unknown hosts fall back to the default store.
    """

    # Paths that don't need a store
    EXEMPT_PATHS = {"/", "/docs", "/openapi.json", "/redoc", "/health"}

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.EXEMPT_PATHS:
            return await call_next(request)

        resolver = request.app.state.resolver
        hostname = request.url.hostname or ""

        request.state.tenant = resolver.resolve_credentials(hostname)

        return await call_next(request)


def get_current_tenant(request: Request) -> ResolvedCredential:
    """
    Dependency function to extract the resolved store from request state.

    Raises:
        HTTPException: If no store was resolved (middleware failure)
    """
    tenant = getattr(request.state, 'tenant', None)

    if not tenant:
        # This should never happen if middleware is properly configured
        raise HTTPException(
            status_code=500,
            detail="Tenant context not found - middleware configuration error"
        )

    return tenant
