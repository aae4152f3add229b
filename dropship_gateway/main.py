"""
Dropship Order Gateway - Main Application Entry Point

This is the main FastAPI application that wires all components together.

ARCHITECTURE OVERVIEW:
┌─────────────────────────────────────────────────────────────────┐
│                         FastAPI App                              │
├─────────────────────────────────────────────────────────────────┤
│  Middleware Layer                                                │
│  ┌─────────────────────────────────────────────────────────────┐│
│  │ OriginGuardMiddleware : 403 for unknown browser origins     ││
│  │ CORSMiddleware        : CORS headers for known storefronts  ││
│  │ TenantMiddleware      : hostname -> store + API token       ││
│  └─────────────────────────────────────────────────────────────┘│
├─────────────────────────────────────────────────────────────────┤
│  Route Handlers (routes.py)                                     │
│  ┌─────────────────────────────────────────────────────────────┐│
│  │ - GET /api/check-order-dropship : classify an order         ││
│  │ - GET /health : Health check                                ││
│  │ - GET /tenant/info : resolved store for the hostname        ││
│  └─────────────────────────────────────────────────────────────┘│
├─────────────────────────────────────────────────────────────────┤
│  Core                                                           │
│  ┌─────────────────────────────────────────────────────────────┐│
│  │ tenant_directory.py : store lookup table + tokens           ││
│  │ resolver.py : hostname -> store resolution                  ││
│  │ classifier.py : concurrent vendor lookups per order         ││
│  │ vendor_client.py : store product API client                 ││
│  └─────────────────────────────────────────────────────────────┘│
└─────────────────────────────────────────────────────────────────┘

STARTUP SEQUENCE:
1. Load the store lookup table and derive store tokens (once)
2. Build the origin allow-list and register middleware
3. Open the shared HTTP client for product API calls
4. Start accepting requests
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional
import logging

import httpx

from .middleware import OriginGuard, OriginGuardMiddleware, TenantMiddleware
from .routes import router
from .resolver import TenantResolver
from .classifier import OrderClassifier
from .vendor_client import VendorClient, build_http_client
from .tenant_directory import TenantDirectory, CredentialLookup, load_tenant_directory
from .config import (
    HOST,
    LOG_LEVEL,
    PORT,
    STATIC_DIR,
    STORE_LOOKUP_TABLE_PATH,
    VENDOR_MAX_CONCURRENCY,
    env_credential_lookup,
)

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_app(
    directory: Optional[TenantDirectory] = None,
    credential_lookup: Optional[CredentialLookup] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    static_dir: Optional[str] = STATIC_DIR,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        directory: Store directory; loaded from STORE_LOOKUP_TABLE_PATH if omitted
        credential_lookup: Token source keyed by subdomain; the environment if omitted
        http_client: Shared client for product API calls; opened per lifespan if omitted
        static_dir: Frontend directory mounted at / when it exists

    Returns:
        Configured FastAPI application
    """
    credential_lookup = credential_lookup or env_credential_lookup

    if directory is None:
        directory = load_tenant_directory(STORE_LOOKUP_TABLE_PATH, credential_lookup)

    origin_guard = OriginGuard(directory)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan manager.

        STARTUP:
        - Open the shared HTTP client (unless one was injected)

        SHUTDOWN:
        - Close the HTTP client this lifespan opened
        """
        # =========== STARTUP ===========
        logger.info("=" * 60)
        logger.info("STARTING DROPSHIP ORDER GATEWAY")
        logger.info("=" * 60)
        logger.info(f"  - {len(directory)} stores loaded")
        logger.info(f"  - {len(origin_guard.allowed_origins)} allowed origins")

        client = http_client or build_http_client()
        app.state.classifier = OrderClassifier(
            VendorClient(client),
            max_concurrency=VENDOR_MAX_CONCURRENCY,
        )

        logger.info("API READY")

        yield  # Application runs here

        # =========== SHUTDOWN ===========
        logger.info("Shutting down Dropship Order Gateway...")
        if http_client is None:
            await client.aclose()

    app = FastAPI(
        title="Dropship Order Gateway",
        description="""
## Dropship Order Gateway

Checks whether an order placed on a store contains products from dropship vendors.

### Store Resolution

The store is resolved from the hostname the request is addressed to:

1. A store's custom hostname
2. `{subdomain}.mybrightsites.com`
3. The default store

### Usage

```bash
curl "https://acme-store.mybrightsites.com/api/check-order-dropship" \\
  -H "Content-Type: application/json" \\
  -d '{"line_items": [{"id": "1001"}]}'
```
        """,
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    app.state.directory = directory
    app.state.resolver = TenantResolver(directory, credential_lookup)
    app.state.origin_guard = origin_guard

    # =========================================================================
    # MIDDLEWARE CONFIGURATION
    # =========================================================================
    # Last added runs first: OriginGuard -> CORS -> Tenant

    app.add_middleware(TenantMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=sorted(origin_guard.allowed_origins),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    app.add_middleware(OriginGuardMiddleware, guard=origin_guard)

    # =========================================================================
    # ROUTE REGISTRATION
    # =========================================================================

    app.include_router(router)

    if static_dir and Path(static_dir).is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="frontend")
    else:
        @app.get("/", tags=["Root"])
        async def root():
            """
            Root endpoint - API information.
            """
            return {
                "name": "Dropship Order Gateway",
                "version": "1.0.0",
                "docs": "/docs",
                "health": "/health"
            }

    return app


app = create_app()


# =============================================================================
# RUN WITH UVICORN (for direct execution)
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    logger.info(f"Server listening on port {PORT}. Access it here: http://localhost:{PORT}")
    uvicorn.run(
        "dropship_gateway.main:app",
        host=HOST,
        port=PORT,
        log_level=LOG_LEVEL.lower()
    )
