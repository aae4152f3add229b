"""
API Routes Module for the Dropship Order Gateway

ENDPOINTS:
- GET /api/check-order-dropship - Flag orders containing dropship vendors
- GET /health - Health check endpoint
- GET /tenant/info - Store resolved for the calling hostname

The store and its API token always come from the request hostname
(request.state.tenant), never from the order payload.
"""

from fastapi import APIRouter, Request, Depends
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from datetime import datetime, timezone
from typing import Any, Optional
import json
import logging

from .middleware import get_current_tenant
from .models import (
    CheckOrderResponse,
    ErrorResponse,
    HealthResponse,
    Order,
    ResolvedCredential,
    TenantInfoResponse,
)
from .config import ORDER_QUERY_PARAM

logger = logging.getLogger(__name__)

# Create router for all API endpoints
router = APIRouter()


class MalformedOrderError(Exception):
    """Order payload is missing, not JSON, or has no usable line items."""


async def _read_order_payload(request: Request) -> Any:
    """
    Read the raw order from the legacy query parameter or the JSON body.

    The query parameter wins when both are sent.
    """
    raw: Optional[str] = request.query_params.get(ORDER_QUERY_PARAM)
    source = f"{ORDER_QUERY_PARAM} query parameter"

    if raw is None:
        body = await request.body()
        raw = body.decode("utf-8", errors="replace") if body else None
        source = "request body"

    if not raw:
        raise MalformedOrderError(f"Invalid or missing {ORDER_QUERY_PARAM}.")

    try:
        return json.loads(raw)
    except ValueError:
        raise MalformedOrderError(f"Invalid or missing {ORDER_QUERY_PARAM} in {source}.")


async def parse_order(request: Request) -> Order:
    """
    Parse and validate the order of a check request.

    Raises:
        MalformedOrderError: If the payload is missing, not JSON, or has no valid line items
    """
    payload = await _read_order_payload(request)

    try:
        return Order.model_validate(payload)
    except ValidationError as e:
        for error in e.errors():
            loc = error["loc"]
            if error["type"] == "value_error" and len(loc) == 2 and loc[0] == "line_items":
                raise MalformedOrderError(
                    f"Invalid {ORDER_QUERY_PARAM}. line_items[{loc[1]}] needs an 'id' or 'origin_product_id'."
                )
        raise MalformedOrderError(f"Invalid {ORDER_QUERY_PARAM}. Provide at least one line_item.")


# =============================================================================
# MAIN DROPSHIP CHECK ENDPOINT
# =============================================================================

@router.api_route(
    "/api/check-order-dropship",
    methods=["GET", "POST"],
    response_model=CheckOrderResponse,
    summary="Check an order for dropship vendors",
    description="""
    Look up the vendors of every line item of an order and report whether
    any of them is a dropship vendor.

    **INPUT** (either form):
    - `order_object` query parameter: URL-encoded JSON order (legacy)
    - JSON request body

    Line items are keyed by `origin_product_id` or `id`.

    **STORE RESOLUTION:**
    - The store and its API token are resolved from the request hostname
    - Failed lookups for individual line items are skipped, not reported
    """,
    responses={
        400: {"model": ErrorResponse, "description": "Missing or malformed order"},
        500: {"model": ErrorResponse, "description": "Unexpected server error"},
    }
)
async def check_order_dropship(
    request: Request,
    tenant: ResolvedCredential = Depends(get_current_tenant)
):
    try:
        order = await parse_order(request)
    except MalformedOrderError as e:
        logger.warning(f"Rejected order for store {tenant.tenant_id}: {e}")
        return JSONResponse(status_code=400, content={"error": str(e)})

    host = request.headers.get("host", "")
    logger.info(f"Request from domain: {request.url.scheme}://{host}")

    classifier = request.app.state.classifier

    try:
        classification = await classifier.classify(order, tenant.tenant_id, tenant.api_key)
    except Exception:
        logger.exception("Server error processing order")
        return JSONResponse(status_code=500, content={"error": "Internal Server Error"})

    logger.info(
        f"Store {tenant.tenant_id}: {len(order.line_items)} line items, "
        f"{len(classification.vendor_names)} vendors, dropship={classification.contains_dropship_vendor}"
    )

    return CheckOrderResponse.from_classification(classification)


# =============================================================================
# HEALTH CHECK ENDPOINT
# =============================================================================

@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check API health status and loaded store count."
)
async def health_check(request: Request) -> HealthResponse:
    return HealthResponse(
        status="healthy",
        tenants_loaded=len(request.app.state.directory),
        timestamp=datetime.now(timezone.utc).isoformat()
    )


# =============================================================================
# DEBUG ENDPOINTS
# =============================================================================

@router.get(
    "/tenant/info",
    response_model=TenantInfoResponse,
    summary="Get resolved store",
    description="Show which store the calling hostname resolves to. The API token is never returned."
)
async def get_tenant_info(
    request: Request,
    tenant: ResolvedCredential = Depends(get_current_tenant)
) -> TenantInfoResponse:
    """
    Useful for verifying a custom hostname is mapped correctly.
    """
    store = request.app.state.directory.find_by_subdomain(tenant.tenant_id)

    return TenantInfoResponse(
        tenant_id=tenant.tenant_id,
        known_tenant=store is not None,
        has_custom_hostname=bool(store and store.custom_hostname),
    )
