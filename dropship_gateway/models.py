"""
Pydantic Models for the Dropship Order Gateway

This module defines all data models used in the application:
- Tenant records and per-request credentials
- Order payloads and vendor lookup results
- Request/Response models for API endpoints

All models include proper typing for IDE support and documentation.
"""

from pydantic import BaseModel, Field, model_validator
from typing import Optional, List, Union


# =============================================================================
# TENANT MODELS
# =============================================================================

class TenantRecord(BaseModel):
    """
    One row of the store lookup table.

    Records are built once at startup and never modified. A record with a
    subdomain always carries a non-empty api_key; records without one are
    kept as-is and have no api_key.

    Attributes:
        subdomain: Store subdomain on the platform (e.g., 'acme-store')
        custom_hostname: Public hostname the store is served from, if remapped
        api_key: Token used against the store's product API
    """
    subdomain: Optional[str] = Field(None, alias="Subdomain", description="Store subdomain")
    custom_hostname: Optional[str] = Field(None, alias="Custom URL", description="Custom public hostname")
    api_key: Optional[str] = Field(None, alias="API Key", description="Derived API token")

    class Config:
        frozen = True
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "Subdomain": "acme-store",
                "Custom URL": "shop.acme.com",
            }
        }


class ResolvedCredential(BaseModel):
    """
    Tenant identity and token resolved for a single request.

    Attributes:
        tenant_id: Resolved store subdomain
        api_key: Token for the store's product API (never sent to clients)
    """
    tenant_id: str
    api_key: str

    class Config:
        frozen = True

    def __repr__(self) -> str:
        return f"ResolvedCredential(tenant_id='{self.tenant_id}')"


# =============================================================================
# ORDER MODELS
# =============================================================================

class LineItem(BaseModel):
    """
    One product entry of an order.

    Callers key line items either by `id` or by `origin_product_id`;
    `origin_product_id` wins when both are sent.
    """
    id: Optional[Union[str, int]] = None
    origin_product_id: Optional[Union[str, int]] = None

    @model_validator(mode="after")
    def require_identifier(self):
        if self.origin_product_id in (None, "") and self.id in (None, ""):
            raise ValueError("line item needs an 'id' or 'origin_product_id'")
        return self

    @property
    def lookup_id(self) -> str:
        """Identifier sent to the product API."""
        if self.origin_product_id not in (None, ""):
            return str(self.origin_product_id)
        return str(self.id)


class Order(BaseModel):
    """
    Order payload accepted by /api/check-order-dropship.

    Attributes:
        line_items: At least one line item
    """
    line_items: List[LineItem] = Field(..., min_length=1)

    class Config:
        json_schema_extra = {
            "example": {
                "line_items": [
                    {"id": "1001"},
                    {"origin_product_id": "2002"},
                ]
            }
        }


class VendorLookupResult(BaseModel):
    """Vendor names returned by the product API for one line item."""
    vendor_names: List[str] = Field(default_factory=list)


class OrderClassification(BaseModel):
    """
    Aggregated vendor names of an order and its dropship flag.

    Attributes:
        vendor_names: Names in line item order, then per-item vendor order (duplicates kept)
        contains_dropship_vendor: True if any name is on the dropship list
    """
    vendor_names: List[str] = Field(default_factory=list)
    contains_dropship_vendor: bool = False


# =============================================================================
# API RESPONSE MODELS
# =============================================================================

class CheckOrderResponse(BaseModel):
    """
    Response model for /api/check-order-dropship.

    Field names are camelCase to match what storefront scripts already read.
    """
    vendorNames: List[str] = Field(..., description="Vendor names found for the order")
    orderContainsDropshipVendors: bool = Field(..., description="True if any vendor is a dropship vendor")

    class Config:
        json_schema_extra = {
            "example": {
                "vendorNames": ["Acme", "Visions"],
                "orderContainsDropshipVendors": True,
            }
        }

    @classmethod
    def from_classification(cls, classification: OrderClassification) -> "CheckOrderResponse":
        return cls(
            vendorNames=classification.vendor_names,
            orderContainsDropshipVendors=classification.contains_dropship_vendor,
        )


class ErrorResponse(BaseModel):
    """
    Standard error response model.

    Attributes:
        error: Human-readable error message
    """
    error: str = Field(..., description="Error message")

    class Config:
        json_schema_extra = {
            "example": {
                "error": "Invalid order_object. Provide at least one line_item."
            }
        }


class TenantInfoResponse(BaseModel):
    """Tenant resolved for the calling hostname."""
    tenant_id: str
    known_tenant: bool
    has_custom_hostname: bool


class HealthResponse(BaseModel):
    """
    Health check response model.

    Attributes:
        status: Service status ('healthy' or 'unhealthy')
        tenants_loaded: Number of stores in the lookup table
        timestamp: Current server timestamp
    """
    status: str = Field(..., description="Service health status")
    tenants_loaded: int = Field(..., description="Number of stores loaded")
    timestamp: str = Field(..., description="Server timestamp")
