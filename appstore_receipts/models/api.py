"""
API Models - Pydantic models for request/response validation.

Field names are snake_case in Python and camelCase on the wire, matching
what the mobile client sends.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    """Base model accepting both camelCase aliases and field names."""

    model_config = ConfigDict(populate_by_name=True)


# ============================================================================
# Receipt Validation Models
# ============================================================================


class ValidateReceiptRequest(CamelModel):
    """POST /validate-receipt request body.

    Both fields are optional here so the route can answer a missing value
    with its own 400 message instead of a generic 422.
    """

    receipt_data: str | None = Field(
        None,
        alias="receiptData",
        description="Base64 App Store receipt from the device",
    )
    product_id: str | None = Field(
        None,
        alias="productId",
        max_length=255,
        description="Product identifier to check, e.g. com.app.monthly",
    )


class ValidateReceiptResponse(CamelModel):
    """POST /validate-receipt success response."""

    success: Literal[True] = True
    is_premium: bool = Field(..., alias="isPremium")
    environment: Literal["production", "sandbox"]
    receipt: dict[str, Any] | None = None


class ReceiptErrorResponse(CamelModel):
    """Failure response for /validate-receipt."""

    success: Literal[False] = False
    error: str
    environment: Literal["production", "sandbox", "unknown"] | None = None


# ============================================================================
# Health Check Models
# ============================================================================


class HealthResponse(BaseModel):
    """GET /health response."""

    status: Literal["healthy", "unhealthy"]
    timestamp: str


class ServiceInfoResponse(BaseModel):
    """GET / response."""

    service: str
    version: str
    status: str
