"""
API Routes - FastAPI endpoints for receipt validation.
"""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from appstore_receipts.api.dependencies import get_receipt_check_service
from appstore_receipts.exceptions import InvalidReceiptRequestError
from appstore_receipts.models.api import (
    HealthResponse,
    ReceiptErrorResponse,
    ValidateReceiptRequest,
    ValidateReceiptResponse,
)
from appstore_receipts.services.receipt_check import ReceiptCheckService

router = APIRouter()


@router.post(
    "/validate-receipt",
    response_model=ValidateReceiptResponse,
    responses={400: {"model": ReceiptErrorResponse}},
)
async def validate_receipt(
    request: ValidateReceiptRequest,
    service: ReceiptCheckService = Depends(get_receipt_check_service),
) -> ValidateReceiptResponse | JSONResponse:
    """
    Validate an App Store receipt and report whether productId is active.

    Flow:
    1. iOS app finishes a purchase or restore and reads its receipt
    2. App calls this endpoint with the base64 receipt and a product id
    3. Backend verifies with Apple (production, then sandbox on 21007)
    4. Backend checks subscriptions, then one-time purchases, for the product

    A receipt Apple rejects answers 400 with the reason and environment.
    """
    if not request.receipt_data:
        raise InvalidReceiptRequestError("Receipt data is required")
    if not request.product_id:
        raise InvalidReceiptRequestError("Product ID is required")

    result = await service.validate_and_evaluate(request.receipt_data, request.product_id)

    if isinstance(result, ReceiptErrorResponse):
        return JSONResponse(
            status_code=400,
            content=result.model_dump(by_alias=True, exclude_none=True),
        )

    return result


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness check; the service has no dependencies to probe."""
    return HealthResponse(status="healthy", timestamp=datetime.now(UTC).isoformat())
