"""
FastAPI Dependencies - Receipt validation collaborators built from settings.

Tests override get_receipt_validator to inject fake secrets and endpoints.
"""

from fastapi import Depends

from appstore_receipts.config import Settings, get_settings
from appstore_receipts.services.appstore_client import AppStoreClient
from appstore_receipts.services.receipt_check import ReceiptCheckService
from appstore_receipts.services.receipt_validator import ReceiptValidator


def get_receipt_validator(settings: Settings = Depends(get_settings)) -> ReceiptValidator:
    """Build a validator from the configured secret, URLs and timeout."""
    return ReceiptValidator(
        transport=AppStoreClient(timeout=settings.apple_request_timeout),
        shared_secret=settings.apple_shared_secret,
        production_url=settings.apple_production_url,
        sandbox_url=settings.apple_sandbox_url,
    )


def get_receipt_check_service(
    validator: ReceiptValidator = Depends(get_receipt_validator),
) -> ReceiptCheckService:
    """Get the receipt check service for the current request."""
    return ReceiptCheckService(validator)
