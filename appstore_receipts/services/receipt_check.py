"""
Receipt Check Service - validate a receipt, then evaluate one product.
"""

from structlog import get_logger

from appstore_receipts.models.api import ReceiptErrorResponse, ValidateReceiptResponse
from appstore_receipts.models.receipt import Rejected
from appstore_receipts.observability.metrics import metrics
from appstore_receipts.services.entitlement import has_active_entitlement
from appstore_receipts.services.receipt_validator import ReceiptValidator

logger = get_logger(__name__)


class ReceiptCheckService:
    """Runs ReceiptValidator and the entitlement evaluator for one request."""

    def __init__(self, validator: ReceiptValidator) -> None:
        self.validator = validator

    async def validate_and_evaluate(
        self, receipt_data: str, product_id: str
    ) -> ValidateReceiptResponse | ReceiptErrorResponse:
        """
        Validate receipt_data and report whether product_id is entitled.

        Returns:
            ValidateReceiptResponse when Apple verified the receipt (even if
            the product is not entitled), ReceiptErrorResponse otherwise
        """
        outcome = await self.validator.validate(receipt_data)

        if isinstance(outcome, Rejected):
            logger.info(
                "receipt_check_rejected",
                product_id=product_id,
                environment=outcome.environment.value,
                reason=outcome.reason,
            )
            return ReceiptErrorResponse(
                error=outcome.reason,
                environment=outcome.environment.value,
            )

        is_premium = has_active_entitlement(outcome, product_id)
        metrics.record_entitlement(is_premium)

        logger.info(
            "entitlement_evaluated",
            product_id=product_id,
            environment=outcome.environment.value,
            is_premium=is_premium,
        )

        return ValidateReceiptResponse(
            is_premium=is_premium,
            environment=outcome.environment.value,
            receipt=outcome.receipt.raw if outcome.receipt is not None else None,
        )
