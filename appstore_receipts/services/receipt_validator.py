"""
Receipt Validator - verifyReceipt with production-to-sandbox fallback.

Apple's documented flow: always verify against production first. If
production answers 21007 the receipt was issued in the sandbox and must be
re-sent, unchanged, to the sandbox endpoint. The reverse (21008 from
sandbox) never happens here because sandbox is only reached via 21007.

https://developer.apple.com/documentation/storekit/in-app_purchase/original_api_for_in-app_purchase/validating_receipts_with_the_app_store
"""

import time

from structlog import get_logger

from appstore_receipts.config import APPLE_PRODUCTION_VERIFY_URL, APPLE_SANDBOX_VERIFY_URL
from appstore_receipts.exceptions import AppStoreTransportError
from appstore_receipts.models.receipt import (
    AppStoreStatus,
    Environment,
    ReceiptRecord,
    Rejected,
    ValidationOutcome,
    ValidationRequest,
    Verified,
)
from appstore_receipts.observability.metrics import metrics
from appstore_receipts.observability.tracing import trace_operation
from appstore_receipts.services.appstore_client import ReceiptTransport

logger = get_logger(__name__)


def _read_status(response: dict[str, object]) -> int:
    status = response.get("status")
    if isinstance(status, bool) or not isinstance(status, int):
        raise AppStoreTransportError(
            f"Failed to parse Apple response: missing or invalid status {status!r}"
        )
    return status


def _status_name(status: int) -> str:
    try:
        return AppStoreStatus(status).name
    except ValueError:
        return "UNKNOWN_STATUS"


class ReceiptValidator:
    """
    Validates receipts against Apple's verifyReceipt endpoints.

    Stateless apart from immutable configuration; one instance can serve
    concurrent requests.
    """

    def __init__(
        self,
        transport: ReceiptTransport,
        shared_secret: str,
        production_url: str = APPLE_PRODUCTION_VERIFY_URL,
        sandbox_url: str = APPLE_SANDBOX_VERIFY_URL,
    ) -> None:
        """
        Initialize receipt validator.

        Args:
            transport: POST JSON client for the verifyReceipt endpoints
            shared_secret: App Store Connect shared secret
            production_url: Production verifyReceipt URL
            sandbox_url: Sandbox verifyReceipt URL
        """
        self.transport = transport
        self.shared_secret = shared_secret
        self.production_url = production_url
        self.sandbox_url = sandbox_url

    def _url_for(self, environment: Environment) -> str:
        if environment == Environment.SANDBOX:
            return self.sandbox_url
        return self.production_url

    async def _verify(
        self, environment: Environment, body: dict[str, object]
    ) -> tuple[int, dict[str, object]]:
        """Send one verifyReceipt call and return (status, response body)."""
        start = time.perf_counter()
        status: int | None = None
        try:
            with trace_operation(
                "appstore_verify_receipt", environment=environment.value
            ) as span:
                response = await self.transport.post_json(self._url_for(environment), body)
                status = _read_status(response)
                span.set_attribute("appstore.status", status)
            return status, response
        finally:
            metrics.record_appstore_request(
                environment.value, status, time.perf_counter() - start
            )

    async def validate(self, receipt_data: str) -> ValidationOutcome:
        """
        Validate a receipt, falling back to sandbox on status 21007.

        Args:
            receipt_data: Base64 receipt blob from the device

        Returns:
            Verified or Rejected; transport failures become Rejected with
            an unknown environment. Never raises for provider outcomes.
        """
        body = ValidationRequest(
            receipt_data=receipt_data,
            password=self.shared_secret,
        ).to_body()

        outcome = await self._validate(body)

        metrics.record_validation(outcome.environment.value, isinstance(outcome, Verified))
        return outcome

    async def _validate(self, body: dict[str, object]) -> ValidationOutcome:
        try:
            status, response = await self._verify(Environment.PRODUCTION, body)
        except AppStoreTransportError as exc:
            logger.error(
                "appstore_validation_transport_error", environment="production", error=exc.message
            )
            metrics.record_error(type(exc).__name__, "verify_receipt")
            return Rejected(environment=Environment.UNKNOWN, reason=exc.message)

        if status == AppStoreStatus.VALID:
            logger.info("appstore_receipt_verified", environment="production")
            return Verified(
                environment=Environment.PRODUCTION,
                receipt=ReceiptRecord.from_response(response),
            )

        if status != AppStoreStatus.SANDBOX_RECEIPT_ON_PRODUCTION:
            logger.warning(
                "appstore_receipt_rejected",
                environment="production",
                status=status,
                status_name=_status_name(status),
            )
            return Rejected(
                environment=Environment.PRODUCTION,
                reason=f"production validation failed with status {status}",
                status=status,
            )

        logger.info("appstore_sandbox_fallback", production_status=status)

        try:
            status, response = await self._verify(Environment.SANDBOX, body)
        except AppStoreTransportError as exc:
            logger.error(
                "appstore_validation_transport_error", environment="sandbox", error=exc.message
            )
            metrics.record_error(type(exc).__name__, "verify_receipt")
            return Rejected(environment=Environment.UNKNOWN, reason=exc.message)

        if status == AppStoreStatus.VALID:
            logger.info("appstore_receipt_verified", environment="sandbox")
            return Verified(
                environment=Environment.SANDBOX,
                receipt=ReceiptRecord.from_response(response),
            )

        logger.warning(
            "appstore_receipt_rejected",
            environment="sandbox",
            status=status,
            status_name=_status_name(status),
        )
        return Rejected(
            environment=Environment.SANDBOX,
            reason=f"sandbox validation failed with status {status}",
            status=status,
        )
