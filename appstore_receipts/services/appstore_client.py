"""
App Store verifyReceipt transport.

Posts a JSON body to a verifyReceipt endpoint and returns the decoded
response. Network failures and unusable bodies raise AppStoreTransportError.
"""

from typing import Protocol

import httpx
from structlog import get_logger

from appstore_receipts.exceptions import AppStoreTransportError

logger = get_logger(__name__)


class ReceiptTransport(Protocol):
    """Outbound POST JSON client the validator depends on."""

    async def post_json(self, url: str, body: dict[str, object]) -> dict[str, object]:
        """
        POST body as JSON to url.

        Returns:
            Parsed JSON object from the response body

        Raises:
            AppStoreTransportError: On network failure or malformed response
        """
        ...


class AppStoreClient:
    """httpx-based verifyReceipt transport."""

    def __init__(self, timeout: float = 30.0) -> None:
        self.timeout = timeout

    async def post_json(self, url: str, body: dict[str, object]) -> dict[str, object]:
        """POST to a verifyReceipt endpoint and return the decoded body.

        verifyReceipt answers HTTP 200 with a status field for rejected
        receipts, so the HTTP status code is not inspected; a non-JSON error
        page fails at parse time instead.
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    url,
                    json=body,
                    headers={"Content-Type": "application/json"},
                )
        except httpx.HTTPError as exc:
            logger.warning("appstore_request_failed", url=url, error=str(exc))
            raise AppStoreTransportError(f"Request failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            logger.warning(
                "appstore_response_unparseable",
                url=url,
                http_status=response.status_code,
            )
            raise AppStoreTransportError(f"Failed to parse Apple response: {exc}") from exc

        if not isinstance(payload, dict):
            raise AppStoreTransportError(
                f"Failed to parse Apple response: expected a JSON object, "
                f"got {type(payload).__name__}"
            )

        return payload
