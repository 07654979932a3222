"""
Pytest Configuration and Centralized Fixtures.

Provides reusable fakes and fixtures for testing:
- A recording verifyReceipt transport with scripted responses
- Apple response bodies in various shapes
- Validator, service and API test client wired to the fake transport
"""

import os
import time
from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

# Set required environment variables BEFORE importing app modules
os.environ.setdefault("APPLE_SHARED_SECRET", "test-shared-secret")
os.environ.setdefault("TRACING_ENABLED", "false")

from appstore_receipts.api.dependencies import get_receipt_validator
from appstore_receipts.exceptions import AppStoreTransportError
from appstore_receipts.main import app
from appstore_receipts.services.receipt_check import ReceiptCheckService
from appstore_receipts.services.receipt_validator import ReceiptValidator

PRODUCTION_URL = "https://prod.example.test/verifyReceipt"
SANDBOX_URL = "https://sandbox.example.test/verifyReceipt"
SHARED_SECRET = "fake-shared-secret"
RECEIPT_DATA = "MIIT0gYJKoZIhvcNAQcCoIITwzCCE78CAQExCzAJBgUrDgMCGgUA"
MONTHLY = "com.app.monthly"
LIFETIME = "com.app.lifetime"

# ============================================================================
# Fake Transport
# ============================================================================


class FakeTransport:
    """
    Scripted stand-in for AppStoreClient.

    Each URL maps to a response body or an exception to raise. Every call
    is recorded as (url, body) in order.
    """

    def __init__(self, responses: dict[str, dict[str, object] | Exception]) -> None:
        self.responses = responses
        self.calls: list[tuple[str, dict[str, object]]] = []

    async def post_json(self, url: str, body: dict[str, object]) -> dict[str, object]:
        self.calls.append((url, body))
        result = self.responses[url]
        if isinstance(result, Exception):
            raise result
        return result

    @property
    def urls(self) -> list[str]:
        return [url for url, _ in self.calls]


def make_validator(transport: FakeTransport) -> ReceiptValidator:
    """Validator pointed at the fake endpoints."""
    return ReceiptValidator(
        transport=transport,
        shared_secret=SHARED_SECRET,
        production_url=PRODUCTION_URL,
        sandbox_url=SANDBOX_URL,
    )


# ============================================================================
# Time Fixtures
# ============================================================================


def now_millis() -> int:
    return int(time.time() * 1000)


@pytest.fixture
def future_ms() -> int:
    """An expiry one day from now."""
    return now_millis() + 24 * 60 * 60 * 1000


@pytest.fixture
def past_ms() -> int:
    """An expiry one day ago."""
    return now_millis() - 24 * 60 * 60 * 1000


# ============================================================================
# Apple Response Fixtures
# ============================================================================


def apple_response(
    status: int,
    latest_receipt_info: list[dict[str, object]] | None = None,
    in_app: list[dict[str, object]] | None = None,
) -> dict[str, object]:
    """Build a verifyReceipt response body the way the legacy endpoint shapes it."""
    body: dict[str, object] = {"status": status}
    if status != 0:
        return body
    receipt: dict[str, object] = {"bundle_id": "com.app", "in_app": in_app or []}
    if latest_receipt_info is not None:
        receipt["latest_receipt_info"] = latest_receipt_info
    body["receipt"] = receipt
    return body


@pytest.fixture
def active_subscription_response(future_ms: int) -> dict[str, object]:
    """Status 0 with a monthly subscription that has not expired."""
    return apple_response(
        0,
        latest_receipt_info=[
            {
                "product_id": MONTHLY,
                "transaction_id": "1000000000000002",
                "original_transaction_id": "1000000000000001",
                "expires_date_ms": str(future_ms),
            }
        ],
    )


@pytest.fixture
def expired_subscription_response(past_ms: int) -> dict[str, object]:
    """Status 0 with a monthly subscription that has expired."""
    return apple_response(
        0,
        latest_receipt_info=[{"product_id": MONTHLY, "expires_date_ms": str(past_ms)}],
    )


# ============================================================================
# API Client Fixtures
# ============================================================================


@pytest.fixture
def transport_override() -> Iterator[dict[str, FakeTransport]]:
    """
    Route the API through a FakeTransport.

    Tests put a transport under the "transport" key before calling the API.
    """
    holder: dict[str, FakeTransport] = {}
    app.dependency_overrides[get_receipt_validator] = lambda: make_validator(
        holder["transport"]
    )
    yield holder
    app.dependency_overrides.clear()


@pytest.fixture
def client() -> TestClient:
    """Test client that returns 500 responses instead of raising."""
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def service_for():
    """Factory for a ReceiptCheckService over a FakeTransport."""

    def _create(transport: FakeTransport) -> ReceiptCheckService:
        return ReceiptCheckService(make_validator(transport))

    return _create


@pytest.fixture
def transport_error() -> AppStoreTransportError:
    return AppStoreTransportError("Request failed: connection refused")
