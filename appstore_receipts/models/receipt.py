"""
App Store receipt domain models - Immutable dataclasses for receipt validation.

Covers the legacy verifyReceipt protocol:
https://developer.apple.com/documentation/appstorereceipts/verifyreceipt
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum, IntEnum


class Environment(str, Enum):
    """App Store environment a receipt was verified against."""

    PRODUCTION = "production"
    SANDBOX = "sandbox"
    UNKNOWN = "unknown"


class AppStoreStatus(IntEnum):
    """Status codes returned in the verifyReceipt response body.

    https://developer.apple.com/documentation/appstorereceipts/status
    """

    VALID = 0
    INVALID_JSON = 21000  # Request was not an HTTP POST or body was not JSON
    MALFORMED_RECEIPT_DATA = 21002  # receipt-data was malformed or the service was down
    RECEIPT_NOT_AUTHENTICATED = 21003
    SHARED_SECRET_MISMATCH = 21004
    RECEIPT_SERVER_UNAVAILABLE = 21005
    SUBSCRIPTION_EXPIRED = 21006
    # Apple: "This receipt is from the test environment, but it was sent to the
    # production environment for verification." Re-verify against sandbox.
    SANDBOX_RECEIPT_ON_PRODUCTION = 21007
    # Apple: "This receipt is from the production environment, but it was sent
    # to the test environment for verification." Never retried here.
    PRODUCTION_RECEIPT_ON_SANDBOX = 21008
    INTERNAL_DATA_ACCESS_ERROR = 21009
    ACCOUNT_NOT_FOUND = 21010


@dataclass(frozen=True)
class ValidationRequest:
    """Body sent to the verifyReceipt endpoints."""

    receipt_data: str
    password: str  # App Store Connect shared secret
    exclude_old_transactions: bool = True

    def to_body(self) -> dict[str, object]:
        """Serialize using Apple's hyphenated wire keys."""
        return {
            "receipt-data": self.receipt_data,
            "password": self.password,
            "exclude-old-transactions": self.exclude_old_transactions,
        }


def _parse_millis(value: object) -> int | None:
    """Parse an Apple *_ms field, which arrives as a decimal string."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    return str(value)


@dataclass(frozen=True)
class TransactionInfo:
    """One entry from latest_receipt_info or in_app."""

    product_id: str
    expires_at_ms: int | None = None  # Present on auto-renewable subscriptions
    transaction_id: str | None = None
    original_transaction_id: str | None = None

    @classmethod
    def from_payload(cls, data: Mapping[str, object]) -> "TransactionInfo":
        return cls(
            product_id=str(data.get("product_id", "")),
            expires_at_ms=_parse_millis(data.get("expires_date_ms")),
            transaction_id=_optional_str(data.get("transaction_id")),
            original_transaction_id=_optional_str(data.get("original_transaction_id")),
        )

    def is_active_at(self, now_ms: int) -> bool:
        """Check if the subscription period extends strictly past now_ms."""
        return self.expires_at_ms is not None and self.expires_at_ms > now_ms


def _parse_transactions(entries: object) -> tuple[TransactionInfo, ...]:
    if not isinstance(entries, list):
        return ()
    return tuple(
        TransactionInfo.from_payload(entry) for entry in entries if isinstance(entry, Mapping)
    )


@dataclass(frozen=True)
class ReceiptRecord:
    """Structured view of a verified receipt.

    latest_transactions keeps Apple's order, which is not guaranteed to be
    sorted by expiry. raw is the receipt object exactly as Apple sent it.
    """

    latest_transactions: tuple[TransactionInfo, ...] = ()
    in_app_purchases: tuple[TransactionInfo, ...] = ()
    raw: dict[str, object] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_response(cls, response: Mapping[str, object]) -> "ReceiptRecord | None":
        """
        Build a record from a verifyReceipt response body.

        Returns None when the response carries no receipt object.
        """
        receipt = response.get("receipt")
        if not isinstance(receipt, Mapping):
            return None

        latest = receipt.get("latest_receipt_info")
        if latest is None:
            # Apple puts latest_receipt_info at the top level for
            # auto-renewable subscription receipts
            latest = response.get("latest_receipt_info")

        return cls(
            latest_transactions=_parse_transactions(latest),
            in_app_purchases=_parse_transactions(receipt.get("in_app")),
            raw=dict(receipt),
        )


@dataclass(frozen=True)
class Verified:
    """Apple accepted the receipt in the given environment."""

    environment: Environment
    receipt: ReceiptRecord | None

    def __post_init__(self) -> None:
        if self.environment == Environment.UNKNOWN:
            raise ValueError("Verified outcome requires a known environment")


@dataclass(frozen=True)
class Rejected:
    """Validation failed; reason is human readable."""

    environment: Environment
    reason: str
    status: int | None = None  # Apple status code, None for transport failures


ValidationOutcome = Verified | Rejected
