"""
Tests for the entitlement evaluator.
"""

from unittest.mock import patch

from conftest import LIFETIME, MONTHLY

from appstore_receipts.models.receipt import (
    Environment,
    ReceiptRecord,
    Rejected,
    TransactionInfo,
    Verified,
)
from appstore_receipts.services.entitlement import current_time_ms, has_active_entitlement

NOW = 1_750_000_000_000


def verified(
    latest: list[TransactionInfo] | None = None,
    in_app: list[TransactionInfo] | None = None,
) -> Verified:
    return Verified(
        environment=Environment.PRODUCTION,
        receipt=ReceiptRecord(
            latest_transactions=tuple(latest or ()),
            in_app_purchases=tuple(in_app or ()),
        ),
    )


class TestNonVerifiedOutcomes:
    """Outcomes that can never grant an entitlement."""

    def test_rejected_is_not_entitled(self):
        """Rejected outcomes return False for any product."""
        outcome = Rejected(environment=Environment.PRODUCTION, reason="nope", status=21002)
        assert has_active_entitlement(outcome, MONTHLY, now_ms=NOW) is False

    def test_rejected_unknown_environment(self):
        """Transport rejections return False."""
        outcome = Rejected(environment=Environment.UNKNOWN, reason="Request failed: x")
        assert has_active_entitlement(outcome, MONTHLY, now_ms=NOW) is False

    def test_verified_without_receipt(self):
        """A verified outcome with no receipt record returns False."""
        outcome = Verified(environment=Environment.SANDBOX, receipt=None)
        assert has_active_entitlement(outcome, MONTHLY, now_ms=NOW) is False


class TestSubscriptionScan:
    """latest_receipt_info expiry checks."""

    def test_future_expiry_is_entitled(self):
        """A subscription expiring after now grants access."""
        outcome = verified(latest=[TransactionInfo(MONTHLY, expires_at_ms=NOW + 1)])
        assert has_active_entitlement(outcome, MONTHLY, now_ms=NOW) is True

    def test_past_expiry_is_not_entitled(self):
        """A subscription that expired before now does not."""
        outcome = verified(latest=[TransactionInfo(MONTHLY, expires_at_ms=NOW - 1)])
        assert has_active_entitlement(outcome, MONTHLY, now_ms=NOW) is False

    def test_expiry_equal_to_now_is_not_entitled(self):
        """Expiry must be strictly greater than now."""
        outcome = verified(latest=[TransactionInfo(MONTHLY, expires_at_ms=NOW)])
        assert has_active_entitlement(outcome, MONTHLY, now_ms=NOW) is False

    def test_missing_expiry_is_not_entitled(self):
        """A latest_receipt_info entry with no expiry never qualifies on its own."""
        outcome = verified(latest=[TransactionInfo(MONTHLY)])
        assert has_active_entitlement(outcome, MONTHLY, now_ms=NOW) is False

    def test_unsorted_renewal_history(self):
        """Any active entry in an unsorted history qualifies."""
        outcome = verified(
            latest=[
                TransactionInfo(MONTHLY, expires_at_ms=NOW - 3_000),
                TransactionInfo(MONTHLY, expires_at_ms=NOW + 60_000),
                TransactionInfo(MONTHLY, expires_at_ms=NOW - 1_000),
            ]
        )
        assert has_active_entitlement(outcome, MONTHLY, now_ms=NOW) is True

    def test_other_product_active(self):
        """An active subscription for another product does not count."""
        outcome = verified(latest=[TransactionInfo("com.app.yearly", expires_at_ms=NOW + 1)])
        assert has_active_entitlement(outcome, MONTHLY, now_ms=NOW) is False


class TestInAppFallback:
    """in_app presence checks."""

    def test_in_app_purchase_is_entitled(self):
        """Presence in in_app grants access without an expiry."""
        outcome = verified(in_app=[TransactionInfo(LIFETIME)])
        assert has_active_entitlement(outcome, LIFETIME, now_ms=NOW) is True

    def test_expired_subscription_with_in_app_entry(self):
        """An expired subscription still passes via the in_app scan."""
        outcome = verified(
            latest=[TransactionInfo(MONTHLY, expires_at_ms=NOW - 1)],
            in_app=[TransactionInfo(MONTHLY, expires_at_ms=NOW - 1)],
        )
        assert has_active_entitlement(outcome, MONTHLY, now_ms=NOW) is True

    def test_no_matching_product(self):
        """No entry for the product in either sequence returns False."""
        outcome = verified(
            latest=[TransactionInfo("com.app.yearly", expires_at_ms=NOW + 1)],
            in_app=[TransactionInfo(LIFETIME)],
        )
        assert has_active_entitlement(outcome, MONTHLY, now_ms=NOW) is False

    def test_empty_receipt(self):
        """A receipt with no transactions returns False."""
        assert has_active_entitlement(verified(), MONTHLY, now_ms=NOW) is False


class TestClock:
    """Wall-clock handling."""

    def test_clock_read_when_now_omitted(self):
        """The evaluator reads the clock once when now_ms is not given."""
        outcome = verified(latest=[TransactionInfo(MONTHLY, expires_at_ms=NOW + 10)])

        with patch(
            "appstore_receipts.services.entitlement.current_time_ms", return_value=NOW
        ) as mock_clock:
            assert has_active_entitlement(outcome, MONTHLY) is True

        mock_clock.assert_called_once()

    def test_clock_not_read_without_receipt(self):
        """Rejected outcomes short-circuit before the clock is read."""
        outcome = Rejected(environment=Environment.UNKNOWN, reason="x")

        with patch("appstore_receipts.services.entitlement.current_time_ms") as mock_clock:
            assert has_active_entitlement(outcome, MONTHLY) is False

        mock_clock.assert_not_called()

    def test_current_time_ms_is_epoch_millis(self):
        """current_time_ms returns milliseconds, not seconds."""
        assert current_time_ms() > 1_600_000_000_000

    def test_idempotent(self):
        """Same outcome, product and time give the same answer."""
        outcome = verified(
            latest=[TransactionInfo(MONTHLY, expires_at_ms=NOW + 5)],
            in_app=[TransactionInfo(LIFETIME)],
        )
        first = has_active_entitlement(outcome, MONTHLY, now_ms=NOW)
        second = has_active_entitlement(outcome, MONTHLY, now_ms=NOW)
        assert first is second is True
