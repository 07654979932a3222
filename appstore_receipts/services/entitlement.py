"""
Entitlement evaluation over a validated receipt.
"""

import time

from appstore_receipts.models.receipt import ValidationOutcome, Verified


def current_time_ms() -> int:
    """Wall-clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


def has_active_entitlement(
    outcome: ValidationOutcome,
    product_id: str,
    now_ms: int | None = None,
) -> bool:
    """
    Check whether the receipt grants product_id right now.

    An auto-renewable subscription counts while any latest_receipt_info
    entry for the product expires strictly after now. Failing that, any
    in_app entry for the product counts, with no expiry check, which
    covers non-renewable and non-consumable purchases.

    Args:
        outcome: Result of ReceiptValidator.validate
        product_id: App Store Connect product identifier
        now_ms: Evaluation time; read once from the clock when omitted

    Returns:
        True on the first qualifying transaction, False otherwise
    """
    if not isinstance(outcome, Verified) or outcome.receipt is None:
        return False

    receipt = outcome.receipt
    if now_ms is None:
        now_ms = current_time_ms()

    for transaction in receipt.latest_transactions:
        if transaction.product_id == product_id and transaction.is_active_at(now_ms):
            return True

    for purchase in receipt.in_app_purchases:
        if purchase.product_id == product_id:
            return True

    return False
