"""
Exception Classes - Strongly typed exception hierarchy.

Provider outcomes are never raised; they travel as ValidationOutcome values.
These exceptions cover the transport layer and the HTTP boundary.
"""


class ReceiptServiceError(Exception):
    """Base exception for all receipt service errors."""

    pass


class AppStoreTransportError(ReceiptServiceError):
    """Raised when the verifyReceipt call fails or returns an unusable body."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidReceiptRequestError(ReceiptServiceError):
    """Raised when a caller omits the receipt data or product id."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Invalid receipt request: {message}")
