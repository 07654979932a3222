"""
Metrics Collection with Prometheus.

Exposes receipt validation and HTTP metrics for monitoring.
"""

from enum import Enum

from prometheus_client import Counter, Gauge, Histogram, Info

from appstore_receipts.config import settings


class MetricLabels(str, Enum):
    """Standard metric label names."""

    ENDPOINT = "endpoint"
    METHOD = "method"
    STATUS_CODE = "status_code"
    OPERATION = "operation"
    ENVIRONMENT = "environment"
    ERROR_TYPE = "error_type"


class ReceiptMetrics:
    """
    Centralized metrics for the receipt API.

    Covers:
    - HTTP requests (rate, duration, in progress)
    - Receipt validations by environment and outcome
    - Outbound verifyReceipt calls by environment and Apple status
    - Entitlement decisions
    """

    def __init__(self) -> None:
        """Initialize all Prometheus metrics."""

        # ====================================================================
        # Service Info
        # ====================================================================
        self.service_info = Info(
            "receipts_service",
            "Service information",
        )
        self.service_info.info(
            {
                "version": settings.api_version,
                "service_name": settings.service_name,
            }
        )

        # ====================================================================
        # HTTP Metrics
        # ====================================================================
        self.http_requests_total = Counter(
            "receipts_http_requests_total",
            "Total HTTP requests",
            [MetricLabels.ENDPOINT, MetricLabels.METHOD, MetricLabels.STATUS_CODE],
        )

        self.http_request_duration_seconds = Histogram(
            "receipts_http_request_duration_seconds",
            "HTTP request duration in seconds",
            [MetricLabels.ENDPOINT, MetricLabels.METHOD],
            buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
        )

        self.http_requests_in_progress = Gauge(
            "receipts_http_requests_in_progress",
            "Number of HTTP requests currently being processed",
            [MetricLabels.ENDPOINT, MetricLabels.METHOD],
        )

        # ====================================================================
        # Receipt Validation Metrics
        # ====================================================================
        self.receipt_validations_total = Counter(
            "receipts_validations_total",
            "Total receipt validations by final environment and outcome",
            [MetricLabels.ENVIRONMENT, "outcome"],
        )

        self.appstore_requests_total = Counter(
            "receipts_appstore_requests_total",
            "Total verifyReceipt calls by environment and Apple status",
            [MetricLabels.ENVIRONMENT, "status"],
        )

        self.appstore_request_duration_seconds = Histogram(
            "receipts_appstore_request_duration_seconds",
            "verifyReceipt call duration in seconds",
            [MetricLabels.ENVIRONMENT],
            buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
        )

        self.entitlement_checks_total = Counter(
            "receipts_entitlement_checks_total",
            "Total entitlement decisions",
            ["is_premium"],
        )

        # ====================================================================
        # Error Metrics
        # ====================================================================
        self.errors_total = Counter(
            "receipts_errors_total",
            "Total errors by type",
            [MetricLabels.ERROR_TYPE, MetricLabels.OPERATION],
        )

    # ========================================================================
    # Helper Methods
    # ========================================================================

    def record_http_request(
        self, endpoint: str, method: str, status_code: int, duration: float
    ) -> None:
        """Record HTTP request metrics."""
        self.http_requests_total.labels(
            endpoint=endpoint, method=method, status_code=status_code
        ).inc()
        self.http_request_duration_seconds.labels(endpoint=endpoint, method=method).observe(
            duration
        )

    def record_appstore_request(
        self, environment: str, status: int | None, duration: float
    ) -> None:
        """Record one verifyReceipt call. status is None on transport failure."""
        self.appstore_requests_total.labels(
            environment=environment,
            status="transport_error" if status is None else str(status),
        ).inc()
        self.appstore_request_duration_seconds.labels(environment=environment).observe(duration)

    def record_validation(self, environment: str, verified: bool) -> None:
        """Record the final outcome of a receipt validation."""
        self.receipt_validations_total.labels(
            environment=environment, outcome="verified" if verified else "rejected"
        ).inc()

    def record_entitlement(self, is_premium: bool) -> None:
        """Record an entitlement decision."""
        self.entitlement_checks_total.labels(is_premium=str(is_premium)).inc()

    def record_error(self, error_type: str, operation: str) -> None:
        """Record error occurrence."""
        self.errors_total.labels(error_type=error_type, operation=operation).inc()


# Global metrics instance
metrics = ReceiptMetrics()
