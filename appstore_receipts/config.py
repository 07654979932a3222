"""
Application Configuration - Pydantic Settings for type-safe config.

FAIL FAST - The shared secret and endpoint URLs are validated at startup.
"""

import sys

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

APPLE_PRODUCTION_VERIFY_URL = "https://buy.itunes.apple.com/verifyReceipt"
APPLE_SANDBOX_VERIFY_URL = "https://sandbox.itunes.apple.com/verifyReceipt"


class ConfigurationError(Exception):
    """Raised when critical configuration is missing or invalid."""

    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_title: str = "App Store Receipt API"
    api_version: str = "0.1.0"
    api_description: str = "Validates App Store receipts and reports product entitlements"

    # Apple verifyReceipt - NO DEFAULT secret for production safety
    apple_shared_secret: str = ""  # App Store Connect app-specific shared secret
    apple_production_url: str = APPLE_PRODUCTION_VERIFY_URL
    apple_sandbox_url: str = APPLE_SANDBOX_VERIFY_URL
    apple_request_timeout: float = 30.0  # seconds, per outbound call

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # json or console

    # Observability - Metrics
    metrics_enabled: bool = True

    # Observability - Tracing
    tracing_enabled: bool = False
    otlp_endpoint: str = "http://otel-collector:4317"
    otlp_insecure: bool = True
    service_name: str = "appstore-receipt-api"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_critical_config(self) -> "Settings":
        """
        FAIL FAST: Validate critical configuration at startup.

        Without a shared secret Apple rejects every auto-renewable
        subscription receipt, so the app refuses to start.
        """
        errors: list[str] = []

        if not self.apple_shared_secret:
            errors.append("APPLE_SHARED_SECRET is required but empty or missing")

        for name, url in (
            ("APPLE_PRODUCTION_URL", self.apple_production_url),
            ("APPLE_SANDBOX_URL", self.apple_sandbox_url),
        ):
            if not url.startswith(("https://", "http://")):
                errors.append(f"{name} must be an http(s) URL, got: {url[:40]}")

        if self.apple_request_timeout <= 0:
            errors.append(
                f"APPLE_REQUEST_TIMEOUT must be positive, got: {self.apple_request_timeout}"
            )

        if self.log_format not in ("json", "console"):
            errors.append(f"LOG_FORMAT must be 'json' or 'console', got: {self.log_format}")

        if errors:
            error_msg = "\n".join(
                [
                    "",
                    "=" * 60,
                    "CRITICAL CONFIGURATION ERROR - APPLICATION CANNOT START",
                    "=" * 60,
                    *[f"  ✗ {e}" for e in errors],
                    "=" * 60,
                    "",
                ]
            )
            print(error_msg, file=sys.stderr)
            raise ConfigurationError(error_msg)

        return self


# Global settings instance - validates at import time
settings = Settings()


def get_settings() -> Settings:
    """Get application settings instance."""
    return settings
