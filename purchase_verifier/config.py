"""
Application Configuration - Pydantic Settings for type-safe config.

NO DICTIONARIES - All configuration is strongly typed.
FAIL FAST - Store credentials are validated when the dispatcher is built.
"""

import base64
import binascii
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Google Play Developer API
    # Service account JSON (base64 encoded or raw JSON)
    google_play_service_account: str = ""
    google_play_package_name: str = ""  # e.g., "com.app.x"
    google_play_timeout_seconds: float = 30.0

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # json or console

    # Service identity (attached to every log entry)
    service_name: str = "purchase-verifier"
    service_version: str = "0.1.0"

    # Observability - Metrics
    metrics_enabled: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, value: str) -> str:
        """Only json and console renderers exist."""
        if value not in ("json", "console"):
            raise ValueError(f"log_format must be 'json' or 'console', got: {value}")
        return value

    @field_validator("google_play_timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        """Network timeout must be positive."""
        if value <= 0:
            raise ValueError(f"google_play_timeout_seconds must be positive: {value}")
        return value

    def service_account_bytes(self) -> bytes:
        """
        Get the service account credential as raw JSON bytes.

        Accepts either the JSON document itself or its base64 encoding.
        Returns empty bytes when no credential is configured.
        """
        raw = self.google_play_service_account.strip()
        if not raw:
            return b""
        if raw.startswith("{"):
            return raw.encode("utf-8")
        try:
            return base64.b64decode(raw, validate=True)
        except (binascii.Error, ValueError):
            # Not base64; let the JSON parser report the problem
            return raw.encode("utf-8")


@lru_cache
def get_settings() -> Settings:
    """Get application settings instance."""
    return Settings()
