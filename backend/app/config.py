"""
BarcodeSnap Backend — Application Configuration
=================================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time; validated before app starts.
"""

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

# Export delivery modes understood by ExportService
DELIVERY_PERSISTED = "persisted"
DELIVERY_STREAMED = "streamed"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for development. The Google Sheets
    integration stays disabled until GOOGLE_CLOUD_CREDENTIALS is provided.
    """

    # ── Temporary Storage ─────────────────────────────────────────────────
    # Three sibling directories, created lazily relative to the process root
    upload_dir: str = Field(default="./uploads")
    processed_dir: str = Field(default="./processed_uploads")
    export_dir: str = Field(default="./exports")

    # Default: 10MB = 10 * 1024 * 1024 = 10485760
    max_file_size: int = Field(default=10_485_760, ge=1_048_576, le=52_428_800)

    # ── Image Normalization ───────────────────────────────────────────────
    # Bounding box the normalized image must fit inside
    normalize_max_width: int = Field(default=1600, ge=100, le=10_000)
    normalize_max_height: int = Field(default=1400, ge=100, le=10_000)

    # ── Excel Export ──────────────────────────────────────────────────────
    # persisted: write to export_dir and return the path
    # streamed:  send the workbook as an attachment without touching disk
    export_delivery_mode: str = Field(default=DELIVERY_PERSISTED)

    @field_validator("export_delivery_mode")
    @classmethod
    def validate_delivery_mode(cls, v: str) -> str:
        """Ensures the delivery mode is one ExportService knows how to serve."""
        lower = v.strip().lower()
        valid_modes = {DELIVERY_PERSISTED, DELIVERY_STREAMED}
        if lower not in valid_modes:
            raise ValueError(
                f"Invalid export_delivery_mode '{v}'. Must be one of: {sorted(valid_modes)}"
            )
        return lower

    # ── Google Sheets ─────────────────────────────────────────────────────
    # Service-account JSON blob (the full key file contents, not a path)
    google_cloud_credentials: str = Field(
        default="",
        description="Google service account credentials (JSON) for Sheets API access",
    )
    # Rows are appended below the last non-empty row of this range
    google_sheet_range: str = Field(default="Sheet1!A:A")

    # ── CORS ──────────────────────────────────────────────────────────────
    # Comma-separated URLs, or "*" to allow any origin
    cors_origins: str = Field(default="*")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=5000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @property
    def sheets_enabled(self) -> bool:
        """True when a service account credential blob has been supplied."""
        return bool(self.google_cloud_credentials.strip())

    def configuration_warnings(self) -> List[str]:
        """
        What:  Lists settings that leave a feature disabled.
        When:  Logged once during app startup (lifespan).
        """
        problems = []
        if not self.sheets_enabled:
            problems.append(
                "GOOGLE_CLOUD_CREDENTIALS is not set. "
                "POST /upload-google-sheet will answer 503 until it is configured."
            )
        return problems


# Singleton instance, imported throughout the application
settings = Settings()
