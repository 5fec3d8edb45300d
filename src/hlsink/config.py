"""
Configuration for the HLS sink.

Settings are loaded from ``HLSINK_``-prefixed environment variables or a
``.env`` file, with defaults suitable for writing a local HLS presentation.
"""

import math
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SinkSettings(BaseSettings):
    """Sink settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="HLSINK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Presentation
    manifest_name: str = Field(
        default="index", description="Name of the main manifest file"
    )
    manifest_format: str = Field(
        default="hls", description="Manifest format binding (hls)"
    )
    target_window_duration: Optional[float] = Field(
        default=5.0,
        description=(
            "Seconds of media the live manifest keeps referencing. "
            "None or 'infinity' disables trimming."
        ),
    )
    persist: bool = Field(
        default=False,
        description=(
            "Keep trimmed fragments in storage and restore them into the "
            "manifest at teardown"
        ),
    )
    target_fragment_duration: float = Field(
        default=0.0,
        description="Expected fragment duration in seconds (0 = no hint)",
    )
    init_extension: str = Field(default=".mp4", description="Init segment extension")
    fragment_extension: str = Field(
        default=".m4s", description="Media fragment extension"
    )

    # Storage
    storage_backend: Literal["file", "s3", "memory"] = Field(
        default="file", description="Storage binding"
    )
    storage_directory: str = Field(
        default="output", description="Output directory for file storage"
    )
    s3_bucket: Optional[str] = Field(default=None, description="S3 bucket name")
    s3_prefix: str = Field(default="", description="Key prefix inside the bucket")
    s3_region: str = Field(default="us-east-1", description="AWS region")
    s3_endpoint_url: Optional[str] = Field(
        default=None, description="S3 endpoint URL (for S3-compatible services)"
    )
    aws_access_key_id: Optional[str] = Field(default=None, description="AWS access key")
    aws_secret_access_key: Optional[SecretStr] = Field(
        default=None, description="AWS secret key"
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    log_format: Literal["json", "text"] = Field(
        default="text", description="Log format (json or text)"
    )

    # Logfire
    logfire_enabled: bool = Field(default=False, description="Enable Logfire tracing")
    logfire_service_name: str = Field(
        default="hlsink", description="Service name reported to Logfire"
    )
    logfire_console_enabled: bool = Field(
        default=False, description="Print Logfire spans to the console"
    )
    logfire_token: Optional[SecretStr] = Field(
        default=None, description="Logfire write token"
    )

    @field_validator("target_window_duration", mode="before")
    @classmethod
    def parse_infinite_window(cls, v):
        """Accept 'infinity'/'inf'/'none' for an unbounded window."""
        if isinstance(v, str) and v.strip().lower() in ("inf", "infinity", "none", ""):
            return None
        if isinstance(v, (int, float)) and math.isinf(v):
            return None
        return v

    @field_validator("target_window_duration", "target_fragment_duration")
    @classmethod
    def non_negative(cls, v):
        if v is not None and v < 0:
            raise ValueError("durations must not be negative")
        return v

    @model_validator(mode="after")
    def validate_storage_settings(self):
        """Ensure the selected storage binding is configured."""
        if self.storage_backend == "s3" and not self.s3_bucket:
            raise ValueError("s3_bucket is required when storage_backend is 's3'")
        return self


@lru_cache()
def get_settings() -> SinkSettings:
    """Get cached settings instance."""
    return SinkSettings()
