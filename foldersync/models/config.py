"""Configuration models for the folder synchronization tool."""

import hashlib

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

HASH_THRESHOLD_BYTES = 10 * 1024 * 1024


class SyncConfig(BaseModel):
    """Configuration for the mirrored folder pair and the pass period."""

    source_path: str = Field(default=..., min_length=1, description="Folder to mirror from")
    replica_path: str = Field(default=..., min_length=1, description="Folder to mirror into")
    interval_ms: int = Field(
        default=..., gt=0, description="Period between passes in milliseconds"
    )

    @field_validator("interval_ms", mode="before")
    @classmethod
    def validate_interval_is_integer(cls, v: object) -> object:
        """Reject fractional and boolean intervals before int coercion."""
        if isinstance(v, bool) or isinstance(v, float):
            raise ValueError("interval_ms must be a positive integer")
        if isinstance(v, str):
            stripped = v.strip()
            if not stripped.lstrip("+-").isdigit():
                raise ValueError(f"interval_ms must be a positive integer, got {v!r}")
            return int(stripped)
        return v

    @property
    def interval_seconds(self) -> float:
        return self.interval_ms / 1000.0


class ComparisonConfig(BaseModel):
    """Configuration for file change detection."""

    hash_threshold_bytes: int = Field(
        default=HASH_THRESHOLD_BYTES,
        ge=0,
        description="Files at or above this size are compared by digest instead of always copied",
    )
    hash_algorithm: str = Field(default="md5", description="hashlib algorithm name")
    chunk_size: int = Field(
        default=1024 * 1024, gt=0, description="Read size in bytes when streaming files"
    )

    @field_validator("hash_algorithm")
    @classmethod
    def validate_hash_algorithm(cls, v: str) -> str:
        """Ensure the algorithm is available in hashlib."""
        name = v.lower()
        if name not in hashlib.algorithms_available:
            raise ValueError(f"Unsupported hash algorithm: {v}")
        return name


class RetryConfig(BaseModel):
    """Configuration for in-place retry of transient copy/delete failures."""

    max_retries: int = Field(default=2, ge=0, le=10, description="Retries after the first attempt")
    base_delay: float = Field(default=0.1, ge=0.0, description="Initial delay in seconds")
    max_delay: float = Field(default=2.0, ge=0.0, description="Maximum delay in seconds")


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    json_logs: bool = Field(
        default=True,
        description="If True, output JSON logs. If False, use console format.",
    )
    log_file: str | None = Field(
        default=None,
        description="Optional path to log file. If None, logs only to stdout.",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class AppConfig(BaseSettings):
    """Main application configuration.

    This class uses pydantic-settings to load configuration from environment
    variables with the FOLDERSYNC_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="FOLDERSYNC_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    sync: SyncConfig
    comparison: ComparisonConfig = Field(default_factory=ComparisonConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
