"""Data models for the folder synchronization tool."""

from foldersync.models.config import (
    AppConfig,
    ComparisonConfig,
    LoggingConfig,
    RetryConfig,
    SyncConfig,
)
from foldersync.models.entries import (
    ComparisonVerdict,
    DirectoryListing,
    FileEntry,
    SyncPassState,
)

__all__ = [
    "AppConfig",
    "ComparisonConfig",
    "ComparisonVerdict",
    "DirectoryListing",
    "FileEntry",
    "LoggingConfig",
    "RetryConfig",
    "SyncConfig",
    "SyncPassState",
]
