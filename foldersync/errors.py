"""Error taxonomy for the folder synchronization engine."""


class FolderSyncError(Exception):
    """Base class for all folder synchronization errors."""

    pass


class ConfigurationError(FolderSyncError):
    """Raised when configuration is invalid or missing."""

    pass


class SourceNotFoundError(FolderSyncError):
    """Raised when the source root does not exist or vanished mid-pass."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Source folder not found: {path}")


class ComparisonError(FolderSyncError):
    """Raised when a file taking part in a comparison cannot be read."""

    def __init__(self, path: str, cause: OSError):
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to read {path}: {cause}")
