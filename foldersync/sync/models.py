"""Data models for synchronization operations."""

from datetime import datetime

from pydantic import BaseModel, Field

PERMISSION_DENIED = "permission_denied"
IO_ERROR = "io_error"


def classify_os_error(error: OSError) -> str:
    """Map an OSError onto the per-entry error kinds."""
    if isinstance(error, PermissionError):
        return PERMISSION_DENIED
    return IO_ERROR


class EntryResult(BaseModel):
    """Outcome of one per-entry filesystem operation (create, copy, delete)."""

    path: str = Field(default=..., description="Path the operation targeted")
    ok: bool = Field(default=True, description="True if the operation succeeded")
    error: str | None = Field(default=None, description="Error message if it failed")
    error_kind: str | None = Field(default=None, description="permission_denied or io_error")

    @classmethod
    def succeeded(cls, path: str) -> "EntryResult":
        return cls(path=path)

    @classmethod
    def failed(cls, path: str, error: OSError) -> "EntryResult":
        return cls(path=path, ok=False, error=str(error), error_kind=classify_os_error(error))


class PassReport(BaseModel):
    """Report of one synchronization pass."""

    source_path: str = Field(..., description="Source root of the pass")
    replica_path: str = Field(..., description="Replica root of the pass")
    dirs_created: int = Field(default=0, ge=0)
    files_created: int = Field(default=0, ge=0)
    files_copied: int = Field(default=0, ge=0)
    files_unchanged: int = Field(default=0, ge=0)
    files_deleted: int = Field(default=0, ge=0)
    dirs_deleted: int = Field(default=0, ge=0)
    duration_seconds: float = Field(default=0.0, ge=0.0, description="Pass duration in seconds")
    start_time: datetime = Field(..., description="Pass start timestamp")
    end_time: datetime | None = Field(default=None, description="Pass end timestamp")
    errors: list[str] = Field(
        default_factory=list, description="One message per entry that failed during the pass"
    )

    @property
    def total_changes(self) -> int:
        """Get total number of replica mutations made by the pass."""
        return (
            self.dirs_created
            + self.files_created
            + self.files_copied
            + self.files_deleted
            + self.dirs_deleted
        )

    @property
    def success(self) -> bool:
        """Check if the pass completed without errors."""
        return len(self.errors) == 0

    @property
    def runtime(self) -> str:
        """Elapsed time formatted as HH:MM:SS.cc."""
        total_centis = int(round(self.duration_seconds * 100))
        hours, rem = divmod(total_centis, 360000)
        minutes, rem = divmod(rem, 6000)
        seconds, centis = divmod(rem, 100)
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}.{centis:02d}"
