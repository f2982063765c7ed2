"""Structured progress and error events emitted by the synchronization engine."""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol

import structlog
from pydantic import BaseModel, Field


class EventKind(str, Enum):
    """Every event the engine can emit."""

    SCHEDULER_STARTED = "scheduler_started"
    SCHEDULER_STOPPED = "scheduler_stopped"
    PASS_SKIPPED = "pass_skipped"
    PASS_STARTED = "pass_started"
    PASS_COMPLETED = "pass_completed"
    DIR_CREATED = "dir_created"
    DIR_CREATE_FAILED = "dir_create_failed"
    DIR_SCAN_FAILED = "dir_scan_failed"
    FILE_CREATED = "file_created"
    FILE_COPIED = "file_copied"
    FILE_UNCHANGED = "file_unchanged"
    FILE_COMPARE_FAILED = "file_compare_failed"
    FILE_COPY_FAILED = "file_copy_failed"
    FILE_DELETED = "file_deleted"
    FILE_DELETE_FAILED = "file_delete_failed"
    DIR_DELETED = "dir_deleted"
    DIR_DELETE_FAILED = "dir_delete_failed"
    FATAL = "fatal"

    @property
    def is_failure(self) -> bool:
        return self.value.endswith("_failed") or self is EventKind.FATAL

    @property
    def is_mutation(self) -> bool:
        """True for events that record a change made to the replica."""
        return self in _MUTATIONS


_MUTATIONS = frozenset(
    {
        EventKind.DIR_CREATED,
        EventKind.FILE_CREATED,
        EventKind.FILE_COPIED,
        EventKind.FILE_DELETED,
        EventKind.DIR_DELETED,
    }
)


class SyncEvent(BaseModel):
    """One discrete event on the reporting surface."""

    kind: EventKind = Field(default=..., description="What happened")
    path: str | None = Field(default=None, description="Filesystem path the event concerns")
    error: str | None = Field(default=None, description="Error message for failure events")
    error_kind: str | None = Field(
        default=None, description="permission_denied or io_error for per-entry failures"
    )
    details: dict[str, Any] = Field(default_factory=dict, description="Extra context")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class EventReporter(Protocol):
    """Receives engine events. Implementations must be safe to call from worker threads."""

    def report(self, event: SyncEvent) -> None: ...


class LoggingEventReporter:
    """Writes every event through structlog, one log record per event."""

    def __init__(self, logger: structlog.stdlib.BoundLogger | None = None):
        self._log = logger or structlog.stdlib.get_logger("foldersync.events")

    def report(self, event: SyncEvent) -> None:
        fields: dict[str, Any] = dict(event.details)
        if event.path is not None:
            fields["path"] = event.path
        if event.error is not None:
            fields["error"] = event.error
        if event.error_kind is not None:
            fields["error_kind"] = event.error_kind

        self._log.log(self.level_for(event.kind), event.kind.value, **fields)

    @staticmethod
    def level_for(kind: EventKind) -> int:
        if kind.is_failure:
            return logging.ERROR
        if kind is EventKind.PASS_SKIPPED:
            return logging.WARNING
        if kind is EventKind.FILE_UNCHANGED:
            return logging.DEBUG
        return logging.INFO
