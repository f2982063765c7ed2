"""Recursive one-way reconciliation of a replica tree against a source tree."""

import os
import shutil
import time
from datetime import datetime
from typing import Any, Callable

import structlog

from foldersync.errors import ComparisonError, SourceNotFoundError
from foldersync.models.config import RetryConfig
from foldersync.models.entries import ComparisonVerdict, DirectoryListing
from foldersync.sync.comparator import ContentComparator
from foldersync.sync.events import EventKind, EventReporter, LoggingEventReporter, SyncEvent
from foldersync.sync.models import EntryResult, PassReport
from foldersync.utils.retry import retry_call

log = structlog.stdlib.get_logger()

# Errors that will not go away by retrying within the same pass.
PERSISTENT_ERRORS: tuple[type[OSError], ...] = (
    PermissionError,
    FileNotFoundError,
    IsADirectoryError,
    NotADirectoryError,
    FileExistsError,
)


def copy_file(source_file: str, replica_file: str) -> None:
    """Copy contents and timestamps, overwriting replica_file. Fails if it is a directory.

    A symbolic link at replica_file is replaced, never written through.
    """
    if os.path.islink(replica_file):
        os.unlink(replica_file)
    shutil.copyfile(source_file, replica_file)
    shutil.copystat(source_file, replica_file)


_COUNTERS: dict[EventKind, str] = {
    EventKind.DIR_CREATED: "dirs_created",
    EventKind.FILE_CREATED: "files_created",
    EventKind.FILE_COPIED: "files_copied",
    EventKind.FILE_UNCHANGED: "files_unchanged",
    EventKind.FILE_DELETED: "files_deleted",
    EventKind.DIR_DELETED: "dirs_deleted",
}


class TreeDiffSyncer:
    """Makes a replica directory tree match a source directory tree.

    Each directory level is processed in a fixed order:

    1. create the replica directory if it is missing
    2. copy new and changed files
    3. delete replica files that have no source counterpart
    4. delete replica subdirectories that have no source counterpart
    5. descend into every source subdirectory, depth-first

    Failures are reported per entry and never stop the rest of the pass.
    Nothing is cached between passes; every level is listed afresh.
    """

    def __init__(
        self,
        comparator: ContentComparator | None = None,
        reporter: EventReporter | None = None,
        retry_config: RetryConfig | None = None,
    ):
        self._comparator = comparator or ContentComparator()
        self._reporter: EventReporter = reporter or LoggingEventReporter()
        self._retry = retry_config or RetryConfig()

    @property
    def reporter(self) -> EventReporter:
        return self._reporter

    def sync(self, source_dir: str, replica_dir: str) -> PassReport:
        """
        Run one full pass reconciling replica_dir against source_dir.

        Args:
            source_dir: Root of the source tree. Must exist.
            replica_dir: Root of the replica tree. Created if missing.

        Returns:
            PassReport with counters and per-entry errors

        Raises:
            SourceNotFoundError: If the source root is missing at the start
                of the pass or disappears while the pass is running
        """
        source_dir = os.path.abspath(source_dir)
        replica_dir = os.path.abspath(replica_dir)

        if not os.path.isdir(source_dir):
            raise SourceNotFoundError(source_dir)

        started = time.monotonic()
        report = PassReport(
            source_path=source_dir,
            replica_path=replica_dir,
            start_time=datetime.now(),
        )
        self._emit(report, EventKind.PASS_STARTED, source=source_dir, replica=replica_dir)

        # Children are pushed in reverse to keep depth-first enumeration order.
        pending: list[tuple[str, str]] = [(source_dir, replica_dir)]
        while pending:
            current_source, current_replica = pending.pop()
            children = self._sync_level(source_dir, current_source, current_replica, report)
            pending.extend(reversed(children))

        report.end_time = datetime.now()
        report.duration_seconds = time.monotonic() - started

        self._emit(
            report,
            EventKind.PASS_COMPLETED,
            runtime=report.runtime,
            duration_seconds=report.duration_seconds,
            dirs_created=report.dirs_created,
            files_created=report.files_created,
            files_copied=report.files_copied,
            files_unchanged=report.files_unchanged,
            files_deleted=report.files_deleted,
            dirs_deleted=report.dirs_deleted,
            errors=len(report.errors),
        )
        return report

    def _sync_level(
        self,
        source_root: str,
        source_dir: str,
        replica_dir: str,
        report: PassReport,
    ) -> list[tuple[str, str]]:
        """Reconcile one directory level and return the subdirectory pairs to visit next."""
        log.debug("syncing_directory", source=source_dir, replica=replica_dir)
        try:
            source_listing = DirectoryListing.scan(source_dir)
        except OSError as e:
            if not os.path.isdir(source_root):
                raise SourceNotFoundError(source_root) from e
            self._emit_failure(report, EventKind.DIR_SCAN_FAILED, EntryResult.failed(source_dir, e))
            return []

        is_root = source_dir == source_root
        replica_ready = self._ensure_directory(replica_dir, report, is_root)

        if replica_ready:
            self._reconcile_files(source_listing, replica_dir, report)
            self._delete_extras(source_listing, replica_dir, report)

        return [
            (os.path.join(source_dir, name), os.path.join(replica_dir, name))
            for name in source_listing.directories
        ]

    def _ensure_directory(self, replica_dir: str, report: PassReport, is_root: bool) -> bool:
        # Below the root, a link to a directory is not a replica directory.
        if os.path.isdir(replica_dir) and (is_root or not os.path.islink(replica_dir)):
            return True

        # Only the replica root may lack a parent; nested levels were
        # created or verified one step earlier.
        make = os.makedirs if is_root else os.mkdir
        result = self._attempt(make, replica_dir)
        if result.ok:
            self._emit(report, EventKind.DIR_CREATED, path=replica_dir)
            return True

        self._emit_failure(report, EventKind.DIR_CREATE_FAILED, result)
        return False

    def _reconcile_files(
        self, source_listing: DirectoryListing, replica_dir: str, report: PassReport
    ) -> None:
        for name in source_listing.files:
            source_file = os.path.join(source_listing.path, name)
            replica_file = os.path.join(replica_dir, name)

            verdict = self._classify(source_file, replica_file, report)
            if verdict is ComparisonVerdict.IDENTICAL:
                self._emit(report, EventKind.FILE_UNCHANGED, path=replica_file)
                continue

            result = self._attempt(copy_file, source_file, replica_file)
            if not result.ok:
                self._emit_failure(report, EventKind.FILE_COPY_FAILED, result, source=source_file)
            elif verdict is ComparisonVerdict.REPLICA_MISSING:
                self._emit(report, EventKind.FILE_CREATED, path=replica_file, source=source_file)
            else:
                self._emit(report, EventKind.FILE_COPIED, path=replica_file, source=source_file)

    def _classify(
        self, source_file: str, replica_file: str, report: PassReport
    ) -> ComparisonVerdict:
        try:
            return self._comparator.compare(source_file, replica_file)
        except ComparisonError as e:
            # An unreadable pair is re-copied; the copy reports its own failure.
            self._emit_failure(
                report,
                EventKind.FILE_COMPARE_FAILED,
                EntryResult.failed(e.path, e.cause),
                recorded=False,
            )
            return ComparisonVerdict.DIFFERENT

    def _delete_extras(
        self, source_listing: DirectoryListing, replica_dir: str, report: PassReport
    ) -> None:
        try:
            replica_listing = DirectoryListing.scan(replica_dir, follow_file_links=False)
        except OSError as e:
            self._emit_failure(report, EventKind.DIR_SCAN_FAILED, EntryResult.failed(replica_dir, e))
            return

        # Links and special files left after step 2 never match a source
        # entry, so they are removed whatever their name.
        extra_files = [name for name in replica_listing.files if name not in source_listing.files]
        for name in extra_files + replica_listing.others:
            replica_file = os.path.join(replica_dir, name)
            result = self._attempt(os.remove, replica_file)
            if result.ok:
                self._emit(report, EventKind.FILE_DELETED, path=replica_file)
            else:
                self._emit_failure(report, EventKind.FILE_DELETE_FAILED, result)

        source_dirs = set(source_listing.directories)
        for name in replica_listing.directories:
            if name in source_dirs:
                continue
            replica_subdir = os.path.join(replica_dir, name)
            result = self._attempt(shutil.rmtree, replica_subdir)
            if result.ok:
                self._emit(report, EventKind.DIR_DELETED, path=replica_subdir)
            else:
                self._emit_failure(report, EventKind.DIR_DELETE_FAILED, result)

    def _attempt(self, operation: Callable[..., Any], path: str, *args: Any) -> EntryResult:
        """Run one filesystem operation on path, retrying transient errors in place."""
        target = args[-1] if args else path
        try:
            retry_call(
                operation,
                path,
                *args,
                max_retries=self._retry.max_retries,
                base_delay=self._retry.base_delay,
                max_delay=self._retry.max_delay,
                exceptions=(OSError,),
                non_retryable=PERSISTENT_ERRORS,
            )
        except OSError as e:
            return EntryResult.failed(target, e)
        return EntryResult.succeeded(target)

    def _emit(
        self, report: PassReport, kind: EventKind, path: str | None = None, **details: Any
    ) -> None:
        counter = _COUNTERS.get(kind)
        if counter is not None:
            setattr(report, counter, getattr(report, counter) + 1)
        self._reporter.report(SyncEvent(kind=kind, path=path, details=details))

    def _emit_failure(
        self,
        report: PassReport,
        kind: EventKind,
        result: EntryResult,
        recorded: bool = True,
        **details: Any,
    ) -> None:
        if recorded:
            report.errors.append(f"{kind.value}: {result.path}: {result.error}")
        self._reporter.report(
            SyncEvent(
                kind=kind,
                path=result.path,
                error=result.error,
                error_kind=result.error_kind,
                details=details,
            )
        )
