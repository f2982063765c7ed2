"""Periodic, non-overlapping execution of synchronization passes."""

import os
import threading
import time
from datetime import datetime

import structlog

from foldersync.errors import ConfigurationError, SourceNotFoundError
from foldersync.models.entries import SyncPassState
from foldersync.sync.events import EventKind, SyncEvent
from foldersync.sync.models import PassReport
from foldersync.sync.tree_syncer import TreeDiffSyncer

log = structlog.stdlib.get_logger()


class RunGuard:
    """Single-flag mutual exclusion between scheduler ticks.

    Entering either succeeds immediately or fails immediately; there is no
    waiting and no queue of pending passes.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state = SyncPassState()

    @property
    def running(self) -> bool:
        with self._lock:
            return self._state.running

    @property
    def state(self) -> SyncPassState:
        with self._lock:
            return self._state.model_copy()

    def try_enter(self) -> bool:
        """Atomically set the flag if it is clear. Returns False if a pass is running."""
        with self._lock:
            if self._state.running:
                return False
            self._state = SyncPassState(running=True, started_at=datetime.now())
            return True

    def leave(self) -> None:
        with self._lock:
            self._state = SyncPassState()


class SyncScheduler:
    """Runs a TreeDiffSyncer pass every interval, never more than one at a time.

    The first tick fires as soon as the scheduler starts. A tick that finds a
    pass still running is skipped and reported; it is not queued or made up
    later. Stopping prevents future ticks and waits for the in-flight pass.
    """

    def __init__(
        self,
        syncer: TreeDiffSyncer,
        source_path: str,
        replica_path: str,
        interval_seconds: float,
    ):
        self._syncer = syncer
        self._source = os.path.abspath(source_path)
        self._replica = os.path.abspath(replica_path)
        self._interval = interval_seconds
        self._guard = RunGuard()
        self._stop_event = threading.Event()
        self._timer_thread: threading.Thread | None = None
        self._worker: threading.Thread | None = None
        self._worker_lock = threading.Lock()
        self._stopped = False
        self._last_report: PassReport | None = None
        self.failure: BaseException | None = None

    @property
    def guard(self) -> RunGuard:
        return self._guard

    @property
    def is_running(self) -> bool:
        """True while a pass is in progress."""
        return self._guard.running

    @property
    def is_active(self) -> bool:
        """True between start() and stop()."""
        return self._timer_thread is not None and not self._stop_event.is_set()

    @property
    def last_report(self) -> PassReport | None:
        return self._last_report

    def validate(self) -> None:
        """
        Check activation preconditions, reporting a fatal event if they fail.

        Raises:
            ConfigurationError: If the interval is not positive or either
                folder lies inside the other
            SourceNotFoundError: If the source directory does not exist
        """
        try:
            self._check_preconditions()
        except (ConfigurationError, SourceNotFoundError) as e:
            self._report(SyncEvent(kind=EventKind.FATAL, path=self._source, error=str(e)))
            raise

    def _check_preconditions(self) -> None:
        if not self._interval > 0:
            raise ConfigurationError(f"Interval must be positive, got {self._interval}")
        if not os.path.isdir(self._source):
            raise SourceNotFoundError(self._source)

        source = os.path.realpath(self._source)
        replica = os.path.realpath(self._replica)
        if replica == source or replica.startswith(source + os.sep):
            raise ConfigurationError(
                f"Replica folder {self._replica} must not be inside source folder {self._source}"
            )
        if source.startswith(replica + os.sep):
            # The replica root would list the source as an extra directory and delete it.
            raise ConfigurationError(
                f"Source folder {self._source} must not be inside replica folder {self._replica}"
            )

    def start(self) -> None:
        """
        Validate preconditions and begin ticking, firing the first tick immediately.

        Raises:
            ConfigurationError: If the interval or folder pair is invalid
            SourceNotFoundError: If the source directory does not exist
            RuntimeError: If the scheduler was already started
        """
        if self._timer_thread is not None:
            raise RuntimeError("Scheduler already started")

        self.validate()

        self._report(
            SyncEvent(
                kind=EventKind.SCHEDULER_STARTED,
                path=self._source,
                details={"replica": self._replica, "interval_seconds": self._interval},
            )
        )
        self._timer_thread = threading.Thread(
            target=self._tick_loop, name="foldersync-timer", daemon=True
        )
        self._timer_thread.start()

    def tick(self) -> bool:
        """
        Dispatch one pass on a worker thread unless a pass is already running.

        Returns:
            True if a pass was started, False if the tick was skipped
        """
        if not self._guard.try_enter():
            self._report_skip()
            return False

        worker = threading.Thread(target=self._run_guarded, name="foldersync-pass")
        with self._worker_lock:
            self._worker = worker
        try:
            worker.start()
        except BaseException:
            self._guard.leave()
            raise
        return True

    def run_once(self) -> PassReport | None:
        """
        Run one pass on the calling thread, honouring the run-guard.

        Returns:
            The pass report, or None if the pass was skipped or failed fatally
        """
        if not self._guard.try_enter():
            self._report_skip()
            return None
        return self._run_guarded()

    def stop(self, timeout: float | None = None) -> None:
        """Stop future ticks and wait for an in-flight pass to finish."""
        if self._stopped:
            return
        self._stopped = True
        self._stop_event.set()

        if self._timer_thread is not None:
            self._timer_thread.join(timeout)

        with self._worker_lock:
            worker = self._worker
        if worker is not None:
            worker.join(timeout)

        self._report(SyncEvent(kind=EventKind.SCHEDULER_STOPPED, path=self._source))

    def wait(self, timeout: float | None = None) -> bool:
        """Block until stop() is called or a fatal failure stops the scheduler."""
        return self._stop_event.wait(timeout)

    def _tick_loop(self) -> None:
        next_tick = time.monotonic()
        while not self._stop_event.is_set():
            self.tick()
            next_tick += self._interval
            now = time.monotonic()
            if next_tick < now:
                # Ticks that fell due while dispatching are dropped, not replayed.
                missed = int((now - next_tick) // self._interval) + 1
                next_tick += missed * self._interval
            if self._stop_event.wait(next_tick - now):
                break

    def _run_guarded(self) -> PassReport | None:
        try:
            report = self._syncer.sync(self._source, self._replica)
            self._last_report = report
            return report
        except SourceNotFoundError as e:
            # Fatal to this pass only; the next tick tries again.
            self._report(SyncEvent(kind=EventKind.FATAL, path=e.path, error=str(e)))
            return None
        except Exception as e:
            log.exception("pass_crashed", source=self._source, replica=self._replica)
            self._report(
                SyncEvent(
                    kind=EventKind.FATAL,
                    path=self._source,
                    error=str(e),
                    details={"exception": type(e).__name__},
                )
            )
            self.failure = e
            self._stop_event.set()
            return None
        finally:
            self._guard.leave()

    def _report_skip(self) -> None:
        state = self._guard.state
        self._report(
            SyncEvent(
                kind=EventKind.PASS_SKIPPED,
                path=self._source,
                details={
                    "reason": "already_running",
                    "running_since": state.started_at.isoformat() if state.started_at else None,
                },
            )
        )

    def _report(self, event: SyncEvent) -> None:
        self._syncer.reporter.report(event)
