"""Command-line activation of the folder mirror."""

import argparse
import signal
import sys
import threading
from typing import Any, Sequence

import structlog

from foldersync import __version__
from foldersync.errors import ConfigurationError, SourceNotFoundError
from foldersync.models.config import AppConfig
from foldersync.sync.comparator import ContentComparator
from foldersync.sync.events import LoggingEventReporter
from foldersync.sync.scheduler import SyncScheduler
from foldersync.sync.tree_syncer import TreeDiffSyncer
from foldersync.utils.config_loader import ConfigLoader
from foldersync.utils.logging_config import configure_logging

log = structlog.stdlib.get_logger()

EXIT_OK = 0
EXIT_PASS_ERRORS = 1
EXIT_STARTUP_FAILED = 2

POLL_SECONDS = 0.5


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="foldersync",
        description="Periodically mirror a source folder onto a replica folder",
    )
    parser.add_argument("--source", type=str, help="Folder to mirror from", default=None)
    parser.add_argument("--replica", type=str, help="Folder to mirror into", default=None)
    parser.add_argument(
        "--interval-ms",
        type=str,
        help="Milliseconds between passes (positive integer)",
        default=None,
    )
    parser.add_argument("--log-file", type=str, help="Also write logs to this file", default=None)
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Logging level",
    )
    parser.add_argument(
        "--json-logs",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Emit JSON log lines instead of console output",
    )
    parser.add_argument("--config", type=str, help="Path to configuration file", default=None)
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single pass and exit instead of scheduling",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def overrides_from_args(args: argparse.Namespace) -> dict[str, Any]:
    """Turn parsed arguments into a nested config override dict."""
    return {
        "sync": {
            "source_path": args.source,
            "replica_path": args.replica,
            "interval_ms": args.interval_ms,
        },
        "logging": {
            "log_level": args.log_level,
            "json_logs": args.json_logs,
            "log_file": args.log_file,
        },
    }


def build_scheduler(config: AppConfig) -> SyncScheduler:
    syncer = TreeDiffSyncer(
        comparator=ContentComparator(config.comparison),
        reporter=LoggingEventReporter(),
        retry_config=config.retry,
    )
    return SyncScheduler(
        syncer,
        source_path=config.sync.source_path,
        replica_path=config.sync.replica_path,
        interval_seconds=config.sync.interval_seconds,
    )


def run(config: AppConfig, once: bool = False) -> int:
    """
    Activate the mirror for a validated configuration.

    Args:
        config: Application configuration
        once: Run a single pass instead of scheduling

    Returns:
        Process exit code
    """
    scheduler = build_scheduler(config)

    if once:
        scheduler.validate()
        report = scheduler.run_once()
        if report is None or not report.success:
            return EXIT_PASS_ERRORS
        return EXIT_OK

    shutdown = threading.Event()

    def _request_shutdown(signum: int, _frame: Any) -> None:
        log.info("shutdown_requested", signal=signal.Signals(signum).name)
        shutdown.set()

    scheduler.start()

    previous = {
        signum: signal.signal(signum, _request_shutdown)
        for signum in (signal.SIGINT, signal.SIGTERM)
    }
    try:
        while not (shutdown.wait(POLL_SECONDS) or scheduler.wait(0)):
            pass
    finally:
        scheduler.stop()
        for signum, handler in previous.items():
            signal.signal(signum, handler)

    if scheduler.failure is not None:
        return EXIT_PASS_ERRORS
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    configure_logging(log_level=args.log_level or "INFO", json_logs=bool(args.json_logs))

    try:
        config = ConfigLoader().load_config(args.config, overrides=overrides_from_args(args))
    except ConfigurationError as e:
        log.error("fatal", error=str(e))
        return EXIT_STARTUP_FAILED

    configure_logging(
        log_level=config.logging.log_level,
        json_logs=config.logging.json_logs,
        log_file=config.logging.log_file,
    )

    try:
        return run(config, once=args.once)
    except (ConfigurationError, SourceNotFoundError):
        # Already reported as a fatal event by the scheduler.
        return EXIT_STARTUP_FAILED


if __name__ == "__main__":
    sys.exit(main())
