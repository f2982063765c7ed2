"""Shared fixtures for foldersync tests."""

import os
import threading
from pathlib import Path

import pytest

from foldersync.models.config import ComparisonConfig, RetryConfig
from foldersync.sync.comparator import ContentComparator
from foldersync.sync.events import EventKind, SyncEvent
from foldersync.sync.tree_syncer import TreeDiffSyncer


class CollectingReporter:
    """EventReporter that keeps every event in memory."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.events: list[SyncEvent] = []

    def report(self, event: SyncEvent) -> None:
        with self._lock:
            self.events.append(event)

    def of_kind(self, kind: EventKind) -> list[SyncEvent]:
        with self._lock:
            return [event for event in self.events if event.kind is kind]

    def paths(self, kind: EventKind) -> set[str]:
        return {event.path for event in self.of_kind(kind) if event.path is not None}

    def mutations(self) -> list[SyncEvent]:
        with self._lock:
            return [event for event in self.events if event.kind.is_mutation]

    def clear(self) -> None:
        with self._lock:
            self.events.clear()


def write_tree(root: Path, tree: dict) -> None:
    """Create files (bytes values) and directories (dict values) under root."""
    root.mkdir(parents=True, exist_ok=True)
    for name, value in tree.items():
        path = root / name
        if isinstance(value, dict):
            write_tree(path, value)
        else:
            path.write_bytes(value)


def snapshot(root: Path) -> dict[str, bytes | None]:
    """Map every relative path under root to its bytes (None for directories)."""
    result: dict[str, bytes | None] = {}
    for dirpath, dirnames, filenames in os.walk(root):
        rel_dir = os.path.relpath(dirpath, root)
        for name in dirnames:
            result[os.path.normpath(os.path.join(rel_dir, name))] = None
        for name in filenames:
            full = os.path.join(dirpath, name)
            with open(full, "rb") as f:
                result[os.path.normpath(os.path.join(rel_dir, name))] = f.read()
    return result


NO_RETRY = RetryConfig(max_retries=0, base_delay=0.0, max_delay=0.0)


def make_syncer(
    reporter: CollectingReporter, hash_threshold_bytes: int = 10 * 1024 * 1024
) -> TreeDiffSyncer:
    return TreeDiffSyncer(
        comparator=ContentComparator(ComparisonConfig(hash_threshold_bytes=hash_threshold_bytes)),
        reporter=reporter,
        retry_config=NO_RETRY,
    )


@pytest.fixture
def reporter() -> CollectingReporter:
    return CollectingReporter()


@pytest.fixture
def folders(tmp_path: Path) -> tuple[Path, Path]:
    source = tmp_path / "source"
    replica = tmp_path / "replica"
    source.mkdir()
    return source, replica
