"""Synchronization engine: change detection, tree reconciliation and scheduling."""

from foldersync.sync.comparator import ContentComparator
from foldersync.sync.events import EventKind, EventReporter, LoggingEventReporter, SyncEvent
from foldersync.sync.models import EntryResult, PassReport
from foldersync.sync.scheduler import RunGuard, SyncScheduler
from foldersync.sync.tree_syncer import TreeDiffSyncer

__all__ = [
    "ContentComparator",
    "EntryResult",
    "EventKind",
    "EventReporter",
    "LoggingEventReporter",
    "PassReport",
    "RunGuard",
    "SyncEvent",
    "SyncScheduler",
    "TreeDiffSyncer",
]
