"""Watch subsystem: ignore policy, classification, dispatch and the filesystem watcher."""

from docbind.watch.classifier import FileKind, classify, is_source_file
from docbind.watch.dispatcher import WatchDispatcher, select_action
from docbind.watch.ignore import make_ignore_predicate
from docbind.watch.models import DispatchOutcome, EventKind, WatchEvent
from docbind.watch.watcher import SiteWatcher

__all__ = [
    "DispatchOutcome",
    "EventKind",
    "FileKind",
    "SiteWatcher",
    "WatchDispatcher",
    "WatchEvent",
    "classify",
    "is_source_file",
    "make_ignore_predicate",
    "select_action",
]
