"""Filesystem watcher that hands add/change/unlink events to the asyncio loop."""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from docbind.watch.ignore import IgnorePredicate
from docbind.watch.models import EventKind, WatchEvent

logger = logging.getLogger(__name__)

EventSink = Callable[[WatchEvent], None]


class _LoopForwardingHandler(FileSystemEventHandler):
    """Translates watchdog file events and schedules them on the event loop.

    Runs on the observer thread; the sink itself is only ever called on the
    loop thread.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        sink: EventSink,
        ignored: IgnorePredicate,
    ) -> None:
        super().__init__()
        self._loop = loop
        self._sink = sink
        self._ignored = ignored

    def _emit(self, path: str | bytes, kind: EventKind) -> None:
        path = Path(os.fsdecode(path))
        if self._ignored(path):
            return
        self._loop.call_soon_threadsafe(self._sink, WatchEvent(path=path, kind=kind))

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._emit(event.src_path, EventKind.add)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._emit(event.src_path, EventKind.change)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._emit(event.src_path, EventKind.unlink)

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._emit(event.src_path, EventKind.unlink)
        self._emit(event.dest_path, EventKind.add)


class SiteWatcher:
    """Watches a project root recursively and forwards file events to a sink.

    With ``ignore_initial`` false, every existing non-ignored file is first
    reported as an ``add`` event.
    """

    def __init__(
        self,
        root: Path,
        ignored: IgnorePredicate,
        ignore_initial: bool = True,
    ) -> None:
        self._root = Path(root).resolve()
        self._ignored = ignored
        self._ignore_initial = ignore_initial
        self._observer: Observer | None = None

    @property
    def running(self) -> bool:
        return self._observer is not None

    def start(self, sink: EventSink, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Begin watching. Must be called from the thread running ``loop``."""
        if self._observer is not None:
            return
        loop = loop or asyncio.get_running_loop()
        handler = _LoopForwardingHandler(loop, sink, self._ignored)
        self._observer = Observer()
        self._observer.schedule(handler, str(self._root), recursive=True)
        self._observer.start()
        if not self._ignore_initial:
            for path in self._existing_files():
                sink(WatchEvent(path=path, kind=EventKind.add))
        logger.info("Watching %s for changes", self._root)

    def stop(self) -> None:
        """Stop watching and clean up."""
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=5)
        self._observer = None
        logger.info("Stopped watching %s", self._root)

    def _existing_files(self) -> list[Path]:
        found: list[Path] = []
        for dirpath, dirnames, filenames in os.walk(self._root):
            current = Path(dirpath)
            dirnames[:] = [d for d in dirnames if not self._ignored(current / d)]
            found.extend(
                current / name for name in sorted(filenames) if not self._ignored(current / name)
            )
        return found
