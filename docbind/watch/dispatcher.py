"""Routes watch events to the site builder's incremental operations."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict, deque
from pathlib import Path

from docbind.errors import RebuildFailure
from docbind.interfaces import SiteBuilder
from docbind.watch.classifier import FileKind, classify
from docbind.watch.ignore import IgnorePredicate
from docbind.watch.models import DispatchOutcome, EventKind, WatchEvent

logger = logging.getLogger(__name__)

# Recent outcomes kept for inspection; older ones are dropped
_MAX_OUTCOMES = 1000

_EVENT_LABELS = {
    EventKind.add: "add",
    EventKind.change: "change",
    EventKind.unlink: "deletion",
}


def select_action(kind: EventKind, file_kind: FileKind) -> str:
    """Name of the SiteBuilder method that handles ``kind`` for ``file_kind``."""
    if file_kind is FileKind.source:
        return "rebuild_affected_source_files"
    if kind is EventKind.unlink:
        return "remove_asset"
    return "build_asset"


class WatchDispatcher:
    """Consumes watch events from a queue and dispatches each one independently.

    Events for different paths may be handled concurrently. Events for the
    same path are handled one at a time, in the order they were submitted.
    A failed action is logged and recorded in ``outcomes``; it never stops
    the loop.
    """

    def __init__(self, site: SiteBuilder, ignored: IgnorePredicate) -> None:
        self._site = site
        self._ignored = ignored
        self._queue: asyncio.Queue[WatchEvent] = asyncio.Queue()
        self._path_locks: dict[Path, asyncio.Lock] = {}
        self._pending: dict[Path, int] = defaultdict(int)
        self._tasks: set[asyncio.Task] = set()
        self.outcomes: deque[DispatchOutcome] = deque(maxlen=_MAX_OUTCOMES)

    def submit(self, event: WatchEvent) -> None:
        """Put an event on the channel. Safe to call from the loop thread only."""
        self._queue.put_nowait(event)

    async def run(self) -> None:
        """Dispatch loop; runs until cancelled."""
        while True:
            event = await self._queue.get()
            task = asyncio.create_task(self._handle_queued(event))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait until every submitted event has been handled."""
        await self._queue.join()
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def _handle_queued(self, event: WatchEvent) -> None:
        try:
            await self.dispatch(event)
        finally:
            self._queue.task_done()

    async def dispatch(self, event: WatchEvent) -> DispatchOutcome | None:
        """Handle one event. Returns None when the path is ignored."""
        if self._ignored(event.path):
            logger.debug("ignored %s event for %s", event.kind.value, event.path)
            return None

        logger.info("Reload for file %s: %s", _EVENT_LABELS[event.kind], event.path)
        file_kind = classify(event.path)
        action = select_action(event.kind, file_kind)
        outcome = DispatchOutcome(
            path=event.path, kind=event.kind, file_kind=file_kind, action=action
        )

        lock = self._path_locks.setdefault(event.path, asyncio.Lock())
        self._pending[event.path] += 1
        try:
            async with lock:
                await getattr(self._site, action)(event.path)
        except Exception as exc:
            failure = RebuildFailure(event.path, action, exc)
            logger.error("%s", failure)
            outcome.ok = False
            outcome.error = str(failure)
        finally:
            self._pending[event.path] -= 1
            if not self._pending[event.path]:
                del self._pending[event.path]
                del self._path_locks[event.path]

        self.outcomes.append(outcome)
        return outcome
