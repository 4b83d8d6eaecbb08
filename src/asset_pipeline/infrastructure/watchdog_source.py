"""Watchdog adapter — implements the ChangeSource port.

The observer runs its own thread; events are handed to the event loop
with ``call_soon_threadsafe`` and drained from an :class:`asyncio.Queue`.
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import AsyncIterator

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from asset_pipeline.domain.entities import ChangeEvent, ChangeKind
from asset_pipeline.domain.exceptions import WatchError

logger = logging.getLogger(__name__)

_POLL_INTERVAL = 0.5
_JOIN_TIMEOUT = 5.0


class _QueueingHandler(FileSystemEventHandler):
    """Translate watchdog callbacks into :class:`ChangeEvent` queue items."""

    def __init__(self, loop: asyncio.AbstractEventLoop, queue: asyncio.Queue[ChangeEvent]) -> None:
        super().__init__()
        self._loop = loop
        self._queue = queue

    def _push(self, kind: ChangeKind, raw_path: str | bytes) -> None:
        event = ChangeEvent(kind=kind, path=Path(os.fsdecode(raw_path)))
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, event)
        except RuntimeError:
            # loop already closed during shutdown
            logger.debug("Dropping %s event for %s", kind.value, event.path)

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._push(ChangeKind.ADDED, event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._push(ChangeKind.CHANGED, event.src_path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._push(ChangeKind.REMOVED, event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._push(ChangeKind.REMOVED, event.src_path)
            self._push(ChangeKind.ADDED, event.dest_path)


class WatchdogChangeSource:
    """Concrete ``ChangeSource`` backed by a recursive watchdog observer.

    Bursts of events arriving within *debounce_ms* of each other are merged
    so an editor save that fires several notifications rebuilds once.
    """

    def __init__(self, debounce_ms: int = 100) -> None:
        self._debounce = debounce_ms / 1000

    async def subscribe(self, root: Path, stop_event: asyncio.Event) -> AsyncIterator[ChangeEvent]:
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[ChangeEvent] = asyncio.Queue()
        observer = Observer()
        try:
            observer.schedule(_QueueingHandler(loop, queue), str(root), recursive=True)
            observer.start()
        except OSError as exc:
            raise WatchError(f"Cannot watch {root}: {exc}") from exc

        try:
            while not stop_event.is_set():
                try:
                    first = await asyncio.wait_for(queue.get(), timeout=_POLL_INTERVAL)
                except asyncio.TimeoutError:
                    if not observer.is_alive():
                        raise WatchError(f"Filesystem observer for {root} stopped unexpectedly")
                    continue
                for event in await self._collect_burst(first, queue):
                    yield event
        finally:
            observer.stop()
            await asyncio.to_thread(observer.join, _JOIN_TIMEOUT)
            logger.debug("Released filesystem subscription for %s", root)

    async def _collect_burst(
        self, first: ChangeEvent, queue: asyncio.Queue[ChangeEvent]
    ) -> list[ChangeEvent]:
        if self._debounce:
            await asyncio.sleep(self._debounce)
        burst = [first]
        while not queue.empty():
            burst.append(queue.get_nowait())
        # keep the first occurrence of each (kind, path) pair, in arrival order
        return list(dict.fromkeys(burst))
