"""Watch loop — re-run the single-file pipeline for every relevant change.

Events are filtered with the same include / exclude rules as a full pass.
Add and change events rebuild only the affected file; removals are logged
and leave the stale output in place.  Rebuilds of different paths overlap;
rebuilds of the same path run one after another.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from asset_pipeline.domain.entities import BuildResult, ChangeEvent, ChangeKind
from asset_pipeline.domain.exceptions import WatchError
from asset_pipeline.domain.ports.change_source import ChangeSource
from asset_pipeline.services.build_orchestrator import BuildOrchestrator
from asset_pipeline.services.path_resolver import PathMatcher

logger = logging.getLogger(__name__)


class WatchLoop:
    """Long-lived listener feeding change events into the build pipeline."""

    def __init__(self, orchestrator: BuildOrchestrator, change_source: ChangeSource) -> None:
        self._orchestrator = orchestrator
        self._source = change_source
        self._root = orchestrator.config.source_root
        self._matcher = PathMatcher.from_configuration(orchestrator.config)
        self._locks: dict[Path, asyncio.Lock] = {}
        self._lock_users: dict[Path, int] = {}
        self._tasks: set[asyncio.Task[BuildResult]] = set()

    async def run(self, stop_event: asyncio.Event) -> None:
        """Process events until *stop_event* is set or the task is cancelled."""
        logger.info("Watching %s for changes... Press Ctrl+C to stop", self._root)
        try:
            async for event in self._source.subscribe(self._root, stop_event):
                self.dispatch(event)
        except WatchError as exc:
            logger.error("Watcher error: %s", exc)
            raise
        except asyncio.CancelledError:
            for task in self._tasks:
                task.cancel()
            raise
        finally:
            if self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)
        logger.info("Stopped watching %s", self._root)

    def dispatch(self, event: ChangeEvent) -> asyncio.Task[BuildResult] | None:
        """Schedule the rebuild for *event*; return the task, if one was started."""
        if not self._matcher.accepts(event.path, self._root):
            logger.debug("Ignoring %s event for %s", event.kind.value, event.path)
            return None

        if event.kind is ChangeKind.REMOVED:
            logger.info("File removed: %s", event.path)
            return None

        logger.info("File %s: %s", event.kind.value, event.path)
        task = asyncio.create_task(self._rebuild(event.path))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _rebuild(self, path: Path) -> BuildResult:
        lock = self._locks.setdefault(path, asyncio.Lock())
        self._lock_users[path] = self._lock_users.get(path, 0) + 1
        try:
            async with lock:
                return await self._orchestrator.build_file(path)
        finally:
            # last holder or waiter for this path drops the lock
            self._lock_users[path] -= 1
            if not self._lock_users[path]:
                del self._lock_users[path]
                del self._locks[path]
