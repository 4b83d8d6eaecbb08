"""Build orchestration — one full pass and the shared single-file pipeline.

A pass moves through ``Clearing → Resolving → Building → Reporting``.
Every resolved file runs its own ``read → transform → write`` pipeline
concurrently with the others; a pipeline never raises, it returns a
:class:`BuildResult` describing what happened.  Only a missing source root,
a failed clear or a failed resolution abort the pass.
"""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path

import aiofiles
import aiofiles.os

from asset_pipeline.domain.entities import (
    BuildConfiguration,
    BuildOutcome,
    BuildResult,
    BuildState,
    BuildSummary,
    ContentType,
    SourceFileEntry,
    TransformOutcome,
)
from asset_pipeline.domain.exceptions import (
    AssetPipelineError,
    SourceRootNotFoundError,
    WriteError,
)
from asset_pipeline.services import materializer
from asset_pipeline.services.path_resolver import discover, map_output_path
from asset_pipeline.services.transform_dispatcher import TransformDispatcher, get_stats

logger = logging.getLogger(__name__)


class BuildOrchestrator:
    """Drives full build passes and single-file rebuilds.

    Parameters
    ----------
    config:
        Immutable session configuration; shared read-only by every pipeline.
    dispatcher:
        Selects and runs the per-content-type transform.
    max_concurrency:
        Upper bound on simultaneously in-flight file pipelines.
    environment:
        Environment name used in log messages (defaults to the mode).
    """

    def __init__(
        self,
        config: BuildConfiguration,
        dispatcher: TransformDispatcher,
        max_concurrency: int = 16,
        environment: str | None = None,
    ) -> None:
        self._config = config
        self._dispatcher = dispatcher
        self._max_concurrency = max(1, max_concurrency)
        self._environment = environment or config.mode.value
        self._state = BuildState.IDLE

    @property
    def config(self) -> BuildConfiguration:
        return self._config

    @property
    def state(self) -> BuildState:
        return self._state

    # ── Full pass ───────────────────────────────────────────────────────

    async def run(self) -> BuildSummary:
        """Clear the output tree, rebuild every resolved file and summarise."""
        start = time.perf_counter()
        logger.info("Starting %s build...", self._environment)

        try:
            if not await aiofiles.os.path.isdir(self._config.source_root):
                raise SourceRootNotFoundError(
                    f"Source directory {self._config.source_root} does not exist"
                )

            self._transition(BuildState.CLEARING)
            await materializer.clear_output_tree(self._config.output_root)

            self._transition(BuildState.RESOLVING)
            entries = await asyncio.to_thread(discover, self._config)
        except AssetPipelineError:
            self._transition(BuildState.FAILED)
            raise

        results: list[BuildResult] = []
        if not entries:
            logger.warning("No source files found in %s", self._config.source_root)
        else:
            logger.info("Found %d files to build", len(entries))
            self._transition(BuildState.BUILDING)
            try:
                results = await self._build_batch(entries)
            except asyncio.CancelledError:
                self._transition(BuildState.IDLE)
                raise

        self._transition(BuildState.REPORTING)
        duration_ms = int((time.perf_counter() - start) * 1000)
        summary = BuildSummary.from_results(results, duration_ms, self._config.output_root)
        self._report(summary)
        self._transition(BuildState.IDLE)
        return summary

    async def _build_batch(self, entries: list[SourceFileEntry]) -> list[BuildResult]:
        """Run every file pipeline concurrently, bounded by a semaphore."""
        sem = asyncio.Semaphore(self._max_concurrency)

        async def _build_one(entry: SourceFileEntry) -> BuildResult:
            async with sem:
                return await self.build_entry(entry)

        return list(await asyncio.gather(*(_build_one(e) for e in entries)))

    # ── Single-file pipeline ────────────────────────────────────────────

    async def build_file(self, source_path: Path) -> BuildResult:
        """Rebuild one file without clearing or re-resolving the tree."""
        return await self.build_entry(SourceFileEntry.from_path(Path(source_path)))

    async def build_entry(self, entry: SourceFileEntry) -> BuildResult:
        """Read, transform and write one file; failures become the result.

        Development passes and ``other`` files are copied as raw bytes.
        """
        destination = map_output_path(
            entry.path, self._config.source_root, self._config.output_root
        )

        try:
            async with aiofiles.open(entry.path, "rb") as fh:
                raw = await fh.read()
        except OSError as exc:
            return self._failed(entry, destination, f"Cannot read source: {exc}")

        text: str | None = None
        if entry.content_type is ContentType.OTHER or not self._config.is_production:
            payload: str | bytes = raw
            outcome = TransformOutcome(content="")
        else:
            try:
                text = raw.decode("utf-8")
            except UnicodeDecodeError as exc:
                return self._failed(entry, destination, f"Source is not valid UTF-8: {exc}", len(raw))
            outcome = await asyncio.to_thread(
                self._dispatcher.apply,
                text,
                entry.content_type,
                self._config.mode,
                source=entry.path,
            )
            payload = outcome.content

        try:
            written = await materializer.write(destination, payload)
        except WriteError as exc:
            return self._failed(entry, destination, str(exc), len(raw))

        if text is not None:
            stats = get_stats(text, outcome.content)
            logger.info(
                "Built %s → %s (%.1f%% smaller)",
                entry.path,
                destination,
                stats.saved_percentage,
            )
        else:
            logger.info("Built %s → %s", entry.path, destination)

        return BuildResult(
            source_path=entry.path,
            destination_path=destination,
            original_size=len(raw),
            final_size=written,
            outcome=BuildOutcome.DEGRADED if outcome.degraded else BuildOutcome.SUCCEEDED,
            failure_reason=outcome.error,
        )

    # ── Helpers ─────────────────────────────────────────────────────────

    @staticmethod
    def _failed(
        entry: SourceFileEntry,
        destination: Path,
        reason: str,
        original_size: int = 0,
    ) -> BuildResult:
        logger.error("Error building %s: %s", entry.path, reason)
        return BuildResult(
            source_path=entry.path,
            destination_path=destination,
            original_size=original_size,
            outcome=BuildOutcome.FAILED,
            failure_reason=reason,
        )

    def _transition(self, state: BuildState) -> None:
        logger.debug("Build state %s → %s", self._state.value, state.value)
        self._state = state

    def _report(self, summary: BuildSummary) -> None:
        logger.info("Build completed in %dms (%s)", summary.duration_ms, self._environment)
        level = logging.WARNING if summary.with_failures else logging.INFO
        logger.log(
            level,
            "Built %d/%d files to %s (%d with failures)",
            summary.succeeded + summary.degraded,
            summary.attempted,
            summary.output_root,
            summary.with_failures,
        )
