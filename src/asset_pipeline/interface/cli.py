"""Command-line surface — ``asset-build`` and ``asset-clean``.

``asset-build [--env NAME] [--watch] [--src DIR]`` runs one full pass into
``dist/<env>`` (``dist/prod`` for ``production``) and optionally keeps
watching the source tree.  SIGINT / SIGTERM end the session cleanly with
exit code ``0``.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal
from pathlib import Path
from typing import Iterator, Sequence

from pydantic import ValidationError

from asset_pipeline.domain.exceptions import WriteError
from asset_pipeline.infrastructure.config import Settings, get_settings
from asset_pipeline.interface.dependencies import get_orchestrator, get_watch_loop
from asset_pipeline.interface.error_handlers import (
    EXIT_FAILURE,
    EXIT_OK,
    EXIT_USAGE,
    handle_error,
)
from asset_pipeline.interface.schemas import BuildRequest
from asset_pipeline.services import materializer

logger = logging.getLogger(__name__)

_TERMINATION_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def _build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="asset-build",
        description="Build HTML, CSS and JS assets into an environment-specific output tree.",
    )
    parser.add_argument(
        "--env",
        default=settings.default_env,
        help="Environment name; 'production' enables minification (default: %(default)s)",
    )
    parser.add_argument(
        "--watch",
        action="store_true",
        help="Keep rebuilding changed files after the initial pass",
    )
    parser.add_argument(
        "--src",
        default=settings.src_dir,
        help="Source directory (default: %(default)s)",
    )
    return parser


# ── Session ─────────────────────────────────────────────────────────────────


@contextlib.contextmanager
def _termination_signals(stop_event: asyncio.Event) -> Iterator[None]:
    """Set *stop_event* on SIGINT / SIGTERM for the duration of the block."""
    loop = asyncio.get_running_loop()

    def _terminate() -> None:
        logger.info("Build process terminated")
        stop_event.set()

    installed: list[signal.Signals] = []
    for sig in _TERMINATION_SIGNALS:
        try:
            loop.add_signal_handler(sig, _terminate)
            installed.append(sig)
        except (NotImplementedError, RuntimeError):
            # not supported here (Windows, non-main thread); KeyboardInterrupt still applies
            pass
    try:
        yield
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)


async def run_session(request: BuildRequest, settings: Settings) -> int:
    """Run the initial pass and, if requested, the watch loop."""
    environment = request.environment
    config = environment.build_configuration(
        request.src,
        settings.dist_dir,
        settings.include_patterns,
        settings.exclude_patterns,
    )
    orchestrator = get_orchestrator(config, settings, environment=environment.name)
    stop_event = asyncio.Event()

    with _termination_signals(stop_event):
        pass_task = asyncio.create_task(orchestrator.run())
        stop_task = asyncio.create_task(stop_event.wait())
        try:
            await asyncio.wait({pass_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
            if not pass_task.done():
                pass_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await pass_task
                return EXIT_OK
            pass_task.result()
        finally:
            stop_task.cancel()

        if request.watch and not stop_event.is_set():
            logger.info("Starting watch mode for %s...", environment.name)
            await get_watch_loop(orchestrator, settings).run(stop_event)

    return EXIT_OK


# ── Entry points ────────────────────────────────────────────────────────────


def main(argv: Sequence[str] | None = None) -> int:
    """``asset-build`` — return the process exit code."""
    settings = get_settings()
    args = _build_parser(settings).parse_args(argv)

    try:
        request = BuildRequest(env=args.env, watch=args.watch, src=args.src)
    except ValidationError as exc:
        for err in exc.errors():
            logger.error("Invalid %s: %s", ".".join(str(p) for p in err["loc"]), err["msg"])
        return EXIT_USAGE

    try:
        return asyncio.run(run_session(request, settings))
    except KeyboardInterrupt:
        logger.info("Build process terminated")
        return EXIT_OK
    except Exception as exc:
        return handle_error(exc)


def clean(argv: Sequence[str] | None = None) -> int:
    """``asset-clean`` — remove every environment's build output."""
    settings = get_settings()
    parser = argparse.ArgumentParser(prog="asset-clean", description="Remove build artifacts.")
    parser.add_argument(
        "--dist",
        default=settings.dist_dir,
        help="Build output directory to remove (default: %(default)s)",
    )
    args = parser.parse_args(argv)
    dist_dir = Path(args.dist).resolve()

    logger.info("Cleaning build artifacts...")
    try:
        removed = asyncio.run(materializer.clear_output_tree(dist_dir))
    except WriteError as exc:
        logger.error("Error removing %s: %s", dist_dir, exc)
        return EXIT_FAILURE

    if not removed:
        logger.info("No build artifacts to clean")
    logger.info("Clean completed")
    return EXIT_OK
