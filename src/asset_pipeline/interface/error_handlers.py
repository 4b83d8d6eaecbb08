"""Top-level exception handling — translate domain errors to exit codes.

Per-file failures never reach this layer; they are part of the build
summary and leave the exit code at ``0``.
"""

from __future__ import annotations

import logging

from asset_pipeline.domain.exceptions import (
    AssetPipelineError,
    ConfigurationError,
    ResolutionError,
    SourceRootNotFoundError,
    WatchError,
    WriteError,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2

_EXCEPTION_EXIT_CODES: list[tuple[type[AssetPipelineError], int]] = [
    (ConfigurationError, EXIT_USAGE),
    (SourceRootNotFoundError, EXIT_FAILURE),
    (ResolutionError, EXIT_FAILURE),
    (WriteError, EXIT_FAILURE),
    (WatchError, EXIT_FAILURE),
]

_MESSAGES: dict[type[AssetPipelineError], str] = {
    ResolutionError: "Build failed",
    WriteError: "Build failed",
    WatchError: "Watch stopped",
}


def exit_code_for(exc: BaseException) -> int:
    """Return the process exit code for an exception escaping a session."""
    for exc_type, code in _EXCEPTION_EXIT_CODES:
        if isinstance(exc, exc_type):
            return code
    return EXIT_FAILURE


def handle_error(exc: BaseException) -> int:
    """Log *exc* with its context and return the matching exit code."""
    if isinstance(exc, SourceRootNotFoundError | ConfigurationError):
        logger.error("%s", exc)
    elif isinstance(exc, AssetPipelineError):
        prefix = next(
            (msg for exc_type, msg in _MESSAGES.items() if isinstance(exc, exc_type)),
            "Error",
        )
        logger.error("%s: %s", prefix, exc)
    else:
        logger.exception("Fatal error: %s", exc)
    return exit_code_for(exc)
