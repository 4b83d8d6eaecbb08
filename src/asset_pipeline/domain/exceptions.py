"""Domain exception hierarchy.

Each exception maps to a specific process exit code at the interface layer.
Inner layers raise these; the outermost error-handler translates them.
Per-file failures never escape the build pass as exceptions: the pipeline
records them on the :class:`~asset_pipeline.domain.entities.BuildResult`.
"""

from __future__ import annotations


class AssetPipelineError(Exception):
    """Base exception for the entire application."""


# ── Invocation ──────────────────────────────────────────────────────────────


class ConfigurationError(AssetPipelineError):
    """The invocation or environment name is unusable."""


# ── Discovery ───────────────────────────────────────────────────────────────


class ResolutionError(AssetPipelineError):
    """The file set could not be resolved (bad pattern, unreadable tree)."""


class SourceRootNotFoundError(ResolutionError):
    """The configured source root does not exist."""


# ── Per-file pipeline ───────────────────────────────────────────────────────


class TransformError(AssetPipelineError):
    """A content transform raised; the original content is used instead."""


class WriteError(AssetPipelineError):
    """Creating directories, writing a file or clearing the output tree failed."""


# ── Watching ────────────────────────────────────────────────────────────────


class WatchError(AssetPipelineError):
    """The filesystem subscription failed and can no longer deliver events."""
