"""Domain entities — pure data structures with no external dependencies."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable


class ContentType(str, Enum):
    """Build-relevant classification of a file, derived from its extension."""

    HTML = "html"
    CSS = "css"
    JS = "js"
    OTHER = "other"

    @classmethod
    def from_path(cls, path: str | Path) -> ContentType:
        suffix = Path(path).suffix.lower().lstrip(".")
        try:
            return cls(suffix)
        except ValueError:
            return cls.OTHER


class BuildMode(str, Enum):
    """Transform behaviour selector: pass-through or minifying."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"


class BuildOutcome(str, Enum):
    """Per-file result of one pipeline run."""

    SUCCEEDED = "succeeded"
    DEGRADED = "degraded"  # written, but with the untransformed content
    FAILED = "failed"


class BuildState(str, Enum):
    """Phases of one full build pass."""

    IDLE = "idle"
    CLEARING = "clearing"
    RESOLVING = "resolving"
    BUILDING = "building"
    REPORTING = "reporting"
    FAILED = "failed"


class ChangeKind(str, Enum):
    """Kind of filesystem change delivered to the watch loop."""

    ADDED = "added"
    CHANGED = "changed"
    REMOVED = "removed"


@dataclass(frozen=True, slots=True)
class BuildConfiguration:
    """Everything one build-or-watch session needs; never mutated."""

    source_root: Path
    output_root: Path
    include_patterns: tuple[str, ...]
    exclude_patterns: frozenset[str]
    mode: BuildMode = BuildMode.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        return self.mode is BuildMode.PRODUCTION


@dataclass(frozen=True, slots=True)
class SourceFileEntry:
    """A resolved absolute source path with its content type."""

    path: Path
    content_type: ContentType

    @classmethod
    def from_path(cls, path: Path) -> SourceFileEntry:
        return cls(path=path, content_type=ContentType.from_path(path))


@dataclass(frozen=True, slots=True)
class FileStats:
    """Byte-size comparison between original and processed content."""

    original_size: int
    processed_size: int
    saved_bytes: int
    saved_percentage: float


@dataclass(frozen=True, slots=True)
class TransformOutcome:
    """Transformed content, or the original content plus the failure reason."""

    content: str
    error: str | None = None

    @property
    def degraded(self) -> bool:
        return self.error is not None


@dataclass(frozen=True, slots=True)
class BuildResult:
    """Outcome of building a single source file."""

    source_path: Path
    destination_path: Path
    original_size: int = 0
    final_size: int = 0
    outcome: BuildOutcome = BuildOutcome.SUCCEEDED
    failure_reason: str | None = None


@dataclass(frozen=True, slots=True)
class BuildSummary:
    """Aggregate of one pass — the only state observable after it ends."""

    attempted: int
    succeeded: int
    degraded: int
    failed: int
    duration_ms: int
    output_root: Path

    @property
    def with_failures(self) -> int:
        """Files that did not come out fully transformed."""
        return self.degraded + self.failed

    @classmethod
    def from_results(
        cls,
        results: Iterable[BuildResult],
        duration_ms: int,
        output_root: Path,
    ) -> BuildSummary:
        counts = {outcome: 0 for outcome in BuildOutcome}
        for result in results:
            counts[result.outcome] += 1
        return cls(
            attempted=sum(counts.values()),
            succeeded=counts[BuildOutcome.SUCCEEDED],
            degraded=counts[BuildOutcome.DEGRADED],
            failed=counts[BuildOutcome.FAILED],
            duration_ms=duration_ms,
            output_root=output_root,
        )


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    """A single add / change / remove notification for one path."""

    kind: ChangeKind
    path: Path
