"""Value objects — self-validating domain primitives."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from asset_pipeline.domain.entities import BuildConfiguration, BuildMode
from asset_pipeline.domain.exceptions import ConfigurationError

_PRODUCTION = "production"
_PRODUCTION_DIR = "prod"


@dataclass(frozen=True, slots=True)
class BuildEnvironment:
    """Validated build environment name.

    Only the literal ``production`` enables minification; every other name
    is a development build.  The name also selects the output subtree
    (``dist/prod`` for production, ``dist/<name>`` otherwise), so it must be
    a single path segment.
    """

    name: str

    @classmethod
    def from_string(cls, name: str) -> BuildEnvironment:
        """Parse and validate a raw environment name."""
        name = name.strip()
        if not name or name in (".", "..") or "/" in name or "\\" in name:
            raise ConfigurationError(
                f"Invalid environment name: '{name}'. "
                "Expected a single directory-safe name such as 'staging' or 'production'."
            )
        return cls(name=name)

    @property
    def mode(self) -> BuildMode:
        return BuildMode.PRODUCTION if self.name == _PRODUCTION else BuildMode.DEVELOPMENT

    @property
    def output_dir_name(self) -> str:
        return _PRODUCTION_DIR if self.name == _PRODUCTION else self.name

    def build_configuration(
        self,
        src_dir: str | Path,
        dist_dir: str | Path,
        include_patterns: Iterable[str],
        exclude_patterns: Iterable[str],
    ) -> BuildConfiguration:
        """Resolve directories to absolute paths and freeze the session config."""
        return BuildConfiguration(
            source_root=Path(src_dir).resolve(),
            output_root=(Path(dist_dir) / self.output_dir_name).resolve(),
            include_patterns=tuple(include_patterns),
            exclude_patterns=frozenset(exclude_patterns),
            mode=self.mode,
        )
