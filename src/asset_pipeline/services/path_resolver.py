"""Path resolution — expand include / exclude globs and mirror source paths.

Patterns are matched against POSIX paths relative to the source root with
the following grammar:

* ``**``    any number of path segments, including none
* ``*``     any run of characters inside one segment
* ``?``     one character inside one segment
* ``[..]``  character class, ``[!..]`` negated
* ``{a,b}`` alternation (not nested)

The same compiled matcher decides both full-tree discovery and whether a
single watch event is in scope, so the two can never disagree.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Iterable

from asset_pipeline.domain.entities import BuildConfiguration, SourceFileEntry
from asset_pipeline.domain.exceptions import ResolutionError, SourceRootNotFoundError

logger = logging.getLogger(__name__)

_SUBTREE_SUFFIX = "/**"


# ── Glob translation ────────────────────────────────────────────────────────


def _translate(pattern: str) -> str:
    """Translate one glob *pattern* into an (unanchored) regex body."""
    out: list[str] = []
    i, n = 0, len(pattern)
    while i < n:
        char = pattern[i]
        at_segment_start = i == 0 or pattern[i - 1] == "/"

        if pattern.startswith("**", i):
            if at_segment_start and pattern.startswith("**/", i):
                out.append("(?:.*/)?")
                i += 3
            else:
                out.append(".*")
                i += 2
        elif char == "*":
            out.append("[^/]*")
            i += 1
        elif char == "?":
            out.append("[^/]")
            i += 1
        elif char == "[":
            end = pattern.find("]", i + 2 if pattern[i + 1 : i + 2] in ("!", "]") else i + 1)
            if end == -1:
                raise ResolutionError(f"Unbalanced '[' in pattern '{pattern}'")
            body = pattern[i + 1 : end].replace("\\", "\\\\")
            if body.startswith("!"):
                body = "^" + body[1:]
            out.append(f"[{body}]")
            i = end + 1
        elif char == "{":
            end = pattern.find("}", i)
            if end == -1:
                raise ResolutionError(f"Unbalanced '{{' in pattern '{pattern}'")
            inner = pattern[i + 1 : end]
            if "{" in inner:
                raise ResolutionError(f"Nested '{{' is not supported in pattern '{pattern}'")
            alternatives = "|".join(_translate(alt) for alt in inner.split(","))
            out.append(f"(?:{alternatives})")
            i = end + 1
        else:
            out.append(re.escape(char))
            i += 1
    return "".join(out)


def _normalise(pattern: str) -> str:
    pattern = pattern.strip().replace("\\", "/")
    while pattern.startswith("./"):
        pattern = pattern[2:]
    return pattern.lstrip("/")


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a glob into a regex that must match a whole relative path."""
    normalised = _normalise(pattern)
    if not normalised:
        raise ResolutionError("Empty glob pattern")
    try:
        return re.compile(_translate(normalised))
    except re.error as exc:
        raise ResolutionError(f"Invalid glob pattern '{pattern}': {exc}") from exc


# ── Matcher ─────────────────────────────────────────────────────────────────


class PathMatcher:
    """Pre-compiled include / exclude rule set for one source root."""

    def __init__(self, include_patterns: Iterable[str], exclude_patterns: Iterable[str]) -> None:
        self._includes = [compile_pattern(p) for p in include_patterns]
        self._excludes: list[re.Pattern[str]] = []
        # ``foo/**`` style excludes also prune the ``foo`` directory itself
        self._subtrees: list[re.Pattern[str]] = []
        for pattern in sorted(exclude_patterns):
            self._excludes.append(compile_pattern(pattern))
            normalised = _normalise(pattern)
            if normalised.endswith(_SUBTREE_SUFFIX) and len(normalised) > len(_SUBTREE_SUFFIX):
                self._subtrees.append(compile_pattern(normalised[: -len(_SUBTREE_SUFFIX)]))

    @classmethod
    def from_configuration(cls, config: BuildConfiguration) -> PathMatcher:
        return cls(config.include_patterns, config.exclude_patterns)

    def is_excluded_dir(self, relative_dir: str) -> bool:
        """Return *True* if the whole directory subtree is excluded."""
        return any(rx.fullmatch(relative_dir) for rx in self._subtrees)

    def matches(self, relative_path: str) -> bool:
        """Return *True* if the relative path is included and not excluded."""
        if not any(rx.fullmatch(relative_path) for rx in self._includes):
            return False
        return not any(rx.fullmatch(relative_path) for rx in self._excludes)

    def accepts(self, path: Path, source_root: Path) -> bool:
        """Absolute-path variant of :meth:`matches`; paths outside the root are rejected."""
        try:
            relative = path.relative_to(source_root)
        except ValueError:
            return False
        return self.matches(relative.as_posix())


# ── Public API ──────────────────────────────────────────────────────────────


def resolve(
    source_root: Path,
    include_patterns: Iterable[str],
    exclude_patterns: Iterable[str],
) -> list[Path]:
    """Return every file under *source_root* matched by the pattern sets.

    Overlapping include patterns collapse to one entry per file.  The list
    is sorted so repeated calls on an unchanged tree return the same value,
    but callers must not attach meaning to the order.
    """
    root = Path(source_root)
    if not root.is_dir():
        raise SourceRootNotFoundError(f"Source directory {root} does not exist")

    matcher = PathMatcher(include_patterns, exclude_patterns)

    def _on_error(exc: OSError) -> None:
        raise ResolutionError(f"Cannot read {exc.filename}: {exc.strerror}") from exc

    found: set[Path] = set()
    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        rel_dir = Path(dirpath).relative_to(root).as_posix()
        prefix = "" if rel_dir == "." else f"{rel_dir}/"
        dirnames[:] = [d for d in dirnames if not matcher.is_excluded_dir(prefix + d)]
        for name in filenames:
            if matcher.matches(prefix + name):
                found.add(Path(dirpath) / name)

    logger.debug("Resolved %d files under %s", len(found), root)
    return sorted(found)


def discover(config: BuildConfiguration) -> list[SourceFileEntry]:
    """Resolve the configured file set into typed :class:`SourceFileEntry` values."""
    paths = resolve(config.source_root, config.include_patterns, config.exclude_patterns)
    return [SourceFileEntry.from_path(p) for p in paths]


def map_output_path(source_path: Path, source_root: Path, output_root: Path) -> Path:
    """Mirror *source_path* from *source_root* into *output_root*.

    *source_path* must lie under *source_root*.
    """
    return Path(output_root) / Path(source_path).relative_to(source_root)
