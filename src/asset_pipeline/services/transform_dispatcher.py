"""Transform dispatch — pick and run the per-content-type transform.

Development builds are a pure mirror.  Production builds minify HTML, CSS
and JS through pluggable :class:`Minifier` adapters; anything else passes
through unchanged.  A minifier that raises never aborts the batch: the
original content is returned together with the failure reason, so a bad
input degrades to "correct but larger" instead of "file missing".
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Callable, Mapping

from asset_pipeline.domain.entities import BuildMode, ContentType, FileStats, TransformOutcome
from asset_pipeline.domain.exceptions import TransformError
from asset_pipeline.domain.ports.minifier import Minifier

logger = logging.getLogger(__name__)

# ── Diagnostic-call stripping ───────────────────────────────────────────────

DEBUG_RECEIVER = "console"
DEBUG_METHODS: tuple[str, ...] = ("log", "warn", "error", "info", "debug", "trace")

_DEBUG_CALL_RE = re.compile(
    rf"{DEBUG_RECEIVER}\.(?:{'|'.join(DEBUG_METHODS)})\s*\([^)]*\)\s*;?"
)


def strip_debug_calls(code: str) -> str:
    """Remove ``console.<method>(...)`` calls from JavaScript source.

    This is a lexical pass, not a parse.  The argument list ends at the
    first ``)``, so ``console.log(f(x))`` leaves a stray ``)`` behind, and
    matches inside string literals or comments are removed as well.
    """
    return _DEBUG_CALL_RE.sub("", code)


# ── Stats ───────────────────────────────────────────────────────────────────


def get_stats(original: str, processed: str) -> FileStats:
    """Compare UTF-8 byte sizes of *original* and *processed* content."""
    original_size = len(original.encode("utf-8"))
    processed_size = len(processed.encode("utf-8"))
    saved = original_size - processed_size
    percentage = round(saved / original_size * 100, 1) if original_size > 0 else 0.0
    return FileStats(
        original_size=original_size,
        processed_size=processed_size,
        saved_bytes=saved,
        saved_percentage=percentage,
    )


# ── Dispatcher ──────────────────────────────────────────────────────────────


class TransformDispatcher:
    """Maps ``(content type, mode)`` to the transform that must run.

    Parameters
    ----------
    minifiers:
        One :class:`Minifier` per content type.  A content type without an
        entry is passed through unchanged in every mode.
    """

    def __init__(self, minifiers: Mapping[ContentType, Minifier]) -> None:
        self._transforms: dict[ContentType, Callable[[str], str]] = {}
        for content_type, minifier in minifiers.items():
            if content_type is ContentType.OTHER:
                continue
            self._transforms[content_type] = minifier.minify
        js = minifiers.get(ContentType.JS)
        if js is not None:
            self._transforms[ContentType.JS] = lambda code: js.minify(strip_debug_calls(code))

    def apply(
        self,
        content: str,
        content_type: ContentType,
        mode: BuildMode,
        *,
        source: Path | str | None = None,
    ) -> TransformOutcome:
        """Run the selected transform; fall back to *content* if it raises."""
        if mode is not BuildMode.PRODUCTION:
            return TransformOutcome(content=content)

        transform = self._transforms.get(content_type)
        if transform is None:
            return TransformOutcome(content=content)

        try:
            return TransformOutcome(content=transform(content))
        except Exception as exc:
            error = TransformError(
                f"Failed to minify {content_type.value.upper()}"
                f"{f' in {source}' if source else ''}: {exc}"
            )
            logger.warning("%s — keeping original content", error)
            return TransformOutcome(content=content, error=str(error))
