"""Port: content minifier — defined by the domain, implemented by infrastructure."""

from __future__ import annotations

from typing import Protocol


class Minifier(Protocol):
    """Abstract contract for a per-content-type minification transform."""

    def minify(self, content: str) -> str:
        """Return the minified form of *content*; may raise on malformed input."""
        ...
