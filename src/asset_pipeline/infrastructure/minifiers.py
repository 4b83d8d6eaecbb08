"""Minifier adapters — implement the Minifier port with third-party libraries."""

from __future__ import annotations

import re

import minify_html
import rcssmin
import rjsmin

from asset_pipeline.services.transform_dispatcher import strip_debug_calls

# Informational only: rjsmin is lexical and accepts any ECMAScript version.
JS_TARGET = "es2020"

# String literals are matched first and kept so their text is never touched.
_DEBUGGER_RE = re.compile(
    r"""('(?:\\.|[^'\\])*'|"(?:\\.|[^"\\])*"|`(?:\\.|[^`\\])*`)"""
    r"|(?<![\w$.])debugger(?![\w$])(?!\s*:)\s*;?"
)


def _drop_debugger(code: str) -> str:
    return _DEBUGGER_RE.sub(lambda m: m.group(1) or "", code)


class HtmlMinifier:
    """HTML minification via ``minify-html``.

    Comments and redundant whitespace go, embedded ``<style>`` / ``<script>``
    blocks are minified, and optional tags stay in place.
    """

    def minify(self, content: str) -> str:
        return minify_html.minify(
            content,
            minify_css=True,
            minify_js=True,
            keep_comments=False,
            keep_closing_tags=True,
            keep_html_and_head_opening_tags=True,
        )


class CssMinifier:
    """Stylesheet minification via ``rcssmin``."""

    def minify(self, content: str) -> str:
        return rcssmin.cssmin(content)


class JsMinifier:
    """Script minification via ``rjsmin``, wrapped in an isolating IIFE.

    Remaining ``debugger`` statements and diagnostic calls are dropped from
    the minified output as a second pass.  Identifiers, properties and
    object keys named ``debugger*`` and string literals are left alone.
    """

    def minify(self, content: str) -> str:
        code = rjsmin.jsmin(content).strip()
        code = _drop_debugger(strip_debug_calls(code))
        return f"(()=>{{{code}}})();"
