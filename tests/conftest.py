from pathlib import Path

import pytest

from asset_pipeline.domain.entities import BuildConfiguration, BuildMode, ContentType
from asset_pipeline.services.transform_dispatcher import TransformDispatcher

DEFAULT_INCLUDES = ("**/*.{html,css,js}",)
DEFAULT_EXCLUDES = frozenset({"**/node_modules/**", "**/.git/**", "**/dist/**"})


class TaggingMinifier:
    """Deterministic stand-in: strips whitespace and tags the result."""

    def __init__(self, tag):
        self.tag = tag
        self.calls = []

    def minify(self, content):
        self.calls.append(content)
        return f"/*{self.tag}*/" + "".join(content.split())


class ExplodingMinifier:
    """Raises on input containing the marker, otherwise behaves like TaggingMinifier."""

    def __init__(self, tag, marker="@@broken@@"):
        self.tag = tag
        self.marker = marker

    def minify(self, content):
        if self.marker in content:
            raise ValueError("Unexpected token")
        return f"/*{self.tag}*/" + "".join(content.split())


def write_tree(root: Path, files: dict) -> None:
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")


def snapshot(root: Path) -> dict:
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


@pytest.fixture
def source_root(tmp_path):
    root = tmp_path / "src"
    root.mkdir()
    return root


@pytest.fixture
def make_config(tmp_path, source_root):
    def _make(mode=BuildMode.DEVELOPMENT, includes=DEFAULT_INCLUDES, excludes=DEFAULT_EXCLUDES):
        return BuildConfiguration(
            source_root=source_root,
            output_root=tmp_path / "dist" / "out",
            include_patterns=tuple(includes),
            exclude_patterns=frozenset(excludes),
            mode=mode,
        )

    return _make


@pytest.fixture
def fake_dispatcher():
    return TransformDispatcher(
        {
            ContentType.HTML: TaggingMinifier("html"),
            ContentType.CSS: TaggingMinifier("css"),
            ContentType.JS: ExplodingMinifier("js"),
        }
    )
