import asyncio
import os
from unittest.mock import patch

import pytest

from asset_pipeline.domain.exceptions import WriteError
from asset_pipeline.services import materializer


def test_write_creates_missing_directories(tmp_path):
    destination = tmp_path / "a" / "b" / "c.css"

    written = asyncio.run(materializer.write(destination, "é{}"))

    assert destination.read_text(encoding="utf-8") == "é{}"
    assert written == 4


def test_write_overwrites_and_is_idempotent_for_directories(tmp_path):
    destination = tmp_path / "out" / "file.js"
    asyncio.run(materializer.write(destination, "first version"))
    asyncio.run(materializer.write(destination, "second"))

    assert destination.read_text() == "second"
    assert sorted(p.name for p in destination.parent.iterdir()) == ["file.js"]


def test_write_bytes_verbatim(tmp_path):
    payload = bytes(range(256))
    destination = tmp_path / "img" / "logo.png"

    asyncio.run(materializer.write(destination, payload))

    assert destination.read_bytes() == payload


def test_write_into_file_parent_raises_write_error(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")

    with pytest.raises(WriteError):
        asyncio.run(materializer.write(blocker / "x.js", "x"))


def test_failed_replace_leaves_destination_untouched(tmp_path):
    destination = tmp_path / "keep.html"
    destination.write_text("original")

    with patch.object(materializer.aiofiles.os, "replace", side_effect=OSError("disk full")):
        with pytest.raises(WriteError, match="disk full"):
            asyncio.run(materializer.write(destination, "new content"))

    assert destination.read_text() == "original"
    assert os.listdir(tmp_path) == ["keep.html"]


def test_clear_output_tree(tmp_path):
    root = tmp_path / "dist" / "prod"
    (root / "nested").mkdir(parents=True)
    (root / "nested" / "x.js").write_text("x")

    assert asyncio.run(materializer.clear_output_tree(root)) is True
    assert not root.exists()
    assert (tmp_path / "dist").exists()


def test_clear_missing_tree_is_noop(tmp_path):
    assert asyncio.run(materializer.clear_output_tree(tmp_path / "absent")) is False
