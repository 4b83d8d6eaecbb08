"""Output materialization — atomic file writes and output-tree clearing.

Writes go to a temp file beside the destination and are moved into place
with ``os.replace``, so an interrupted write leaves the destination either
fully written or untouched.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import shutil
import tempfile
from pathlib import Path

import aiofiles
import aiofiles.os

from asset_pipeline.domain.exceptions import WriteError

logger = logging.getLogger(__name__)

_FILE_MODE = 0o644


def _create_temp_file(directory: Path, name: str) -> str:
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=f".{name}.", suffix=".tmp")
    os.close(fd)
    os.chmod(tmp_path, _FILE_MODE)
    return tmp_path


def _discard(tmp_path: str) -> None:
    with contextlib.suppress(OSError):
        os.unlink(tmp_path)


async def write(destination: Path, content: str | bytes) -> int:
    """Write *content* to *destination*, creating parent directories.

    Any existing file is replaced.  Text is encoded as UTF-8.  Returns the
    number of bytes written.
    """
    destination = Path(destination)
    data = content.encode("utf-8") if isinstance(content, str) else content

    try:
        await aiofiles.os.makedirs(destination.parent, exist_ok=True)
        tmp_path = await asyncio.to_thread(_create_temp_file, destination.parent, destination.name)
    except OSError as exc:
        raise WriteError(f"Cannot prepare {destination}: {exc}") from exc

    try:
        async with aiofiles.open(tmp_path, "wb") as fh:
            await fh.write(data)
        await aiofiles.os.replace(tmp_path, destination)
    except OSError as exc:
        _discard(tmp_path)
        raise WriteError(f"Cannot write {destination}: {exc}") from exc
    except asyncio.CancelledError:
        _discard(tmp_path)
        raise

    return len(data)


async def clear_output_tree(output_root: Path) -> bool:
    """Recursively remove *output_root*; return *False* if it did not exist."""
    output_root = Path(output_root)
    if not await aiofiles.os.path.exists(output_root):
        return False
    try:
        await asyncio.to_thread(shutil.rmtree, output_root)
    except OSError as exc:
        raise WriteError(f"Cannot remove {output_root}: {exc}") from exc
    logger.info("Removed %s", output_root)
    return True
