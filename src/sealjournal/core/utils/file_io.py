"""
File I/O utilities: async reads and durable replace-on-write.

All functions operate on explicit paths, no implicit directory lookups.
"""

from __future__ import annotations

import os
import uuid
from pathlib import Path

import aiofiles
import aiofiles.os
from loguru import logger


async def read_text(filepath: str | Path, encoding: str = "utf-8") -> str:
    """Read a whole text file."""
    async with aiofiles.open(filepath, encoding=encoding) as f:
        return await f.read()


async def atomic_write_bytes(filepath: str | Path, data: bytes) -> None:
    """Replace ``filepath`` with ``data`` so readers see either the old or the new content.

    Writes to a temporary sibling file, fsyncs it, then ``os.replace``s it
    over the target. Parent directories are created as needed.
    """
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")

    try:
        async with aiofiles.open(tmp_path, "wb") as f:
            await f.write(data)
            await f.flush()
            os.fsync(f.fileno())
        await aiofiles.os.replace(tmp_path, path)
    except BaseException:
        if tmp_path.exists():
            tmp_path.unlink()
        logger.warning(f"Atomic write to {path} failed; temporary file discarded")
        raise


async def atomic_write_text(filepath: str | Path, content: str, encoding: str = "utf-8") -> None:
    """Text variant of :func:`atomic_write_bytes`."""
    await atomic_write_bytes(filepath, content.encode(encoding))
