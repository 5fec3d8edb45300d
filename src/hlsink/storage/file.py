"""Local filesystem storage backend."""

import asyncio
import logging
import os
from pathlib import Path

import aiofiles
import aiofiles.os

from hlsink.storage.base import StorageContext

logger = logging.getLogger(__name__)


class FileStorage:
    """Stores every resource as a file in one output directory.

    Files are written to a temporary sibling first and moved into place, so
    a reader never sees a partially written manifest or fragment.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        logger.info(f"Initialized FileStorage: directory={self.directory}")

    def path_for(self, name: str) -> Path:
        path = self.directory / name
        if path.resolve().parent != self.directory.resolve():
            raise ValueError(f"Resource name escapes storage directory: {name!r}")
        return path

    async def store(self, name: str, content: bytes, context: StorageContext) -> None:
        path = self.path_for(name)
        tmp_path = path.with_name(f".{path.name}.tmp")

        async with aiofiles.open(tmp_path, "wb") as f:
            await f.write(content)
            await f.flush()
            await asyncio.to_thread(os.fsync, f.fileno())

        await aiofiles.os.replace(tmp_path, path)
        logger.debug(f"Wrote {context.resource_type.value} {path} ({len(content)} bytes)")

    async def remove(self, name: str, context: StorageContext) -> None:
        path = self.path_for(name)
        await asyncio.to_thread(path.unlink, missing_ok=True)
        logger.debug(f"Removed {context.resource_type.value} {path}")
