"""Storage contract used by the sink.

A ``StorageBackend`` only knows how to store and remove named blobs. The
``Storage`` wrapper layers the sink's operations on top of it: storing init
files, applying chunk changesets, writing manifests through a content cache,
and bulk cleanup. Backend failures are re-raised as the storage error that
matches the operation.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Mapping, Optional, Protocol

from hlsink.error_handling import storage_errors
from hlsink.exceptions import (
    ChangesetApplyFailed,
    CleanupFailed,
    InitWriteFailed,
    ManifestWriteFailed,
)
from hlsink.models import ChunkChangeset, TrackId

logger = logging.getLogger(__name__)


class ResourceType(str, Enum):
    INIT = "init"
    FRAGMENT = "fragment"
    MANIFEST = "manifest"


class WriteMode(str, Enum):
    BINARY = "binary"
    TEXT = "text"


@dataclass(frozen=True)
class StorageContext:
    """What kind of resource a backend call concerns."""

    resource_type: ResourceType
    mode: WriteMode = WriteMode.BINARY


INIT_CONTEXT = StorageContext(ResourceType.INIT)
FRAGMENT_CONTEXT = StorageContext(ResourceType.FRAGMENT)
MANIFEST_CONTEXT = StorageContext(ResourceType.MANIFEST, WriteMode.TEXT)


class StorageBackend(Protocol):
    """Durable sink for named blobs."""

    async def store(self, name: str, content: bytes, context: StorageContext) -> None:
        """Durably store ``content`` under ``name``, replacing any previous blob."""
        ...

    async def remove(self, name: str, context: StorageContext) -> None:
        """Remove ``name``. Removing a missing resource is not an error."""
        ...


class Storage:
    """Sink-facing storage operations over a ``StorageBackend``."""

    def __init__(self, backend: StorageBackend):
        self.backend = backend
        self._manifest_cache: Dict[str, str] = {}

    async def store_init(
        self, name: str, payload: bytes, track_id: Optional[TrackId] = None
    ) -> None:
        async with storage_errors(InitWriteFailed, name, track_id):
            await self.backend.store(name, payload, INIT_CONTEXT)
        logger.debug(f"Stored init file {name} ({len(payload)} bytes)")

    async def apply_chunk_changeset(
        self,
        changeset: ChunkChangeset,
        payload: bytes,
        track_id: Optional[TrackId] = None,
    ) -> None:
        """Write the new fragment, then delete the stale ones."""
        if changeset.to_add is not None:
            async with storage_errors(ChangesetApplyFailed, changeset.to_add, track_id):
                await self.backend.store(changeset.to_add, payload, FRAGMENT_CONTEXT)

        for name in changeset.to_remove:
            async with storage_errors(ChangesetApplyFailed, name, track_id):
                await self.backend.remove(name, FRAGMENT_CONTEXT)

        if changeset.to_remove:
            logger.debug(f"Removed stale fragments: {', '.join(changeset.to_remove)}")

    async def store_manifests(self, manifests: Mapping[str, str]) -> None:
        """Write manifests in mapping order, skipping unchanged ones."""
        for name, content in manifests.items():
            if self._manifest_cache.get(name) == content:
                continue
            async with storage_errors(ManifestWriteFailed, name):
                await self.backend.store(name, content.encode("utf-8"), MANIFEST_CONTEXT)
            self._manifest_cache[name] = content

    def clear_cache(self) -> None:
        """Forget stored manifest contents so the next write stores all of them."""
        self._manifest_cache.clear()

    async def cleanup(self, names: Iterable[str]) -> None:
        names = list(names)
        for name in names:
            async with storage_errors(CleanupFailed, name):
                await self.backend.remove(name, FRAGMENT_CONTEXT)
        logger.info(f"Cleaned up {len(names)} files")
