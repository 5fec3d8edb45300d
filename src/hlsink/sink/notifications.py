"""Notifications and demand permits produced by the sink.

A sink operation returns ``SinkActions``: the notifications it emitted for
the hosting runtime, plus the demand permit allowing upstream to send the
next fragment of a track.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

import structlog

from hlsink.models import TrackId
from hlsink.storage.base import Storage

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class DemandPermit:
    """Permission for upstream to send exactly one more fragment of a track."""

    track_id: TrackId
    sequence: int


@dataclass(frozen=True)
class TrackPlayable:
    """The first fragment of the track is stored; players can start it."""

    track_id: TrackId

    @property
    def event_type(self) -> str:
        return "track_playable"


@dataclass(frozen=True)
class Cleanup:
    """Deferred deletion of every file the presentation produced.

    Nothing is deleted until ``execute`` is awaited, so the caller can keep
    a finished presentation around for as long as viewers need it.
    """

    names: Tuple[str, ...]
    storage: Storage = field(repr=False, compare=False)

    async def execute(self) -> None:
        """Delete every file in ``names``.

        Raises:
            CleanupFailed: If the storage backend fails to remove a file
        """
        logger.info("Running cleanup", files=len(self.names))
        await self.storage.cleanup(self.names)


@dataclass(frozen=True)
class CleanupReady:
    """Teardown finished; ``cleanup`` removes the presentation's files."""

    cleanup: Cleanup

    @property
    def event_type(self) -> str:
        return "cleanup"


Notification = Union[TrackPlayable, CleanupReady]


@dataclass
class SinkActions:
    """What a successful sink operation produced."""

    notifications: List[Notification] = field(default_factory=list)
    demand: Optional[DemandPermit] = None
