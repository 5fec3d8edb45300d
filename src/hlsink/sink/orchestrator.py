"""Sink state machine.

Turns per-track init data and fragments into playlist mutations, ordered
storage writes and lifecycle notifications:

  track init    -> playlist.add_track -> storage.store_init
  stream start  -> registry.register -> demand permit
  fragment      -> playlist.add_fragment -> storage.apply_chunk_changeset
                   -> manifests stored -> track playable? -> demand permit
  stream end    -> playlist.finish -> manifests stored -> storage cache cleared
  teardown      -> cleanup set computed -> (persist) rewound manifests stored
                   -> cleanup notification

Each step runs only if the previous one succeeded. Playlist mutations are
never rolled back when a later storage step fails.
"""

from enum import Enum
from typing import Dict, Optional, Union

import structlog

from hlsink.exceptions import DemandViolationError, SinkClosedError, TrackFinishedError
from hlsink.models import ContentType, TrackConfig, TrackId
from hlsink.observability import traced
from hlsink.playlist.playlist import Playlist
from hlsink.sink.notifications import (
    Cleanup,
    CleanupReady,
    DemandPermit,
    SinkActions,
    TrackPlayable,
)
from hlsink.sink.registry import TrackRegistry, TrackState
from hlsink.storage.base import Storage

logger = structlog.get_logger(__name__)


class PresentationState(str, Enum):
    ACTIVE = "active"
    DRAINING = "draining"
    CLOSED = "closed"


class SinkOrchestrator:
    """Drives one presentation's playlist and storage.

    Not safe for concurrent use: every call must complete before the next
    one starts. ``hlsink.sink.mailbox.Sink`` provides that serialization.
    """

    def __init__(
        self,
        playlist: Playlist,
        storage: Storage,
        *,
        target_window_duration: Optional[float] = 5.0,
        persist: bool = False,
        target_fragment_duration: float = 0.0,
        init_extension: str = ".mp4",
        fragment_extension: str = ".m4s",
    ):
        self.playlist = playlist
        self.storage = storage
        self.target_window_duration = target_window_duration
        self.persist = persist
        self.target_fragment_duration = target_fragment_duration
        self.init_extension = init_extension
        self.fragment_extension = fragment_extension

        self.registry = TrackRegistry()
        self.state = PresentationState.ACTIVE
        self._outstanding_permits: Dict[TrackId, DemandPermit] = {}
        self._permit_sequence: Dict[TrackId, int] = {}

    @traced("sink.track_init")
    async def on_track_init(
        self,
        track_id: TrackId,
        content_type: Union[ContentType, str],
        init_payload: bytes,
    ) -> SinkActions:
        """Add a track to the playlist and store its init segment.

        Raises:
            TrackAlreadyInitializedError: If the track was initialized before
            InitWriteFailed: If storing the init segment failed; the track
                stays in the playlist
        """
        self._ensure_active("track_init")

        config = TrackConfig(
            id=track_id,
            content_type=ContentType(content_type),
            init_extension=self.init_extension,
            fragment_extension=self.fragment_extension,
            target_window_duration=self.target_window_duration,
            target_fragment_duration=self.target_fragment_duration,
            persist=self.persist,
        )
        init_name = self.playlist.add_track(config)
        self.registry.mark_initialized(track_id)

        await self.storage.store_init(init_name, init_payload, track_id)
        logger.info("Track initialized", track_id=str(track_id), init_name=init_name)
        return SinkActions()

    @traced("sink.stream_start")
    async def on_stream_start(self, track_id: TrackId) -> SinkActions:
        """Register the track for its playable notification and demand data.

        Raises:
            TrackFinishedError: If the track already received end of stream
        """
        self._ensure_active("stream_start")
        if self.registry.state_of(track_id) == TrackState.FINISHED:
            raise TrackFinishedError(track_id)

        self.registry.register(track_id)
        self.registry.mark_streaming(track_id)
        logger.info("Stream started", track_id=str(track_id))
        return SinkActions(demand=self._issue_permit(track_id))

    @traced("sink.write")
    async def on_fragment(
        self,
        track_id: TrackId,
        payload: bytes,
        duration: float,
        permit: DemandPermit,
    ) -> SinkActions:
        """Commit one fragment: playlist, fragment file, then manifests.

        Returns:
            ``TrackPlayable`` for the track's first committed fragment, and
            the permit for the next fragment

        Raises:
            DemandViolationError: If ``permit`` is not the track's outstanding one
            ChangesetApplyFailed: If storing the fragment or deleting stale
                fragments failed; manifests are left untouched
            ManifestWriteFailed: If storing the manifests failed
        """
        self._ensure_active("write")
        if self._outstanding_permits.get(track_id) != permit:
            raise DemandViolationError(track_id, permit)

        changeset = self.playlist.add_fragment(track_id, duration)
        del self._outstanding_permits[track_id]

        await self.storage.apply_chunk_changeset(changeset, payload, track_id)
        await self._serialize_and_store_playlist(self.playlist)

        notifications = []
        if self.registry.consume_if_awaiting(track_id):
            logger.info("Track playable", track_id=str(track_id))
            notifications.append(TrackPlayable(track_id))

        logger.debug(
            "Fragment committed",
            track_id=str(track_id),
            fragment=changeset.to_add,
            removed=len(changeset.to_remove),
        )
        return SinkActions(
            notifications=notifications, demand=self._issue_permit(track_id)
        )

    @traced("sink.stream_end")
    async def on_stream_end(self, track_id: TrackId) -> SinkActions:
        """Close the track's list and store the final manifests.

        Raises:
            ManifestWriteFailed: If storing the manifests failed
        """
        self._ensure_active("stream_end")

        self.playlist.finish(track_id)
        self.registry.mark_finished(track_id)
        self._outstanding_permits.pop(track_id, None)

        try:
            await self._serialize_and_store_playlist(self.playlist)
        finally:
            self.storage.clear_cache()

        logger.info("Stream ended", track_id=str(track_id))
        return SinkActions()

    @traced("sink.teardown")
    async def on_teardown(self) -> SinkActions:
        """Stop the presentation and hand out the deferred cleanup.

        The cleanup set is every file ever produced, computed before the
        persist rewind so it does not depend on what the manifests list.

        Raises:
            ManifestWriteFailed: If ``persist`` is set and storing the
                rewound manifests failed; no cleanup is emitted
        """
        self._ensure_active("teardown")
        self.state = PresentationState.DRAINING
        logger.info("Tearing down presentation", playlist=self.playlist.name)

        try:
            to_remove = tuple(self.playlist.all_fragments())
            if self.persist:
                await self._serialize_and_store_playlist(self.playlist.from_beginning())
        finally:
            self.state = PresentationState.CLOSED
            self._outstanding_permits.clear()

        cleanup = Cleanup(names=to_remove, storage=self.storage)
        return SinkActions(notifications=[CleanupReady(cleanup)])

    def request_demand(self, track_id: TrackId) -> DemandPermit:
        """Issue a fresh permit for a track, e.g. to continue after a failure.

        Any permit previously issued for the track becomes invalid.
        """
        self._ensure_active("request_demand")
        track = self.playlist.get_track(track_id)
        if track.finished:
            raise TrackFinishedError(track_id)
        return self._issue_permit(track_id)

    def outstanding_permit(self, track_id: TrackId) -> Optional[DemandPermit]:
        return self._outstanding_permits.get(track_id)

    async def _serialize_and_store_playlist(self, playlist: Playlist) -> None:
        await self.storage.store_manifests(playlist.serialize())

    def _issue_permit(self, track_id: TrackId) -> DemandPermit:
        sequence = self._permit_sequence.get(track_id, 0)
        self._permit_sequence[track_id] = sequence + 1
        permit = DemandPermit(track_id, sequence)
        self._outstanding_permits[track_id] = permit
        return permit

    def _ensure_active(self, operation: str) -> None:
        if self.state != PresentationState.ACTIVE:
            raise SinkClosedError(operation)
