"""Presentation-wide playlist: the set of tracks plus a manifest format."""

import copy
import logging
from typing import Dict, List, Protocol

from hlsink.exceptions import TrackAlreadyInitializedError, UnknownTrackError
from hlsink.models import ChunkChangeset, TrackConfig, TrackId
from hlsink.playlist.track import Track

logger = logging.getLogger(__name__)


class ManifestFormat(Protocol):
    """Serializes a playlist into manifest files."""

    def serialize(self, playlist: "Playlist") -> Dict[str, str]:
        """Return a mapping of manifest file name to manifest content."""
        ...


class Playlist:
    """Tracks of one presentation and the format used to describe them.

    Only the owning sink mutates a playlist; ``from_beginning`` is the one
    operation that returns a new playlist instead.
    """

    def __init__(self, name: str, manifest_format: ManifestFormat):
        self.name = name
        self.manifest_format = manifest_format
        self._tracks: Dict[TrackId, Track] = {}

    @property
    def tracks(self) -> List[Track]:
        """Tracks in the order they were added."""
        return list(self._tracks.values())

    def get_track(self, track_id: TrackId) -> Track:
        try:
            return self._tracks[track_id]
        except KeyError:
            raise UnknownTrackError(track_id) from None

    def has_track(self, track_id: TrackId) -> bool:
        return track_id in self._tracks

    def add_track(self, config: TrackConfig) -> str:
        """Add a track and return the name its init file must be stored under."""
        if config.id in self._tracks:
            raise TrackAlreadyInitializedError(config.id)

        track = Track(config)
        if any(t.track_name == track.track_name for t in self._tracks.values()):
            raise ValueError(
                f"Track {config.id!r} maps to file name {track.track_name!r}, "
                "which is already in use"
            )
        self._tracks[config.id] = track
        logger.info(
            f"Added {config.content_type.value} track {track.track_name} "
            f"to playlist {self.name}"
        )
        return track.init_name

    def add_fragment(self, track_id: TrackId, duration: float) -> ChunkChangeset:
        return self.get_track(track_id).add_fragment(duration)

    def finish(self, track_id: TrackId) -> None:
        self.get_track(track_id).finish()

    @property
    def finished(self) -> bool:
        """True once every track received end of stream."""
        return bool(self._tracks) and all(t.finished for t in self._tracks.values())

    def from_beginning(self) -> "Playlist":
        """Return a copy whose tracks list every fragment ever added."""
        playlist = copy.copy(self)
        playlist._tracks = {
            track_id: track.from_beginning() for track_id, track in self._tracks.items()
        }
        return playlist

    def all_fragments(self) -> List[str]:
        """Every file ever produced for any track, init files included."""
        return [name for track in self._tracks.values() for name in track.all_fragments()]

    def serialize(self) -> Dict[str, str]:
        return self.manifest_format.serialize(self)
