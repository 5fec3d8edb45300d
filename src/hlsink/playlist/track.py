"""Per-track fragment list with sliding-window retention."""

import copy
import hashlib
import logging
import math
import re
from collections import deque
from typing import Deque, List, Tuple

from hlsink.exceptions import TrackFinishedError
from hlsink.models import ChunkChangeset, ContentType, Fragment, TrackConfig, TrackId

logger = logging.getLogger(__name__)

# Tolerates float accumulation error when comparing window sums
_WINDOW_EPSILON = 1e-9

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]+")


def make_track_name(track_id: TrackId) -> str:
    """Build a file-name-safe name for a track id.

    String ids that are already safe are used verbatim. Anything else,
    including non-string ids such as ``1`` whose text equals another id,
    is sanitized and suffixed with a short digest of its repr.
    """
    raw = str(track_id)
    safe = _UNSAFE_CHARS.sub("_", raw).strip("_")
    if isinstance(track_id, str) and safe == raw:
        return safe
    digest = hashlib.sha1(repr(track_id).encode()).hexdigest()[:8]
    return f"{safe or 'track'}-{digest}"


class Track:
    """Fragments of one track, split into the live window and stale history.

    Every fragment ever added is remembered: the live ones in
    ``fragments`` and the ones trimmed off the window in
    ``stale_fragments``. Only the live ones are described by the manifest.
    """

    def __init__(self, config: TrackConfig):
        self.config = config
        self.track_name = make_track_name(config.id)
        self.init_name = (
            f"{config.content_type.value}_init_{self.track_name}{config.init_extension}"
        )
        self.window_duration = 0.0
        self.target_duration = config.target_fragment_duration
        self.finished = False
        self._fragments: Deque[Fragment] = deque()
        self._stale_fragments: Deque[Fragment] = deque()
        self._next_sequence_number = 0

    @property
    def id(self) -> TrackId:
        return self.config.id

    @property
    def content_type(self) -> ContentType:
        return self.config.content_type

    @property
    def fragments(self) -> Tuple[Fragment, ...]:
        """Fragments in the live window, oldest first."""
        return tuple(self._fragments)

    @property
    def stale_fragments(self) -> Tuple[Fragment, ...]:
        """Fragments trimmed off the live window, oldest first."""
        return tuple(self._stale_fragments)

    @property
    def media_sequence(self) -> int:
        """Sequence number of the first fragment in the live window."""
        if self._fragments:
            return self._fragments[0].sequence_number
        return self._next_sequence_number

    def add_fragment(self, duration: float) -> ChunkChangeset:
        """Append a fragment and trim the window.

        Returns:
            Changeset naming the new fragment file and, unless the track
            persists stale fragments, the files trimmed off the window.

        Raises:
            TrackFinishedError: If the track already received end of stream
        """
        if self.finished:
            raise TrackFinishedError(self.id)
        if not math.isfinite(duration) or duration < 0:
            raise ValueError(
                f"Fragment duration must be finite and non-negative, got {duration}"
            )

        sequence_number = self._next_sequence_number
        name = (
            f"{self.content_type.value}_segment_{sequence_number}_"
            f"{self.track_name}{self.config.fragment_extension}"
        )
        self._next_sequence_number += 1
        self._fragments.append(Fragment(name, duration, sequence_number))
        self.window_duration += duration
        self.target_duration = max(self.target_duration, duration)

        stale = self._pop_stale_fragments()
        self._stale_fragments.extend(stale)

        if stale:
            logger.debug(
                f"Track {self.track_name}: trimmed {len(stale)} fragment(s), "
                f"window now {self.window_duration:.3f}s"
            )

        to_remove = () if self.config.persist else tuple(f.name for f in stale)
        return ChunkChangeset(to_add=name, to_remove=to_remove)

    def _pop_stale_fragments(self) -> List[Fragment]:
        target = self.config.target_window_duration
        if target is None:
            return []

        stale = []
        while (
            len(self._fragments) > 1
            and self.window_duration - self._fragments[0].duration
            >= target - _WINDOW_EPSILON
        ):
            fragment = self._fragments.popleft()
            self.window_duration -= fragment.duration
            stale.append(fragment)
        return stale

    def finish(self) -> None:
        self.finished = True

    def from_beginning(self) -> "Track":
        """Return a copy whose live window holds every fragment ever added."""
        track = copy.copy(self)
        track._fragments = deque([*self._stale_fragments, *self._fragments])
        track._stale_fragments = deque()
        track.window_duration = sum(f.duration for f in track._fragments)
        return track

    def all_fragments(self) -> List[str]:
        """Init file followed by every fragment file ever produced, in order."""
        return [
            self.init_name,
            *(f.name for f in self._stale_fragments),
            *(f.name for f in self._fragments),
        ]

    def __repr__(self) -> str:
        return (
            f"Track(id={self.id!r}, live={len(self._fragments)}, "
            f"stale={len(self._stale_fragments)}, finished={self.finished})"
        )
