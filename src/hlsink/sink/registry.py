"""Per-track lifecycle bookkeeping."""

from enum import Enum
from typing import Dict, Set

from hlsink.models import TrackId


class TrackState(str, Enum):
    UNINITIALIZED = "uninitialized"
    REGISTERED = "registered"
    STREAMING = "streaming"
    FINISHED = "finished"


class TrackRegistry:
    """Tracks lifecycle state and which tracks still owe a playable notice."""

    def __init__(self) -> None:
        self._states: Dict[TrackId, TrackState] = {}
        self._awaiting_first_fragment: Set[TrackId] = set()

    def register(self, track_id: TrackId) -> None:
        """Mark a track as awaiting its first playable notification. Idempotent."""
        self._awaiting_first_fragment.add(track_id)

    def consume_if_awaiting(self, track_id: TrackId) -> bool:
        """Return True exactly once per registered track."""
        if track_id in self._awaiting_first_fragment:
            self._awaiting_first_fragment.discard(track_id)
            return True
        return False

    def is_awaiting(self, track_id: TrackId) -> bool:
        return track_id in self._awaiting_first_fragment

    def state_of(self, track_id: TrackId) -> TrackState:
        return self._states.get(track_id, TrackState.UNINITIALIZED)

    def mark_initialized(self, track_id: TrackId) -> None:
        if self.state_of(track_id) == TrackState.UNINITIALIZED:
            self._states[track_id] = TrackState.REGISTERED

    def mark_streaming(self, track_id: TrackId) -> None:
        if self.state_of(track_id) != TrackState.FINISHED:
            self._states[track_id] = TrackState.STREAMING

    def mark_finished(self, track_id: TrackId) -> None:
        self._states[track_id] = TrackState.FINISHED
        self._awaiting_first_fragment.discard(track_id)
