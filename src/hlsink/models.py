"""Value objects shared by the playlist model, storage and the sink."""

from dataclasses import dataclass
from enum import Enum
from typing import Hashable, Optional, Tuple

TrackId = Hashable


class ContentType(str, Enum):
    """Kind of media carried by a track."""

    AUDIO = "audio"
    VIDEO = "video"
    MUXED = "muxed"


@dataclass(frozen=True)
class TrackConfig:
    """Per-track configuration handed to the playlist when a track is added."""

    id: TrackId
    content_type: ContentType
    init_extension: str = ".mp4"
    fragment_extension: str = ".m4s"
    target_window_duration: Optional[float] = 5.0  # None = infinite
    target_fragment_duration: float = 0.0
    persist: bool = False


@dataclass(frozen=True)
class Fragment:
    """A fragment as the playlist remembers it: a name and a duration."""

    name: str
    duration: float
    sequence_number: int


@dataclass(frozen=True)
class ChunkChangeset:
    """Storage changes resulting from one playlist mutation.

    ``to_add`` is the name the incoming payload must be stored under, or
    ``None`` when the mutation produced no new file. ``to_remove`` lists
    stale fragment files to delete.
    """

    to_add: Optional[str] = None
    to_remove: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return self.to_add is None and not self.to_remove
