"""hlsink: an HTTP adaptive streaming sink.

Receives per-track init data and media fragments, keeps a sliding-window
HLS playlist for every track, and writes fragments and manifests to a
pluggable storage backend.
"""

from hlsink.config import SinkSettings, get_settings
from hlsink.exceptions import (
    ChangesetApplyFailed,
    CleanupFailed,
    DemandViolationError,
    InitWriteFailed,
    ManifestWriteFailed,
    SinkClosedError,
    SinkError,
    StorageError,
    TrackAlreadyInitializedError,
    TrackFinishedError,
    UnknownTrackError,
)
from hlsink.factory import SinkFactory, create_orchestrator, create_sink
from hlsink.models import ChunkChangeset, ContentType, TrackConfig
from hlsink.sink import (
    Cleanup,
    CleanupReady,
    DemandPermit,
    Sink,
    SinkActions,
    SinkOrchestrator,
    TrackPlayable,
)

__version__ = "0.1.0"

__all__ = [
    "ChangesetApplyFailed",
    "ChunkChangeset",
    "Cleanup",
    "CleanupFailed",
    "CleanupReady",
    "ContentType",
    "DemandPermit",
    "DemandViolationError",
    "InitWriteFailed",
    "ManifestWriteFailed",
    "Sink",
    "SinkActions",
    "SinkClosedError",
    "SinkError",
    "SinkFactory",
    "SinkOrchestrator",
    "SinkSettings",
    "StorageError",
    "TrackAlreadyInitializedError",
    "TrackConfig",
    "TrackFinishedError",
    "TrackPlayable",
    "UnknownTrackError",
    "create_orchestrator",
    "create_sink",
    "get_settings",
]
