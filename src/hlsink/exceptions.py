"""Sink-specific exceptions.

Storage failures are runtime faults: they are raised to the caller of the
orchestrator operation that hit them, and the sink stays usable afterwards.
The remaining exceptions flag misuse of the sink (events out of order,
unknown tracks) and indicate a bug in the hosting runtime.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ErrorContext:
    """Structured error context using dataclass."""

    track_id: Optional[Any] = None
    resource: Optional[str] = None
    operation: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        result = {}
        if self.track_id is not None:
            result["track_id"] = self.track_id
        if self.resource:
            result["resource"] = self.resource
        if self.operation:
            result["operation"] = self.operation
        if self.extra:
            result.update(self.extra)
        return result


class SinkError(Exception):
    """Base exception for all sink errors."""

    def __init__(self, message: str, *, context: Optional[ErrorContext] = None):
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()

    def __str__(self) -> str:
        parts = [self.message]

        if self.context.track_id is not None:
            parts.append(f"[track:{self.context.track_id}]")

        if self.context.resource:
            parts.append(f"Resource: {self.context.resource}")

        return " - ".join(parts)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"context={self.context!r})"
        )


class StorageError(SinkError):
    """Raised when the storage backend fails to persist or delete a resource."""

    operation = "storage"


class InitWriteFailed(StorageError):
    """Storing a track's init segment failed."""

    operation = "store_init"


class ChangesetApplyFailed(StorageError):
    """Writing a fragment or deleting stale fragments failed."""

    operation = "apply_chunk_changeset"


class ManifestWriteFailed(StorageError):
    """Writing one of the manifest files failed."""

    operation = "store_manifests"


class CleanupFailed(StorageError):
    """Deleting the presentation's files after teardown failed."""

    operation = "cleanup"


class UnknownTrackError(SinkError):
    """Raised when an event references a track that was never initialized."""

    def __init__(self, track_id: Any):
        super().__init__(
            "Track has not been initialized",
            context=ErrorContext(track_id=track_id),
        )
        self.track_id = track_id


class TrackAlreadyInitializedError(SinkError):
    """Raised when init metadata arrives twice for the same track."""

    def __init__(self, track_id: Any):
        super().__init__(
            "Track is already initialized",
            context=ErrorContext(track_id=track_id),
        )
        self.track_id = track_id


class TrackFinishedError(SinkError):
    """Raised when a fragment arrives for a track after its end of stream."""

    def __init__(self, track_id: Any):
        super().__init__(
            "Track has already finished",
            context=ErrorContext(track_id=track_id),
        )
        self.track_id = track_id


class DemandViolationError(SinkError):
    """Raised when a fragment is sent without the track's outstanding permit."""

    def __init__(self, track_id: Any, permit: Any = None):
        super().__init__(
            "Fragment sent without an outstanding demand permit",
            context=ErrorContext(track_id=track_id, extra={"permit": permit}),
        )
        self.track_id = track_id
        self.permit = permit


class SinkClosedError(SinkError):
    """Raised when an event arrives after the presentation was torn down."""

    def __init__(self, operation: str):
        super().__init__(
            "Sink is closed",
            context=ErrorContext(operation=operation),
        )
