"""Sink orchestration: the state machine and its serialized entry point."""

from .mailbox import Sink
from .notifications import (
    Cleanup,
    CleanupReady,
    DemandPermit,
    Notification,
    SinkActions,
    TrackPlayable,
)
from .orchestrator import PresentationState, SinkOrchestrator
from .registry import TrackRegistry, TrackState

__all__ = [
    "Cleanup",
    "CleanupReady",
    "DemandPermit",
    "Notification",
    "PresentationState",
    "Sink",
    "SinkActions",
    "SinkOrchestrator",
    "TrackPlayable",
    "TrackRegistry",
    "TrackState",
]
