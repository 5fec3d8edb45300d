"""Pytest configuration and fixtures."""

from typing import List, Optional, Tuple

import logfire
import pytest

from hlsink.playlist import HLSManifestFormat, Playlist
from hlsink.sink import SinkOrchestrator
from hlsink.storage import InMemoryStorage, ResourceType, Storage, StorageContext


@pytest.fixture(scope="session", autouse=True)
def configure_test_logfire():
    """Keep spans local during tests."""
    logfire.configure(send_to_logfire=False, console=False)


class RecordingBackend(InMemoryStorage):
    """In-memory backend that records calls and fails on demand."""

    def __init__(self):
        super().__init__()
        self.calls: List[Tuple[str, str]] = []
        self._failures: List[Tuple[str, Optional[str], Optional[ResourceType]]] = []

    def fail_on(
        self,
        operation: str,
        *,
        name: Optional[str] = None,
        resource_type: Optional[ResourceType] = None,
    ) -> None:
        self._failures.append((operation, name, resource_type))

    def clear_failures(self) -> None:
        self._failures.clear()

    def stored_names(self) -> List[str]:
        return [name for operation, name in self.calls if operation == "store"]

    def _check(self, operation: str, name: str, context: StorageContext) -> None:
        for rule_operation, rule_name, rule_type in self._failures:
            if (
                rule_operation == operation
                and rule_name in (None, name)
                and rule_type in (None, context.resource_type)
            ):
                raise OSError(f"simulated {operation} failure for {name}")

    async def store(self, name: str, content: bytes, context: StorageContext) -> None:
        self.calls.append(("store", name))
        self._check("store", name, context)
        await super().store(name, content, context)

    async def remove(self, name: str, context: StorageContext) -> None:
        self.calls.append(("remove", name))
        self._check("remove", name, context)
        await super().remove(name, context)


@pytest.fixture
def backend():
    """Create a recording in-memory backend."""
    return RecordingBackend()


@pytest.fixture
def storage(backend):
    """Create storage over the recording backend."""
    return Storage(backend)


@pytest.fixture
def playlist():
    """Create an empty HLS playlist named 'index'."""
    return Playlist("index", HLSManifestFormat())


@pytest.fixture
def orchestrator(playlist, storage):
    """Create an orchestrator with a 5 second window."""
    return SinkOrchestrator(playlist, storage, target_window_duration=5.0)


@pytest.fixture
def persist_orchestrator(playlist, storage):
    """Create an orchestrator with a 5 second window that persists fragments."""
    return SinkOrchestrator(playlist, storage, target_window_duration=5.0, persist=True)
