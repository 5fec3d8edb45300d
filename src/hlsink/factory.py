"""Builds sinks from settings.

Manifest formats and storage bindings are selected by name, so a deployment
only changes ``HLSINK_MANIFEST_FORMAT`` / ``HLSINK_STORAGE_BACKEND`` to
switch them.
"""

import logging
from typing import Callable, Dict, Optional

from hlsink.config import SinkSettings, get_settings
from hlsink.playlist import HLSManifestFormat, ManifestFormat, Playlist
from hlsink.sink import Sink, SinkOrchestrator
from hlsink.sink.mailbox import NotificationCallback
from hlsink.storage import (
    FileStorage,
    InMemoryStorage,
    S3Storage,
    Storage,
    StorageBackend,
)

logger = logging.getLogger(__name__)


def _file_backend(settings: SinkSettings) -> StorageBackend:
    return FileStorage(settings.storage_directory)


def _s3_backend(settings: SinkSettings) -> StorageBackend:
    secret = settings.aws_secret_access_key
    return S3Storage(
        bucket_name=settings.s3_bucket,
        prefix=settings.s3_prefix,
        access_key_id=settings.aws_access_key_id,
        secret_access_key=secret.get_secret_value() if secret else None,
        endpoint_url=settings.s3_endpoint_url,
        region_name=settings.s3_region,
    )


def _memory_backend(settings: SinkSettings) -> StorageBackend:
    return InMemoryStorage()


class SinkFactory:
    """Factory for orchestrators and sinks."""

    _MANIFEST_FORMATS: Dict[str, Callable[[], ManifestFormat]] = {
        "hls": HLSManifestFormat,
    }

    _STORAGE_BACKENDS: Dict[str, Callable[[SinkSettings], StorageBackend]] = {
        "file": _file_backend,
        "s3": _s3_backend,
        "memory": _memory_backend,
    }

    @classmethod
    def create_manifest_format(cls, name: str) -> ManifestFormat:
        format_class = cls._MANIFEST_FORMATS.get(name.lower())
        if not format_class:
            raise ValueError(f"Unsupported manifest format: {name}")
        return format_class()

    @classmethod
    def create_backend(cls, settings: SinkSettings) -> StorageBackend:
        builder = cls._STORAGE_BACKENDS.get(settings.storage_backend)
        if not builder:
            raise ValueError(f"Unsupported storage backend: {settings.storage_backend}")
        return builder(settings)

    @classmethod
    def create_orchestrator(
        cls,
        settings: Optional[SinkSettings] = None,
        backend: Optional[StorageBackend] = None,
    ) -> SinkOrchestrator:
        """Create an orchestrator for one presentation.

        Args:
            settings: Sink settings (defaults to the cached environment settings)
            backend: Storage backend to use instead of the configured binding

        Returns:
            SinkOrchestrator: A fresh orchestrator with an empty playlist

        Raises:
            ValueError: If the manifest format or storage binding is unknown
        """
        settings = settings or get_settings()
        manifest_format = cls.create_manifest_format(settings.manifest_format)
        if backend is None:
            backend = cls.create_backend(settings)

        logger.info(
            f"Creating orchestrator: manifest={settings.manifest_name}, "
            f"format={settings.manifest_format}, "
            f"storage={type(backend).__name__}"
        )

        return SinkOrchestrator(
            Playlist(settings.manifest_name, manifest_format),
            Storage(backend),
            target_window_duration=settings.target_window_duration,
            persist=settings.persist,
            target_fragment_duration=settings.target_fragment_duration,
            init_extension=settings.init_extension,
            fragment_extension=settings.fragment_extension,
        )

    @classmethod
    def create_sink(
        cls,
        settings: Optional[SinkSettings] = None,
        backend: Optional[StorageBackend] = None,
        on_notification: Optional[NotificationCallback] = None,
    ) -> Sink:
        """Create a (not yet started) ``Sink`` around a fresh orchestrator."""
        orchestrator = cls.create_orchestrator(settings, backend)
        return Sink(orchestrator, on_notification=on_notification)


def create_orchestrator(
    settings: Optional[SinkSettings] = None,
    backend: Optional[StorageBackend] = None,
) -> SinkOrchestrator:
    """Convenience wrapper around ``SinkFactory.create_orchestrator``."""
    return SinkFactory.create_orchestrator(settings, backend)


def create_sink(
    settings: Optional[SinkSettings] = None,
    backend: Optional[StorageBackend] = None,
    on_notification: Optional[NotificationCallback] = None,
) -> Sink:
    """Convenience wrapper around ``SinkFactory.create_sink``."""
    return SinkFactory.create_sink(settings, backend, on_notification)
