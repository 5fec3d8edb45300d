"""Unit tests for building sinks from settings."""

from unittest.mock import Mock, patch

import pytest
from pydantic import SecretStr

from hlsink.config import SinkSettings
from hlsink.factory import SinkFactory, create_orchestrator, create_sink
from hlsink.playlist import HLSManifestFormat
from hlsink.sink import Sink, SinkOrchestrator
from hlsink.storage import FileStorage, InMemoryStorage, S3Storage


class TestSinkFactory:
    """Test SinkFactory bindings."""

    def test_memory_orchestrator(self):
        settings = SinkSettings(
            storage_backend="memory",
            manifest_name="live",
            target_window_duration=None,
            persist=True,
            target_fragment_duration=4.0,
        )

        orchestrator = create_orchestrator(settings)

        assert isinstance(orchestrator, SinkOrchestrator)
        assert isinstance(orchestrator.storage.backend, InMemoryStorage)
        assert isinstance(orchestrator.playlist.manifest_format, HLSManifestFormat)
        assert orchestrator.playlist.name == "live"
        assert orchestrator.target_window_duration is None
        assert orchestrator.persist is True
        assert orchestrator.target_fragment_duration == 4.0

    def test_file_backend(self, tmp_path):
        settings = SinkSettings(storage_backend="file", storage_directory=str(tmp_path / "hls"))

        orchestrator = create_orchestrator(settings)

        assert isinstance(orchestrator.storage.backend, FileStorage)
        assert orchestrator.storage.backend.directory == tmp_path / "hls"

    def test_s3_backend(self):
        settings = SinkSettings(
            storage_backend="s3",
            s3_bucket="media",
            s3_prefix="live",
            s3_region="eu-west-1",
            aws_access_key_id="AKIA",
            aws_secret_access_key=SecretStr("shh"),
        )

        with patch("hlsink.storage.s3.boto3.client") as client:
            orchestrator = create_orchestrator(settings)

        backend = orchestrator.storage.backend
        assert isinstance(backend, S3Storage)
        assert backend.bucket_name == "media"
        assert backend.prefix == "live"
        client.assert_called_once_with(
            "s3",
            aws_access_key_id="AKIA",
            aws_secret_access_key="shh",
            endpoint_url=None,
            region_name="eu-west-1",
        )

    def test_backend_override(self):
        backend = InMemoryStorage()

        orchestrator = SinkFactory.create_orchestrator(SinkSettings(), backend=backend)

        assert orchestrator.storage.backend is backend

    def test_unknown_manifest_format(self):
        settings = SinkSettings(storage_backend="memory", manifest_format="dash")

        with pytest.raises(ValueError, match="Unsupported manifest format"):
            create_orchestrator(settings)

    def test_create_sink(self):
        callback = Mock()

        sink = create_sink(SinkSettings(storage_backend="memory"), on_notification=callback)

        assert isinstance(sink, Sink)
        assert sink.on_notification is callback
        assert not sink.is_running
