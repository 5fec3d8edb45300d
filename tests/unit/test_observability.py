"""Unit tests for logging and tracing setup."""

from unittest.mock import patch

import pytest
import structlog

from hlsink.config import SinkSettings
from hlsink.observability import configure_logfire, configure_logging, traced


class TestConfigureLogging:
    """Test structlog configuration."""

    @pytest.mark.parametrize(
        "log_format, renderer",
        [
            ("json", structlog.processors.JSONRenderer),
            ("text", structlog.dev.ConsoleRenderer),
        ],
    )
    def test_renderer_follows_format(self, log_format, renderer):
        settings = SinkSettings(log_format=log_format, log_level="DEBUG")

        with patch("hlsink.observability.structlog.configure") as configure, patch(
            "hlsink.observability.logging.basicConfig"
        ) as basic_config:
            configure_logging(settings)

        processors = configure.call_args.kwargs["processors"]
        assert isinstance(processors[-1], renderer)
        assert basic_config.call_args.kwargs["level"] == 10


class TestConfigureLogfire:
    """Test Logfire configuration."""

    def test_disabled(self):
        with patch("hlsink.observability.logfire.configure") as configure:
            configure_logfire(SinkSettings(logfire_enabled=False))

        configure.assert_not_called()

    def test_enabled(self):
        settings = SinkSettings(
            logfire_enabled=True,
            logfire_service_name="edge-packager",
            logfire_token="secret-token",
        )

        with patch("hlsink.observability.logfire.configure") as configure:
            configure_logfire(settings)

        configure.assert_called_once_with(
            service_name="edge-packager",
            console=False,
            send_to_logfire="if-token-present",
            token="secret-token",
        )


class TestTraced:
    """Test the tracing decorator."""

    @pytest.mark.asyncio
    async def test_records_scalar_arguments(self):
        @traced("sink.write")
        async def write(track_id, payload, duration):
            return "ok"

        with patch("hlsink.observability.logfire.span") as span:
            result = await write("video", b"bytes", 2.0)

        assert result == "ok"
        span.assert_called_once_with("sink.write", track_id="video", duration=2.0)

    @pytest.mark.asyncio
    async def test_skips_self(self):
        class Recorder:
            @traced()
            async def run(self, track_id):
                return track_id

        with patch("hlsink.observability.logfire.span") as span:
            assert await Recorder().run("audio") == "audio"

        name, = span.call_args.args
        assert name.endswith(".run")
        assert span.call_args.kwargs == {"track_id": "audio"}

    @pytest.mark.asyncio
    async def test_marks_span_on_error(self):
        @traced("sink.fail", component="test")
        async def fail():
            raise RuntimeError("boom")

        with patch("hlsink.observability.logfire.span") as span:
            with pytest.raises(RuntimeError):
                await fail()

        span.assert_called_once_with("sink.fail", component="test")
        active = span.return_value.__enter__.return_value
        active.set_attribute.assert_any_call("error", True)
        active.set_attribute.assert_any_call("error_type", "RuntimeError")

    def test_rejects_plain_functions(self):
        with pytest.raises(TypeError):

            @traced()
            def not_async():
                pass
