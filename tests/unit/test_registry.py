"""Unit tests for the track registry."""

from hlsink.sink import TrackRegistry, TrackState


class TestTrackRegistry:
    """Test playable bookkeeping and lifecycle states."""

    def test_consume_if_awaiting_is_true_once(self):
        registry = TrackRegistry()
        registry.register("video")

        assert registry.consume_if_awaiting("video")
        assert not registry.consume_if_awaiting("video")

    def test_register_is_idempotent(self):
        registry = TrackRegistry()
        registry.register("video")
        registry.register("video")

        assert registry.consume_if_awaiting("video")
        assert not registry.is_awaiting("video")

    def test_unregistered_track_is_not_awaiting(self):
        registry = TrackRegistry()

        assert not registry.consume_if_awaiting("video")

    def test_lifecycle(self):
        registry = TrackRegistry()
        assert registry.state_of("video") == TrackState.UNINITIALIZED

        registry.mark_initialized("video")
        assert registry.state_of("video") == TrackState.REGISTERED

        registry.mark_streaming("video")
        registry.mark_initialized("video")
        assert registry.state_of("video") == TrackState.STREAMING

        registry.mark_finished("video")
        registry.mark_streaming("video")
        assert registry.state_of("video") == TrackState.FINISHED

    def test_finished_track_no_longer_awaits(self):
        registry = TrackRegistry()
        registry.register("video")

        registry.mark_finished("video")

        assert not registry.consume_if_awaiting("video")
