"""Integration tests: live presentations written to disk through a Sink."""

import asyncio

import m3u8
import pytest

from hlsink.config import SinkSettings
from hlsink.factory import create_sink
from hlsink.models import ContentType
from hlsink.sink import CleanupReady, TrackPlayable


def settings_for(directory, **overrides):
    return SinkSettings(
        storage_backend="file",
        storage_directory=str(directory),
        target_window_duration=5.0,
        **overrides,
    )


async def feed_track(sink, track_id, content_type, count, duration=2.0):
    """Push init data and ``count`` fragments for one track."""
    await sink.track_init(track_id, content_type, f"{track_id}-init".encode())
    permit = (await sink.stream_start(track_id)).demand
    for index in range(count):
        actions = await sink.write(
            track_id, f"{track_id}-{index}".encode(), duration, permit
        )
        permit = actions.demand
    await sink.stream_end(track_id)


@pytest.mark.asyncio
async def test_single_track_live_window(tmp_path):
    """Four 2 s fragments with a 5 s window, then teardown and cleanup."""
    out = tmp_path / "hls"
    notifications = []
    sink = create_sink(settings_for(out), on_notification=notifications.append)

    async with sink:
        await feed_track(sink, "video", ContentType.VIDEO, 4)

        manifest = m3u8.loads((out / "index_video.m3u8").read_text())
        assert manifest.media_sequence == 1
        assert [s.uri for s in manifest.segments] == [
            "video_segment_1_video.m4s",
            "video_segment_2_video.m4s",
            "video_segment_3_video.m4s",
        ]
        assert manifest.is_endlist
        assert not (out / "video_segment_0_video.m4s").exists()
        assert (out / "video_segment_3_video.m4s").read_bytes() == b"video-3"

        await sink.teardown()

    assert notifications[0] == TrackPlayable("video")
    cleanup_ready = notifications[-1]
    assert isinstance(cleanup_ready, CleanupReady)
    assert cleanup_ready.cleanup.names == (
        "video_init_video.mp4",
        "video_segment_0_video.m4s",
        "video_segment_1_video.m4s",
        "video_segment_2_video.m4s",
        "video_segment_3_video.m4s",
    )

    await cleanup_ready.cleanup.execute()

    assert sorted(p.name for p in out.iterdir()) == ["index.m3u8", "index_video.m3u8"]


@pytest.mark.asyncio
async def test_persisted_audio_video_presentation(tmp_path):
    """Two interleaved tracks in persist mode become a full VOD at teardown."""
    out = tmp_path / "hls"
    notifications = []
    sink = create_sink(settings_for(out, persist=True), on_notification=notifications.append)

    async with sink:
        await asyncio.gather(
            feed_track(sink, "video", ContentType.VIDEO, 6),
            feed_track(sink, "audio", ContentType.AUDIO, 6),
        )

        live = m3u8.loads((out / "index_video.m3u8").read_text())
        assert live.media_sequence > 0

        await sink.teardown()

    playable = [n.track_id for n in notifications if isinstance(n, TrackPlayable)]
    assert sorted(playable) == ["audio", "video"]

    for track_id in ("video", "audio"):
        vod = m3u8.loads((out / f"index_{track_id}.m3u8").read_text())
        assert vod.media_sequence == 0
        assert len(vod.segments) == 6
        assert vod.is_endlist
        assert all((out / segment.uri).exists() for segment in vod.segments)

    master = m3u8.loads((out / "index.m3u8").read_text())
    assert [p.uri for p in master.playlists] == ["index_video.m3u8"]
    assert [m.uri for m in master.media] == ["index_audio.m3u8"]

    cleanup = notifications[-1].cleanup
    assert len(cleanup.names) == 14
    await cleanup.execute()
    assert not any(p.suffix in (".m4s", ".mp4") for p in out.iterdir())
