"""Example of writing a live audio/video HLS presentation with hlsink.

This example demonstrates how to:
1. Build a sink from environment settings (HLSINK_* variables)
2. Feed init data and fragments for two tracks
3. React to playable and cleanup notifications
4. Continue a track after a storage failure

Run it and serve the output directory with any static file server, e.g.
``python -m http.server -d output``, then open ``index.m3u8`` in a player.
"""

import asyncio

import structlog

from hlsink import (
    CleanupReady,
    ContentType,
    SinkError,
    StorageError,
    TrackPlayable,
    create_sink,
    get_settings,
)
from hlsink.observability import configure_logfire, configure_logging

logger = structlog.get_logger(__name__)

FRAGMENT_DURATION = 2.0


async def handle_notification(notification):
    """Log notifications as a hosting runtime would."""
    if isinstance(notification, TrackPlayable):
        logger.info("Track is playable", track_id=notification.track_id)
    elif isinstance(notification, CleanupReady):
        logger.info("Cleanup available", files=len(notification.cleanup.names))


async def feed_track(sink, track_id, content_type, fragment_count):
    """Simulate an upstream encoder producing fixed-length fragments."""
    await sink.track_init(track_id, content_type, b"\x00" * 32)
    permit = (await sink.stream_start(track_id)).demand

    for index in range(fragment_count):
        payload = f"{track_id}:{index}".encode()
        try:
            actions = await sink.write(track_id, payload, FRAGMENT_DURATION, permit)
            permit = actions.demand
        except StorageError as e:
            logger.warning("Fragment lost, continuing", track_id=track_id, error=str(e))
            permit = await sink.request_demand(track_id)

        # Real time pacing, shortened for the demo
        await asyncio.sleep(FRAGMENT_DURATION / 20)

    await sink.stream_end(track_id)


async def main():
    settings = get_settings()
    configure_logging(settings)
    configure_logfire(settings)

    sink = create_sink(settings, on_notification=handle_notification)

    async with sink:
        await asyncio.gather(
            feed_track(sink, "video", ContentType.VIDEO, 10),
            feed_track(sink, "audio", ContentType.AUDIO, 10),
        )
        actions = await sink.teardown()

    logger.info("Presentation finished", stats=sink.stats)

    # Keep files around when persisting; otherwise remove them
    if not settings.persist:
        try:
            await actions.notifications[0].cleanup.execute()
        except SinkError as e:
            logger.error("Cleanup failed", error=str(e))


if __name__ == "__main__":
    asyncio.run(main())
