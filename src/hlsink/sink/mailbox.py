"""Serialized entry point into a sink orchestrator.

All events of a presentation, whatever track they belong to, go through one
queue and are handled one at a time by a single consumer task, in arrival
order. A caller awaiting an event gets the operation's ``SinkActions`` or
its exception; a failed event never stops the consumer.
"""

import asyncio
import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Union

import structlog

from hlsink.models import ContentType, TrackId
from hlsink.sink.notifications import DemandPermit, Notification, SinkActions
from hlsink.sink.orchestrator import SinkOrchestrator

logger = structlog.get_logger(__name__)

NotificationCallback = Callable[[Notification], Union[None, Awaitable[None]]]


@dataclass
class _Envelope:
    operation: str
    run: Callable[[], Awaitable[SinkActions]]
    future: "asyncio.Future[SinkActions]"


class Sink:
    """Mailbox wrapping a ``SinkOrchestrator``.

    Usage::

        async with Sink(orchestrator) as sink:
            await sink.track_init("video", ContentType.VIDEO, init_bytes)
            actions = await sink.stream_start("video")
            actions = await sink.write("video", payload, 2.0, actions.demand)
    """

    def __init__(
        self,
        orchestrator: SinkOrchestrator,
        on_notification: Optional[NotificationCallback] = None,
        max_pending: int = 0,
    ):
        """Initialize the sink.

        Args:
            orchestrator: State machine all events are delivered to
            on_notification: Called with every emitted notification, in order
            max_pending: Queue bound (0 for unbounded)
        """
        self.orchestrator = orchestrator
        self.on_notification = on_notification
        self._queue: "asyncio.Queue[Optional[_Envelope]]" = asyncio.Queue(
            maxsize=max_pending
        )
        self._consumer: Optional[asyncio.Task] = None
        self._stopping = False
        self._processed = 0
        self._failed = 0

    async def start(self) -> None:
        if self._consumer is not None:
            logger.warning("Sink is already running")
            return
        self._consumer = asyncio.create_task(self._consume())

    async def stop(self) -> None:
        """Process every queued event, then stop the consumer."""
        if self._consumer is None or self._stopping:
            return
        # Events submitted from here on are refused instead of queued
        # behind the stop marker
        self._stopping = True
        try:
            await self._queue.put(None)
            await self._consumer
        finally:
            self._consumer = None
            self._stopping = False
            self._reject_pending()
        logger.info("Sink stopped", processed=self._processed, failed=self._failed)

    async def __aenter__(self) -> "Sink":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    @property
    def is_running(self) -> bool:
        return self._consumer is not None and not self._stopping

    @property
    def stats(self) -> Dict[str, int]:
        return {
            "queued": self._queue.qsize(),
            "processed": self._processed,
            "failed": self._failed,
        }

    async def track_init(
        self,
        track_id: TrackId,
        content_type: Union[ContentType, str],
        init_payload: bytes,
    ) -> SinkActions:
        return await self._submit(
            "track_init",
            lambda: self.orchestrator.on_track_init(track_id, content_type, init_payload),
        )

    async def stream_start(self, track_id: TrackId) -> SinkActions:
        return await self._submit(
            "stream_start", lambda: self.orchestrator.on_stream_start(track_id)
        )

    async def write(
        self,
        track_id: TrackId,
        payload: bytes,
        duration: float,
        permit: DemandPermit,
    ) -> SinkActions:
        return await self._submit(
            "write",
            lambda: self.orchestrator.on_fragment(track_id, payload, duration, permit),
        )

    async def stream_end(self, track_id: TrackId) -> SinkActions:
        return await self._submit(
            "stream_end", lambda: self.orchestrator.on_stream_end(track_id)
        )

    async def teardown(self) -> SinkActions:
        return await self._submit("teardown", self.orchestrator.on_teardown)

    async def request_demand(self, track_id: TrackId) -> DemandPermit:
        """Ask for a fresh permit, e.g. to continue a track after a failure."""

        async def run() -> SinkActions:
            return SinkActions(demand=self.orchestrator.request_demand(track_id))

        actions = await self._submit("request_demand", run)
        return actions.demand

    async def _submit(
        self, operation: str, run: Callable[[], Awaitable[SinkActions]]
    ) -> SinkActions:
        if not self.is_running:
            raise RuntimeError("Sink is not running")

        future = asyncio.get_running_loop().create_future()
        await self._queue.put(_Envelope(operation, run, future))
        return await future

    def _reject_pending(self) -> None:
        while not self._queue.empty():
            envelope = self._queue.get_nowait()
            self._queue.task_done()
            if envelope is not None and not envelope.future.done():
                envelope.future.set_exception(RuntimeError("Sink is not running"))

    async def _consume(self) -> None:
        while True:
            envelope = await self._queue.get()
            try:
                if envelope is None:
                    return
                await self._process(envelope)
            finally:
                self._queue.task_done()

    async def _process(self, envelope: _Envelope) -> None:
        try:
            actions = await envelope.run()
        except Exception as e:
            self._failed += 1
            logger.warning(
                "Sink operation failed",
                operation=envelope.operation,
                error_type=type(e).__name__,
                error=str(e),
            )
            if not envelope.future.done():
                envelope.future.set_exception(e)
            return

        self._processed += 1
        for notification in actions.notifications:
            await self._notify(notification)

        if not envelope.future.done():
            envelope.future.set_result(actions)

    async def _notify(self, notification: Notification) -> None:
        if self.on_notification is None:
            return
        try:
            result = self.on_notification(notification)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception(
                "Error in notification callback", event_type=notification.event_type
            )
