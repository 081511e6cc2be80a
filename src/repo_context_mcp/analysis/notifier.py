import asyncio
import contextlib
from logging import Logger
from types import TracebackType
from typing import Any, Protocol, Self

from fastmcp.utilities.logging import get_logger

from repo_context_mcp.models.events import EventEnvelope, NostrEvent

DEFAULT_QUEUE_SIZE = 100
DEFAULT_WRITE_TIMEOUT = 10.0
DEFAULT_DRAIN_TIMEOUT = 5.0


class NotificationChannel(Protocol):
    """An open channel to the client, such as a Starlette WebSocket."""

    async def send_json(self, data: Any) -> None: ...  # pyright: ignore[reportAny]


class SerializedChannel:
    """Wraps a channel shared by several analyses so that only one write is in flight at a time."""

    def __init__(self, channel: NotificationChannel):
        self.channel: NotificationChannel = channel
        self._lock: asyncio.Lock = asyncio.Lock()

    async def send_json(self, data: Any) -> None:  # pyright: ignore[reportAny]
        async with self._lock:
            await self.channel.send_json(data)


class EventNotifier:
    """Sends an event to the client whenever a file is viewed.

    Events are queued and written by a background task, so a slow or broken channel never holds up the analysis.
    Write failures are logged and otherwise ignored.
    """

    def __init__(
        self,
        channel: NotificationChannel | None = None,
        queue_size: int = DEFAULT_QUEUE_SIZE,
        write_timeout: float | None = DEFAULT_WRITE_TIMEOUT,
        drain_timeout: float = DEFAULT_DRAIN_TIMEOUT,
        logger: Logger | None = None,
    ):
        self.channel: NotificationChannel | None = channel
        self.write_timeout: float | None = write_timeout
        self.drain_timeout: float = drain_timeout
        self.logger: Logger = logger or get_logger(name=__name__)

        self._queue: asyncio.Queue[EventEnvelope] = asyncio.Queue(maxsize=queue_size)
        self._worker: asyncio.Task[None] | None = None

    async def __aenter__(self) -> Self:
        self._ensure_worker()
        return self

    async def __aexit__(
        self, exc_type: type[BaseException] | None, exc_value: BaseException | None, traceback: TracebackType | None
    ) -> None:
        await self.aclose()

    def _ensure_worker(self) -> None:
        if self.channel is not None and self._worker is None:
            self._worker = asyncio.create_task(self._drain(), name="event-notifier")

    def notify(self, path: str) -> None:
        """Queue a viewed-file event for `path`."""

        if self.channel is None:
            self.logger.info("Notification channel is not set")
            return

        self._ensure_worker()

        envelope: EventEnvelope = EventEnvelope.wrap(NostrEvent.viewed_file(path))

        try:
            self._queue.put_nowait(envelope)
        except asyncio.QueueFull:
            self.logger.warning(f"Notification queue is full, dropping viewed file event for {path}")

    async def _drain(self) -> None:
        while True:
            envelope: EventEnvelope = await self._queue.get()
            try:
                await self._write(envelope)
            finally:
                self._queue.task_done()

    async def _write(self, envelope: EventEnvelope) -> None:
        if self.channel is None:
            return

        try:
            async with asyncio.timeout(self.write_timeout):
                await self.channel.send_json(envelope.model_dump(mode="json"))
        except Exception:
            self.logger.exception("Error writing viewed file event to the notification channel")

    async def aclose(self) -> None:
        """Wait for queued events to be written, then stop the background task."""

        if self._worker is None:
            return

        try:
            async with asyncio.timeout(self.drain_timeout):
                await self._queue.join()
        except TimeoutError:
            self.logger.warning(f"Dropping {self._queue.qsize()} viewed file events that could not be written in time")

        _ = self._worker.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._worker

        self._worker = None
