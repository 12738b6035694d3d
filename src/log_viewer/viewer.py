"""Top-level orchestrator for the live log viewer.

Wires the stream client, the metrics poller and the web server to a single
dispatcher that owns all session state.
"""

import asyncio
import logging

import aiohttp

from .config import AppConfig
from .dispatcher import Dispatcher
from .poller import SnapshotPoller
from .session import StreamSession
from .transport import StreamClient
from .web.events import EventBus
from .web.server import WebServer
from .web.view import BroadcastLineView

logger = logging.getLogger(__name__)


class LogViewer:
    """Owns the session, its dispatcher and the tasks that feed it."""

    def __init__(self, config: AppConfig):
        self.config = config
        self.event_bus = EventBus()
        self.view = BroadcastLineView(self.event_bus, capacity=config.log_capacity)
        self.session = StreamSession(
            self.view,
            log_capacity=config.log_capacity,
            latency_window=config.latency_window,
        )
        self.dispatcher = Dispatcher(self.session, self.event_bus)
        self._http: aiohttp.ClientSession | None = None
        self._tasks: list[asyncio.Task] = []

    async def start(self) -> None:
        """Start the dispatcher, then the producers feeding it."""
        self._http = aiohttp.ClientSession()
        dispatcher = self.dispatcher

        stream = StreamClient(
            self._http,
            self.config.stream_url,
            on_open=lambda: dispatcher.post("stream_opened"),
            on_message=lambda data: dispatcher.post("stream_message", data),
            on_error=lambda error: dispatcher.post("stream_failed", error),
            reconnect_interval=self.config.reconnect_interval_seconds,
            max_backoff=self.config.reconnect_max_backoff_seconds,
        )
        poller = SnapshotPoller(
            self._http,
            self.config.metrics_url,
            interval=self.config.poll_interval_seconds,
            timeout=self.config.request_timeout_seconds,
        )

        self._tasks = [
            asyncio.create_task(dispatcher.run(), name="dispatcher"),
            asyncio.create_task(stream.run(), name="stream"),
            asyncio.create_task(
                poller.run(lambda snapshot: dispatcher.post("snapshot", snapshot)),
                name="poller",
            ),
        ]
        logger.info("Streaming events from %s", self.config.stream_url)

    async def shutdown(self) -> None:
        """Cancel all tasks. Buffered events are memory-only and not drained."""
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks.clear()
        if self._http is not None:
            await self._http.close()
            self._http = None
        logger.info("Viewer stopped")

    def create_web_server(self) -> WebServer:
        return WebServer(self, self.config.host, self.config.port)
