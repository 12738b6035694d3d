"""Server-Sent Events client for the proxy's ``/events`` stream.

The proxy replays its recent history and then streams ``log`` events, with a
``:keepalive`` comment every 10s. The client reports connection changes and
raw ``log`` payloads through callbacks and reconnects on its own; decoding
the payloads is the stream session's job.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Callable

import aiohttp

from .errors import TransportError

logger = logging.getLogger(__name__)

LOG_EVENT = "log"


@dataclass(frozen=True)
class SseMessage:
    event: str
    data: str


class SseDecoder:
    """Incremental SSE line decoder (event/data fields, comments, blank-line dispatch)."""

    def __init__(self):
        self._event = ""
        self._data: list[str] = []

    def feed(self, line: str) -> SseMessage | None:
        """Consume one line; return a message when a blank line completes one."""
        line = line.rstrip("\r\n")
        if not line:
            return self._dispatch()
        if line.startswith(":"):
            return None

        field, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]
        if field == "event":
            self._event = value
        elif field == "data":
            self._data.append(value)
        # id/retry and unknown fields are ignored
        return None

    def _dispatch(self) -> SseMessage | None:
        event, data = self._event or "message", self._data
        self._event, self._data = "", []
        if not data:
            return None
        return SseMessage(event=event, data="\n".join(data))


class StreamClient:
    """Keeps an SSE connection open, reconnecting with exponential backoff."""

    def __init__(
        self,
        http: aiohttp.ClientSession,
        url: str,
        *,
        on_open: Callable[[], None],
        on_message: Callable[[str], None],
        on_error: Callable[[TransportError], None],
        reconnect_interval: float = 3.0,
        max_backoff: float = 30.0,
        read_timeout: float = 60.0,
    ):
        self._http = http
        self._url = url
        self._on_open = on_open
        self._on_message = on_message
        self._on_error = on_error
        self._reconnect_interval = reconnect_interval
        self._max_backoff = max_backoff
        # Keep-alives arrive every 10s, so a silent socket for this long is dead
        self._timeout = aiohttp.ClientTimeout(total=None, sock_read=read_timeout)
        self._opened = False

    async def run(self) -> None:
        """Connect, stream, and reconnect forever (until cancelled)."""
        attempt = 0
        while True:
            try:
                await self._stream()
                error = TransportError("event stream closed by server")
            except TransportError as e:
                error = e
            except (aiohttp.ClientError, asyncio.TimeoutError, OSError, ValueError) as e:
                # ValueError: aiohttp rejects over-long lines
                error = TransportError(f"{type(e).__name__}: {e}")

            self._on_error(error)
            if self._opened:
                # A connection that actually opened resets the backoff
                attempt = 0
                self._opened = False

            wait = min(self._reconnect_interval * (2 ** attempt), self._max_backoff)
            jitter = random.uniform(0, wait * 0.1)
            logger.info(
                "Event stream unavailable (%s); reconnecting in %.1fs",
                error, wait + jitter,
            )
            await asyncio.sleep(wait + jitter)
            attempt += 1

    async def _stream(self) -> None:
        headers = {"Accept": "text/event-stream", "Cache-Control": "no-cache"}
        async with self._http.get(self._url, headers=headers, timeout=self._timeout) as resp:
            if resp.status != 200:
                raise TransportError(f"unexpected status {resp.status}")
            self._opened = True
            self._on_open()

            decoder = SseDecoder()
            async for raw in resp.content:
                message = decoder.feed(raw.decode("utf-8", errors="replace"))
                if message is not None and message.event == LOG_EVENT:
                    self._on_message(message.data)
