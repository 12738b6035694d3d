"""Periodic metrics snapshot polling.

Polling is independent of the event stream: it keeps running while the
stream is disconnected, and a failed poll simply leaves the previous
snapshot on display.
"""

import asyncio
import logging
from typing import Callable

import aiohttp

from .errors import PollError
from .models import MetricsSnapshot

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 2.0


class SnapshotPoller:
    """Fetches ``MetricsSnapshot``s from the proxy's metrics endpoint."""

    def __init__(
        self,
        http: aiohttp.ClientSession,
        url: str,
        interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float = 5.0,
    ):
        self._http = http
        self._url = url
        self._interval = interval
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self.failures = 0

    async def poll(self) -> MetricsSnapshot | None:
        """Fetch one snapshot. Returns None on any failure, never raises."""
        try:
            return await self._fetch()
        except (
            aiohttp.ClientError,
            asyncio.TimeoutError,
            ValueError,
            ArithmeticError,
            RecursionError,
            PollError,
        ) as e:
            # ContentTypeError is a ClientError; json.JSONDecodeError is a ValueError;
            # RecursionError comes from deeply nested bodies
            self.failures += 1
            logger.debug("Metrics poll failed: %s: %s", type(e).__name__, e)
            return None

    async def _fetch(self) -> MetricsSnapshot:
        async with self._http.get(self._url, timeout=self._timeout) as resp:
            resp.raise_for_status()
            data = await resp.json(content_type=None)
        return MetricsSnapshot.from_dict(data)

    async def run(self, on_snapshot: Callable[[MetricsSnapshot], None]) -> None:
        """Poll immediately, then every ``interval`` seconds until cancelled."""
        logger.info("Polling metrics from %s every %.1fs", self._url, self._interval)
        while True:
            snapshot = await self.poll()
            if snapshot is not None:
                on_snapshot(snapshot)
            await asyncio.sleep(self._interval)
