"""Event bus for pushing view updates to WebSocket clients."""

import asyncio
import logging

logger = logging.getLogger(__name__)

# Marker queued for a client that overflowed; its mirror must be rebuilt
RESYNC = "resync"


class EventBus:
    """Simple pub/sub using a bounded asyncio.Queue per connected client."""

    def __init__(self, client_queue_size: int = 256):
        self._clients: set[asyncio.Queue] = set()
        self._client_queue_size = client_queue_size

    def subscribe(self) -> asyncio.Queue:
        """Add a new client. Returns a queue to read events from."""
        q: asyncio.Queue = asyncio.Queue(maxsize=self._client_queue_size)
        self._clients.add(q)
        logger.info("EventBus client subscribed (%d total)", len(self._clients))
        return q

    def unsubscribe(self, q: asyncio.Queue) -> None:
        self._clients.discard(q)
        logger.info("EventBus client unsubscribed (%d remaining)", len(self._clients))

    def emit(self, event: str, data: dict) -> None:
        """Push an event to all connected clients.

        A client whose queue is full loses everything pending and gets a
        single RESYNC marker instead, so it can reload the full view.
        """
        if not self._clients:
            return
        for q in list(self._clients):
            try:
                q.put_nowait({"event": event, "data": data})
            except asyncio.QueueFull:
                dropped = drain(q) + 1
                logger.warning(
                    "Slow client dropped %d event(s) (queue full); resyncing", dropped,
                )
                q.put_nowait({"event": RESYNC, "data": {}})


def drain(q: asyncio.Queue) -> int:
    """Discard every queued item. Returns how many were dropped."""
    count = 0
    while not q.empty():
        q.get_nowait()
        count += 1
    return count
