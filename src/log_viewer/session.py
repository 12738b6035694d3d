"""Stream session: connection state, buffering and projection driving.

The session owns the log buffer, the latency tracker and the filter
configuration. Every method runs to completion without awaiting, so the
dispatcher can call them from a single loop without locking.
"""

import logging

from .errors import DecodeError
from .filters import matches
from .latency import DEFAULT_WINDOW, LatencyTracker
from .models import ConnectionState, FilterConfig, LatencyStats, LogEvent
from .projection import ViewProjection
from .ring_buffer import RingBuffer

logger = logging.getLogger(__name__)

DEFAULT_LOG_CAPACITY = 800


class StreamSession:
    """Receives stream messages and keeps buffer, stats and view in sync."""

    def __init__(
        self,
        view: ViewProjection,
        log_capacity: int = DEFAULT_LOG_CAPACITY,
        latency_window: int = DEFAULT_WINDOW,
        filters: FilterConfig | None = None,
    ):
        self._view = view
        self.log_buffer: RingBuffer[LogEvent] = RingBuffer(log_capacity)
        self.latency = LatencyTracker(latency_window)
        self.filters = filters if filters is not None else FilterConfig()
        self.state = ConnectionState.DISCONNECTED
        self.paused = False
        self.dropped_messages = 0

    # -- Connection lifecycle --

    def on_open(self) -> None:
        """The transport opened (or re-opened) the stream."""
        if self.state is not ConnectionState.CONNECTED:
            logger.info("Event stream connected")
        self.state = ConnectionState.CONNECTED

    def on_error(self, error: Exception | None = None) -> None:
        """The transport lost the stream. Buffered state is kept."""
        if self.state is not ConnectionState.DISCONNECTED:
            logger.warning("Event stream disconnected: %s", error or "unknown error")
        self.state = ConnectionState.DISCONNECTED

    @property
    def connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    # -- Ingest --

    def handle_message(self, payload: str | bytes) -> LogEvent | None:
        """Decode and ingest one stream message; malformed ones are dropped."""
        try:
            event = LogEvent.from_payload(payload)
        except DecodeError as e:
            self.dropped_messages += 1
            logger.debug("Dropping malformed log message: %s", e)
            return None
        self.ingest(event)
        return event

    def ingest(self, event: LogEvent) -> bool:
        """Buffer ``event``, update stats, and append it to the view if visible.

        Returns True when the event was appended to the view.
        """
        evicted = self.log_buffer.push(event)
        if evicted is not None:
            self._view.discard(evicted)

        if event.latency_ms is not None:
            self.latency.record_sample(event.latency_ms)

        # Paused: buffering and stats continue, display does not
        if self.paused:
            return False
        if not matches(event, self.filters):
            return False
        self._view.append(event)
        return True

    @property
    def stats(self) -> LatencyStats:
        return self.latency.stats

    # -- User actions --

    def set_filters(self, **changes) -> None:
        """Update filter fields and recompute the view."""
        self.filters.update(**changes)
        logger.debug("Filters changed: %s", changes)
        self.refresh_view()

    def pause(self) -> None:
        self.paused = True

    def resume(self) -> None:
        """Leave paused mode and reconcile everything buffered meanwhile."""
        self.paused = False
        self.refresh_view()

    def toggle_pause(self) -> bool:
        """Flip the pause flag. Returns the new value."""
        if self.paused:
            self.resume()
        else:
            self.pause()
        return self.paused

    def clear(self) -> None:
        """Empty the log buffer and the view. Latency stats are kept."""
        self.log_buffer.clear()
        self._view.replace([])
        logger.info("Log buffer cleared")

    # -- Projection --

    def visible_events(self) -> list[LogEvent]:
        """Every buffered event that passes the current filters, oldest first."""
        return [e for e in self.log_buffer if matches(e, self.filters)]

    def refresh_view(self) -> None:
        self._view.replace(self.visible_events())
