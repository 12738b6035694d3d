"""View projection contract and a bounded in-memory implementation.

The stream session drives a ViewProjection in two modes:

- Full recompute: ``replace()`` with every buffered event that passes the
  current filters, in buffer order (filter change, resume, clear).
- Incremental append: ``append()`` with one newly accepted event.

Any rendering target (web UI, terminal, log file) implements this contract
without touching buffering or filtering.
"""

import abc
import collections
from typing import Iterable

from .models import LogEvent

HASH_PREVIEW_CHARS = 10


def _format_number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_line(event: LogEvent) -> str:
    """Render one event as a single terminal-style line."""
    parts = [f"{event.timestamp} [{event.event_name}] {event.level.value}"]
    if event.method:
        parts.append(f" {event.method}")
    if event.request_hash:
        parts.append(f" {event.request_hash[:HASH_PREVIEW_CHARS]}…")
    if event.latency_ms is not None:
        parts.append(f" {_format_number(event.latency_ms)}ms")
    if event.note:
        parts.append(f" :: {event.note}")
    return "".join(parts)


def format_latency(value: float | None) -> str:
    """Display string for a latency value (``-`` when unknown)."""
    if value is None:
        return "-"
    return f"{_format_number(value)}ms"


def format_hit_ratio(ratio: int) -> str:
    return f"{ratio}%"


class ViewProjection(abc.ABC):
    """Receiver of projected log events."""

    @abc.abstractmethod
    def replace(self, events: list[LogEvent]) -> None:
        """Replace the whole view with a freshly recomputed list."""

    @abc.abstractmethod
    def append(self, event: LogEvent) -> None:
        """Append one accepted event to the end of the view."""

    @abc.abstractmethod
    def discard(self, event: LogEvent) -> None:
        """Drop ``event`` if displayed; the log buffer just evicted it."""


class LineView(ViewProjection):
    """Keeps at most ``capacity`` projected events, oldest first."""

    def __init__(self, capacity: int = 800):
        self._capacity = capacity
        self._events: collections.deque[LogEvent] = collections.deque(maxlen=capacity)

    def replace(self, events: Iterable[LogEvent]) -> None:
        self._events = collections.deque(events, maxlen=self._capacity)

    def append(self, event: LogEvent) -> None:
        self._events.append(event)

    def discard(self, event: LogEvent) -> None:
        # The view is an in-order subset of the buffer, so an evicted event
        # can only ever be at the head.
        if self._events and self._events[0] is event:
            self._events.popleft()

    @property
    def events(self) -> list[LogEvent]:
        return list(self._events)

    @property
    def lines(self) -> list[str]:
        return [format_line(e) for e in self._events]

    def __len__(self) -> int:
        return len(self._events)
