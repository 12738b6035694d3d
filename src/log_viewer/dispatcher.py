"""Single-loop command dispatcher.

The stream client, the metrics poller and user actions never touch session
state directly. They queue commands on one channel and a single task applies
them in arrival order, each to completion, so no handler ever observes a
half-updated buffer.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .models import MetricsSnapshot
from .projection import format_hit_ratio, format_latency
from .session import StreamSession

if TYPE_CHECKING:
    from .web.events import EventBus

logger = logging.getLogger(__name__)


@dataclass
class Command:
    kind: str
    payload: Any = None
    done: asyncio.Future | None = None


class Dispatcher:
    """Applies queued commands to a StreamSession and the latest snapshot."""

    def __init__(self, session: StreamSession, event_bus: "EventBus | None" = None):
        self.session = session
        self.snapshot = MetricsSnapshot()
        self._event_bus = event_bus
        # Unbounded: pausing must never push back on the stream
        self._inbox: asyncio.Queue[Command] = asyncio.Queue()
        self._handlers = {
            "stream_opened": self._stream_opened,
            "stream_message": self._stream_message,
            "stream_failed": self._stream_failed,
            "snapshot": self._snapshot,
            "set_filters": self._set_filters,
            "pause": self._pause,
            "resume": self._resume,
            "toggle_pause": self._toggle_pause,
            "clear": self._clear,
        }

    def post(self, kind: str, payload: Any = None) -> None:
        """Queue a command without waiting for it to be applied."""
        self._check_kind(kind)
        self._inbox.put_nowait(Command(kind, payload))

    async def request(self, kind: str, payload: Any = None) -> Any:
        """Queue a command and wait for its result (errors propagate)."""
        self._check_kind(kind)
        done = asyncio.get_running_loop().create_future()
        self._inbox.put_nowait(Command(kind, payload, done))
        return await done

    def _check_kind(self, kind: str) -> None:
        if kind not in self._handlers:
            raise ValueError(f"Unknown command: {kind}")

    @property
    def pending(self) -> int:
        return self._inbox.qsize()

    async def run(self) -> None:
        """Apply commands forever (until cancelled)."""
        while True:
            command = await self._inbox.get()
            self.apply(command)

    def drain(self) -> int:
        """Apply every command already queued. Returns how many were applied."""
        count = 0
        while not self._inbox.empty():
            self.apply(self._inbox.get_nowait())
            count += 1
        return count

    def apply(self, command: Command) -> None:
        handler = self._handlers[command.kind]
        try:
            result = handler(command.payload)
        except Exception as e:
            if command.done is not None:
                if not command.done.done():
                    command.done.set_exception(e)
            else:
                logger.exception("Command %s failed", command.kind)
            return
        if command.done is not None and not command.done.done():
            command.done.set_result(result)

    # -- Handlers (synchronous; run to completion) --

    def _stream_opened(self, _payload) -> None:
        self.session.on_open()
        self._emit("connection", {"state": self.session.state.value})

    def _stream_failed(self, error) -> None:
        self.session.on_error(error)
        self._emit("connection", {"state": self.session.state.value})

    def _stream_message(self, payload) -> None:
        event = self.session.handle_message(payload)
        if event is not None and event.latency_ms is not None:
            self._emit("stats", self.stats_payload())

    def _snapshot(self, snapshot: MetricsSnapshot) -> None:
        self.snapshot = snapshot
        self._emit("metrics", self.metrics_payload())

    def _set_filters(self, changes: dict) -> dict:
        self.session.set_filters(**changes)
        return self._state_changed()

    def _pause(self, _payload) -> dict:
        self.session.pause()
        return self._state_changed()

    def _resume(self, _payload) -> dict:
        self.session.resume()
        return self._state_changed()

    def _toggle_pause(self, _payload) -> dict:
        self.session.toggle_pause()
        return self._state_changed()

    def _clear(self, _payload) -> dict:
        self.session.clear()
        return self._state_changed()

    def _state_changed(self) -> dict:
        state = self.state_payload()
        self._emit("state", state)
        return state

    def _emit(self, event: str, data: dict) -> None:
        if self._event_bus is not None:
            self._event_bus.emit(event, data)

    # -- Read models --

    def stats_payload(self) -> dict:
        stats = self.session.stats
        return {
            "last_latency_ms": stats.last_value,
            "p95_ms": stats.p95,
            "last_latency": format_latency(stats.last_value),
            "p95": format_latency(stats.p95),
        }

    def metrics_payload(self) -> dict:
        return {
            **self.snapshot.to_dict(),
            "hit_ratio_display": format_hit_ratio(self.snapshot.hit_ratio),
        }

    def state_payload(self) -> dict:
        session = self.session
        return {
            "connection": session.state.value,
            "paused": session.paused,
            "filters": session.filters.to_dict(),
            "buffered": len(session.log_buffer),
            "dropped_messages": session.dropped_messages,
            "latency": self.stats_payload(),
            "metrics": self.metrics_payload(),
        }
