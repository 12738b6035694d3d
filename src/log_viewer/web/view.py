"""LineView that also broadcasts every change over the event bus."""

from ..models import LogEvent
from ..projection import LineView, format_line
from .events import EventBus


def event_payload(event: LogEvent) -> dict:
    """Wire form of a projected event, with its rendered line."""
    return {**event.to_dict(), "line": format_line(event)}


class BroadcastLineView(LineView):
    """Projection consumed by WebSocket clients.

    Clients mirror the view: ``log_reset`` carries the full recomputed list,
    ``log_append`` one new line. Clients bound their own line count to the
    same capacity, so evictions need no message of their own.
    """

    def __init__(self, event_bus: EventBus, capacity: int = 800):
        super().__init__(capacity)
        self._event_bus = event_bus

    def replace(self, events) -> None:
        super().replace(events)
        self._event_bus.emit("log_reset", {
            "events": [event_payload(e) for e in self.events],
        })

    def append(self, event: LogEvent) -> None:
        super().append(event)
        self._event_bus.emit("log_append", event_payload(event))
