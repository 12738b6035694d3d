"""
Pytest Configuration and Fixtures - Live Log Viewer

Provides shared event builders and a recording view projection.
"""

import json

import pytest

from log_viewer.models import Level, LogEvent
from log_viewer.projection import LineView, ViewProjection


class RecordingView(ViewProjection):
    """ViewProjection that records every call for assertions."""

    def __init__(self):
        self.calls: list[tuple] = []
        self.inner = LineView()

    def replace(self, events) -> None:
        events = list(events)
        self.calls.append(("replace", events))
        self.inner.replace(events)

    def append(self, event) -> None:
        self.calls.append(("append", event))
        self.inner.append(event)

    def discard(self, event) -> None:
        self.calls.append(("discard", event))
        self.inner.discard(event)

    def kinds(self) -> list[str]:
        return [c[0] for c in self.calls]


@pytest.fixture
def make_event():
    """Factory for LogEvents; ``index`` ends up in the event name."""

    def _make(index: int = 0, level: Level = Level.INFO, **kwargs) -> LogEvent:
        return LogEvent(
            timestamp=kwargs.pop("timestamp", f"2024-01-01T00:00:{index % 60:02d}Z"),
            event_name=kwargs.pop("event_name", f"evt-{index}"),
            level=level,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_payload():
    """Factory for raw SSE ``log`` payloads; keys set to None are omitted."""

    def _make(**overrides) -> str:
        data = {"ts": "2024-01-01T00:00:00Z", "event": "RPC", "level": "INFO"}
        data.update(overrides)
        return json.dumps({k: v for k, v in data.items() if v is not None})

    return _make


@pytest.fixture
def recording_view() -> RecordingView:
    return RecordingView()
