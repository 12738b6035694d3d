"""Data models shared by the viewer core.

LogEvent and MetricsSnapshot are decoded from the JSON documents the proxy
emits (one SSE ``log`` message, one ``/metrics`` response). FilterConfig is
the only mutable model and is owned by the stream session.
"""

import json
import math
from dataclasses import asdict, dataclass, fields
from enum import Enum

from .errors import DecodeError, PollError


class Level(str, Enum):
    """Severity of a log event."""

    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class ConnectionState(str, Enum):
    """Lifecycle of the event stream connection."""

    CONNECTED = "CONNECTED"
    DISCONNECTED = "DISCONNECTED"


def _optional_str(obj: dict, key: str) -> str | None:
    value = obj.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise DecodeError(f"'{key}' must be a string, got {type(value).__name__}")
    return value


def _is_number(value) -> bool:
    # bool is an int subclass but never a valid counter or latency
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_valid_amount(value) -> bool:
    """Non-negative number that fits in a float."""
    if not _is_number(value):
        return False
    try:
        return math.isfinite(value) and value >= 0
    except OverflowError:
        # ints too large to convert to float
        return False


@dataclass(frozen=True)
class LogEvent:
    """One structured log record received from the event stream."""

    timestamp: str
    event_name: str
    level: Level
    method: str | None = None
    request_hash: str | None = None
    latency_ms: float | None = None
    note: str | None = None

    @classmethod
    def from_payload(cls, payload: str | bytes) -> "LogEvent":
        """Decode one SSE ``log`` data field.

        Raises DecodeError for anything that is not a JSON object with a
        string ``event`` and a known ``level``.
        """
        try:
            obj = json.loads(payload)
        except (ValueError, RecursionError) as e:
            # ValueError covers JSONDecodeError, UnicodeDecodeError and the
            # int-digit limit; RecursionError covers deeply nested documents
            raise DecodeError(f"invalid JSON: {type(e).__name__}") from e
        return cls.from_dict(obj)

    @classmethod
    def from_dict(cls, obj) -> "LogEvent":
        """Build a LogEvent from an already-parsed JSON value."""
        if not isinstance(obj, dict):
            raise DecodeError(f"expected a JSON object, got {type(obj).__name__}")

        event_name = obj.get("event")
        if not isinstance(event_name, str):
            raise DecodeError("missing or invalid 'event'")

        try:
            level = Level(obj.get("level"))
        except ValueError as e:
            raise DecodeError(f"unknown level {obj.get('level')!r}") from e

        latency = obj.get("latency_ms")
        if latency is not None:
            if not _is_valid_amount(latency):
                raise DecodeError(f"invalid latency_ms {latency!r}")

        return cls(
            timestamp=_optional_str(obj, "ts") or "",
            event_name=event_name,
            level=level,
            method=_optional_str(obj, "method"),
            request_hash=_optional_str(obj, "request_hash"),
            latency_ms=latency,
            note=_optional_str(obj, "note"),
        )

    def to_dict(self) -> dict:
        """Wire shape, omitting absent optional fields."""
        data = {
            "ts": self.timestamp,
            "event": self.event_name,
            "level": self.level.value,
            "method": self.method,
            "request_hash": self.request_hash,
            "latency_ms": self.latency_ms,
            "note": self.note,
        }
        return {k: v for k, v in data.items() if v is not None}


@dataclass
class FilterConfig:
    """User-controlled filter state, re-read on every evaluation."""

    show_info: bool = True
    show_warn: bool = True
    show_error: bool = True
    method_substring: str = ""
    hash_substring: str = ""

    def shows(self, level: Level) -> bool:
        """True when the toggle for ``level`` is on."""
        if level is Level.INFO:
            return self.show_info
        if level is Level.WARN:
            return self.show_warn
        return self.show_error

    def update(self, **changes) -> None:
        """Apply a partial update, validating every field before mutating."""
        names = {f.name for f in fields(self)}
        for name, value in changes.items():
            if name not in names:
                raise ValueError(f"Unknown filter field: {name}")
            expected = bool if name.startswith("show_") else str
            if not isinstance(value, expected):
                raise TypeError(f"{name} must be {expected.__name__}")
        for name, value in changes.items():
            setattr(self, name, value)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class LatencyStats:
    """Last observed latency and p95 over the sample window."""

    last_value: float | None = None
    p95: float | None = None


_SNAPSHOT_KEYS = ("requests_total", "unique_request_hashes", "cache_hits", "cache_misses")


@dataclass(frozen=True)
class MetricsSnapshot:
    """Counters reported by the proxy's ``/metrics`` endpoint."""

    requests_total: int = 0
    unique_request_hashes: int = 0
    cache_hits: int = 0
    cache_misses: int = 0

    @classmethod
    def from_dict(cls, obj) -> "MetricsSnapshot":
        """Parse a metrics response; missing or null counters default to 0."""
        if not isinstance(obj, dict):
            raise PollError(f"expected a JSON object, got {type(obj).__name__}")
        values = {}
        for key in _SNAPSHOT_KEYS:
            value = obj.get(key)
            if value is None:
                value = 0
            if not _is_valid_amount(value):
                raise PollError(f"invalid {key}: {value!r}")
            values[key] = int(value)
        return cls(**values)

    @property
    def hit_ratio(self) -> int:
        """Cache hit percentage, rounded half up; 0 when there were no lookups."""
        total = self.cache_hits + self.cache_misses
        if total <= 0:
            return 0
        return math.floor(100 * self.cache_hits / total + 0.5)

    def to_dict(self) -> dict:
        return {**asdict(self), "hit_ratio": self.hit_ratio}
