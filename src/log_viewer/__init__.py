"""Live log/metrics viewer: bounded buffering, filtering and latency stats."""

from .config import AppConfig
from .models import (
    ConnectionState,
    FilterConfig,
    LatencyStats,
    Level,
    LogEvent,
    MetricsSnapshot,
)
from .session import StreamSession

__all__ = [
    "AppConfig",
    "ConnectionState",
    "FilterConfig",
    "LatencyStats",
    "Level",
    "LogEvent",
    "MetricsSnapshot",
    "StreamSession",
]
