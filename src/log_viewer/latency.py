"""Sliding-window latency statistics.

p95 uses a nearest-rank estimator over the current window and re-sorts the
whole window on every sample. The window is small (200 by default) so the
O(n log n) recompute is cheap; an incremental order statistic is only worth
it for much larger windows.
"""

import math

from .models import LatencyStats
from .ring_buffer import RingBuffer

DEFAULT_WINDOW = 200
P95 = 0.95


def nearest_rank(samples: list[float], quantile: float) -> float | None:
    """Pick the sample at index ``floor(quantile * (n - 1))`` of the sorted copy."""
    if not samples:
        return None
    ordered = sorted(samples)
    return ordered[math.floor(quantile * (len(ordered) - 1))]


class LatencyTracker:
    """Tracks the last latency sample and p95 over the most recent samples."""

    def __init__(self, window: int = DEFAULT_WINDOW):
        self._samples: RingBuffer[float] = RingBuffer(window)
        self._stats = LatencyStats()

    def record_sample(self, ms: float) -> LatencyStats:
        """Add one non-negative latency sample and return the updated stats."""
        if isinstance(ms, bool) or not isinstance(ms, (int, float)) or ms < 0:
            raise ValueError(f"latency sample must be a non-negative number, got {ms!r}")
        self._samples.push(ms)
        self._stats = LatencyStats(
            last_value=ms,
            p95=nearest_rank(self._samples.to_list(), P95),
        )
        return self._stats

    @property
    def stats(self) -> LatencyStats:
        return self._stats

    @property
    def sample_count(self) -> int:
        return len(self._samples)
