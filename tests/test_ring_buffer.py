"""
Ring Buffer Tests - Live Log Viewer

Tests for bounded FIFO retention and eviction.
"""

import pytest

from log_viewer.ring_buffer import RingBuffer


class TestRingBuffer:
    """Tests for RingBuffer."""

    def test_push_below_capacity_evicts_nothing(self):
        """Test pushes within capacity return None and keep order."""
        buf = RingBuffer(3)
        assert buf.push("a") is None
        assert buf.push("b") is None
        assert buf.to_list() == ["a", "b"]

    def test_push_over_capacity_returns_evicted_head(self):
        """Test each overflowing push evicts exactly the oldest item."""
        buf = RingBuffer(2)
        buf.push(1)
        buf.push(2)
        assert buf.push(3) == 1
        assert buf.push(4) == 2
        assert buf.to_list() == [3, 4]

    def test_length_never_exceeds_capacity(self):
        """Test length stays bounded for any number of pushes."""
        buf = RingBuffer(5)
        for i in range(37):
            buf.push(i)
            assert len(buf) <= 5

    def test_keeps_last_capacity_items(self):
        """Test pushing capacity + k items keeps the last capacity in order."""
        buf = RingBuffer(10)
        for i in range(10 + 7):
            buf.push(i)
        assert buf.to_list() == list(range(7, 17))

    def test_log_buffer_scenario_801_events(self):
        """Test 801 pushes into capacity 800 evict only index 0."""
        buf = RingBuffer(800)
        evicted = [buf.push(i) for i in range(801)]
        assert buf.to_list() == list(range(1, 801))
        assert [e for e in evicted if e is not None] == [0]

    def test_capacity_one(self):
        """Test a capacity-1 buffer always holds the latest item."""
        buf = RingBuffer(1)
        assert buf.push("x") is None
        assert buf.push("y") == "x"
        assert buf.to_list() == ["y"]

    def test_to_list_is_a_copy(self):
        """Test mutating the returned list does not affect the buffer."""
        buf = RingBuffer(3)
        buf.push(1)
        items = buf.to_list()
        items.append(99)
        assert buf.to_list() == [1]

    def test_clear(self):
        """Test clear empties the buffer but keeps capacity."""
        buf = RingBuffer(2)
        buf.push(1)
        buf.push(2)
        buf.clear()
        assert len(buf) == 0
        assert buf.capacity == 2
        assert buf.push(3) is None

    def test_iteration_order(self):
        """Test iterating yields oldest first."""
        buf = RingBuffer(3)
        for i in range(5):
            buf.push(i)
        assert list(buf) == [2, 3, 4]

    @pytest.mark.parametrize("capacity", [0, -1])
    def test_invalid_capacity(self, capacity):
        """Test capacity below 1 is rejected."""
        with pytest.raises(ValueError):
            RingBuffer(capacity)
