"""
LatencyTracker - fixed-capacity ring buffer of render latency samples.

Keeps the N most recent samples (fewer before the first fill) plus a running
minimum and maximum over every sample ever pushed. Used for telemetry only.
"""

from __future__ import annotations

from typing import List, Optional


class LatencyTracker:
    """
    Ring buffer with running min/max and an on-demand average.

    Example:
        tracker = LatencyTracker(capacity=3)
        for ms in (5, 1, 9):
            tracker.push(ms)
        tracker.min, tracker.max, tracker.average()   # 1, 9, 5.0
    """

    def __init__(self, capacity: int = 32):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._buffer: List[float] = [0.0] * capacity
        self._cursor = 0
        self._count = 0
        self._min: Optional[float] = None
        self._max: Optional[float] = None

    def push(self, sample: float) -> None:
        """Store a sample, overwriting the oldest one once the buffer is full."""
        self._buffer[self._cursor] = sample
        self._cursor = (self._cursor + 1) % self._capacity
        self._count = min(self._count + 1, self._capacity)

        if self._min is None or sample < self._min:
            self._min = sample
        if self._max is None or sample > self._max:
            self._max = sample

    @property
    def min(self) -> Optional[float]:
        return self._min

    @property
    def max(self) -> Optional[float]:
        return self._max

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def count(self) -> int:
        """Number of filled slots (saturates at capacity)."""
        return self._count

    def average(self) -> Optional[float]:
        """Mean over filled slots only; None before the first sample."""
        if self._count == 0:
            return None
        return sum(self.samples()) / self._count

    def samples(self) -> List[float]:
        """Current buffer contents, oldest first."""
        if self._count < self._capacity:
            return self._buffer[:self._count]
        return self._buffer[self._cursor:] + self._buffer[:self._cursor]

    def as_dict(self) -> dict:
        return {
            "min_ms": self._min,
            "max_ms": self._max,
            "avg_ms": self.average(),
            "samples": self._count,
            "capacity": self._capacity,
        }

    def __repr__(self) -> str:
        return f"LatencyTracker(count={self._count}/{self._capacity}, min={self._min}, max={self._max})"
