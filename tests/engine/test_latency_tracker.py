import pytest

from engine.latency_tracker import LatencyTracker


def test_capacity_three_scenario():
    tracker = LatencyTracker(capacity=3)
    for sample in (5, 1, 9):
        tracker.push(sample)

    assert tracker.min == 1
    assert tracker.max == 9
    assert tracker.average() == 5.0

    # Overwrites the oldest sample (5); min/max are running values
    tracker.push(2)

    assert tracker.samples() == [1, 9, 2]
    assert tracker.average() == 4.0
    assert tracker.min == 1
    assert tracker.max == 9


def test_max_tracks_strictly_greater_samples():
    # A sample raises max only when it is strictly greater than the current
    # max. Older releases inverted this comparison and would report 3 here;
    # the corrected behaviour is intended.
    tracker = LatencyTracker(capacity=4)
    for sample in (3, 7, 5, 8):
        tracker.push(sample)

    assert tracker.max == 8
    assert tracker.min == 3


def test_average_uses_filled_slots_only():
    tracker = LatencyTracker(capacity=32)
    tracker.push(4.0)
    tracker.push(6.0)

    assert tracker.count == 2
    assert tracker.average() == 5.0


def test_empty_tracker():
    tracker = LatencyTracker()

    assert tracker.capacity == 32
    assert tracker.count == 0
    assert tracker.min is None
    assert tracker.max is None
    assert tracker.average() is None
    assert tracker.samples() == []


def test_count_saturates_at_capacity():
    tracker = LatencyTracker(capacity=2)
    for sample in range(5):
        tracker.push(sample)

    assert tracker.count == 2
    assert tracker.samples() == [3, 4]


def test_as_dict():
    tracker = LatencyTracker(capacity=2)
    tracker.push(1.5)

    assert tracker.as_dict() == {
        "min_ms": 1.5,
        "max_ms": 1.5,
        "avg_ms": 1.5,
        "samples": 1,
        "capacity": 2,
    }


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        LatencyTracker(capacity=0)
