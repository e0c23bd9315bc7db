"""Tests for the convergence tracker."""

import logging

import pytest

from reachable_nodes.errors import ConvergenceUnknown
from reachable_nodes.propagate.convergence import ConvergenceTracker


def test_unchanged_round_is_converged() -> None:
    tracker = ConvergenceTracker(3, expected_partitions=2)
    tracker.record(0, 0)
    tracker.record(1, 0)

    assert tracker.total() == 0
    assert not tracker.changed()


def test_any_change_means_changed() -> None:
    tracker = ConvergenceTracker(1, expected_partitions=3)
    tracker.record(0, 0)
    tracker.record(1, 4)
    tracker.record(2, 0)

    assert tracker.total() == 4
    assert tracker.changed()


def test_unreadable_count_fails_open(caplog: pytest.LogCaptureFixture) -> None:
    tracker = ConvergenceTracker(2, expected_partitions=2)
    tracker.record(0, 0)
    tracker.record(1, None)

    with pytest.raises(ConvergenceUnknown, match="partition"):
        tracker.total()

    with caplog.at_level(logging.WARNING):
        assert tracker.changed()
    assert "assuming changed" in caplog.text


def test_missing_partition_fails_open() -> None:
    tracker = ConvergenceTracker(2, expected_partitions=2)
    tracker.record(0, 0)

    with pytest.raises(ConvergenceUnknown, match="did not report"):
        tracker.total()
    assert tracker.changed()
