"""Unit tests for /src/go/history.py"""

import pytest

from src.go.history import PositionHistory


def test_append_and_contains() -> None:
    history = PositionHistory()
    history.append("position-1")
    assert "position-1" in history
    assert "position-2" not in history
    assert len(history) == 1


def test_oldest_positions_are_evicted_first() -> None:
    history = PositionHistory(capacity=3)
    for fingerprint in ["a", "b", "c", "d"]:
        history.append(fingerprint)

    assert history.to_list() == ["b", "c", "d"]
    assert "a" not in history
    assert "d" in history


def test_loading_more_than_capacity_keeps_the_newest() -> None:
    history = PositionHistory.from_list(["a", "b", "c", "d"], capacity=2)
    assert history.to_list() == ["c", "d"]
    assert "b" not in history


def test_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        PositionHistory(capacity=0)
