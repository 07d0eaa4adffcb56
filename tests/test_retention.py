from __future__ import annotations

import pytest

from pybustrack.store.retention import RetentionPolicy


def test_no_evictions_at_capacity() -> None:
    policy = RetentionPolicy(max_items=3)

    assert policy.select_evictions([("a", 1), ("b", 2), ("c", 3)]) == []


def test_evicts_oldest_beyond_capacity() -> None:
    policy = RetentionPolicy(max_items=2)

    assert policy.select_evictions([("a", 1), ("b", 3), ("c", 2), ("d", 0)]) == ["a", "d"]


def test_equal_timestamps_keep_input_order() -> None:
    policy = RetentionPolicy(max_items=1)

    assert policy.select_evictions([("first", 7), ("second", 7)]) == ["second"]


def test_default_capacity_is_thirty() -> None:
    assert RetentionPolicy().max_items == 30


def test_rejects_non_positive_capacity() -> None:
    with pytest.raises(ValueError):
        RetentionPolicy(max_items=0)
