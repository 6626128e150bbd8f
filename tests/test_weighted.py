from __future__ import annotations

from collections import Counter
from random import Random

from eventflow.simulation.weighted import normalize_weight, pick_n, pick_one


def test_empty_inputs_do_not_raise() -> None:
    rng = Random(0)
    assert pick_one([], rng) is None
    assert pick_n([], 3, rng) == []


def test_normalize_weight() -> None:
    assert normalize_weight(7) == 7
    assert normalize_weight(0) == 50
    assert normalize_weight(-4) == 50
    assert normalize_weight(None) == 50
    assert normalize_weight("12") == 50
    assert normalize_weight(True) == 50


def test_pick_one_is_reproducible_with_seed() -> None:
    items = [("a", 10), ("b", 20), ("c", 30)]
    first = [pick_one(items, Random(123)) for _ in range(5)]
    second = [pick_one(items, Random(123)) for _ in range(5)]
    assert first == second


def test_pick_one_follows_weights() -> None:
    rng = Random(7)
    counts = Counter(pick_one([("heavy", 90), ("light", 10)], rng) for _ in range(2000))
    assert 1650 < counts["heavy"] < 1950


def test_nonpositive_weight_counts_as_default() -> None:
    rng = Random(11)
    counts = Counter(pick_one([("zero", 0), ("fifty", 50)], rng) for _ in range(2000))
    assert 850 < counts["zero"] < 1150


def test_pick_n_returns_unique_keys() -> None:
    rng = Random(3)
    for _ in range(50):
        picked = pick_n([("a", 1), ("b", 100), ("c", 5)], 2, rng)
        assert len(picked) == 2
        assert len(set(picked)) == 2
        assert set(picked) <= {"a", "b", "c"}


def test_pick_n_stops_when_pool_exhausted() -> None:
    picked = pick_n([("a", 1), ("b", 2)], 5, Random(0))
    assert sorted(picked) == ["a", "b"]


def test_pick_n_zero_requested() -> None:
    assert pick_n([("a", 1)], 0, Random(0)) == []
