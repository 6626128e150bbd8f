from __future__ import annotations

from collections.abc import Hashable, Iterable
from random import Random
from typing import Any, TypeVar

from eventflow.schema.nodes import DEFAULT_WEIGHT


K = TypeVar("K", bound=Hashable)


def normalize_weight(weight: Any) -> int:
    """Positive integer weights pass through; anything else counts as the default."""
    if isinstance(weight, bool) or not isinstance(weight, int) or weight <= 0:
        return DEFAULT_WEIGHT
    return weight


def _expand_pool(items: Iterable[tuple[K, Any]]) -> list[K]:
    pool: list[K] = []
    for key, weight in items:
        pool.extend([key] * normalize_weight(weight))
    return pool


def pick_one(items: Iterable[tuple[K, Any]], rng: Random) -> K | None:
    pool = _expand_pool(items)
    if not pool:
        return None
    return pool[rng.randrange(len(pool))]


def pick_n(items: Iterable[tuple[K, Any]], n: int, rng: Random) -> list[K]:
    """Weighted sampling without replacement: draw, then drop every copy of the drawn key."""
    pool = _expand_pool(items)
    picked: list[K] = []
    while len(picked) < n and pool:
        key = pool[rng.randrange(len(pool))]
        picked.append(key)
        pool = [k for k in pool if k != key]
    return picked
