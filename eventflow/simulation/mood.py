from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from random import Random

from eventflow.schema.mood import MOOD_MAX, MOOD_MIN, MoodConfig, MoodTier
from eventflow.schema.nodes import EventData, Node
from eventflow.schema.results import PromptPart
from eventflow.simulation.weighted import pick_one


DEFAULT_DELTA_MIN = -10
DEFAULT_DELTA_MAX = 10
NEUTRAL_TIER_ID = "neutral"


@dataclass(frozen=True)
class MoodStep:
    mood: int | None
    tag: str | None = None
    tier: MoodTier | None = None


def clamp(value: int, lo: int = MOOD_MIN, hi: int = MOOD_MAX) -> int:
    return max(lo, min(hi, value))


def init_mood(config: MoodConfig | None, rng: Random, incoming: int | None = None) -> int | None:
    if incoming is not None:
        return incoming
    if config is None:
        return None
    lo, hi = config.initial_mood_range.min, config.initial_mood_range.max
    if lo > hi:
        lo, hi = hi, lo
    return clamp(rng.randint(lo, hi))


def tier_of(mood: int, tiers: Sequence[MoodTier]) -> MoodTier | None:
    """Half-open lookup; the extremes always land in the outermost tiers."""
    if not tiers:
        return None
    ordered = sorted(tiers, key=lambda t: t.min)
    if mood >= MOOD_MAX:
        return max(ordered, key=lambda t: t.max)
    if mood <= MOOD_MIN:
        return ordered[0]
    for tier in ordered:
        if tier.contains(mood):
            return tier
    # Gap in the configured bands.
    for tier in ordered:
        if tier.id == NEUTRAL_TIER_ID:
            return tier
    return ordered[len(ordered) // 2]


def _delta_bounds(data: EventData) -> tuple[int, int]:
    lo = data.mood_change_min if data.mood_change_min is not None else DEFAULT_DELTA_MIN
    hi = data.mood_change_max if data.mood_change_max is not None else DEFAULT_DELTA_MAX
    return (hi, lo) if lo > hi else (lo, hi)


def step(mood: int | None, node: Node, config: MoodConfig | None, rng: Random) -> MoodStep:
    """Apply one node's mood delta. Only Event nodes without `moodDisabled` move the mood."""
    if mood is None or config is None:
        return MoodStep(mood=mood)
    data = node.data
    if not isinstance(data, EventData) or data.mood_disabled:
        return MoodStep(mood=mood)

    lo, hi = _delta_bounds(data)
    delta = lo if lo == hi else rng.randint(lo, hi)
    mood = clamp(mood + delta)
    tier = tier_of(mood, config.tiers)
    if tier is None:
        return MoodStep(mood=mood)
    picked = pick_one([(t, t.weight) for t in config.tags_for(tier.id)], rng)
    return MoodStep(mood=mood, tag=picked.tag if picked is not None else None, tier=tier)


def mood_part(tag: str) -> PromptPart:
    return PromptPart(label="Mood", prompt=tag, type="mood")
