from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from eventflow.schema.nodes import DEFAULT_WEIGHT


MOOD_MIN = -100
MOOD_MAX = 100


@dataclass(frozen=True)
class MoodTier:
    """Half-open mood band `[min, max)`."""

    id: str
    label: str
    min: int
    max: int

    def contains(self, mood: int) -> bool:
        return self.min <= mood < self.max

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "label": self.label, "min": self.min, "max": self.max}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MoodTier":
        return cls(
            id=str(data["id"]),
            label=str(data.get("label") or data["id"]),
            min=int(data["min"]),
            max=int(data["max"]),
        )


@dataclass(frozen=True)
class MoodTag:
    id: str
    tag: str
    weight: int = DEFAULT_WEIGHT

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "tag": self.tag, "weight": self.weight}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MoodTag":
        raw_weight = data.get("weight")
        return cls(
            id=str(data.get("id") or data["tag"]),
            tag=str(data["tag"]),
            weight=int(raw_weight) if isinstance(raw_weight, (int, float)) else DEFAULT_WEIGHT,
        )


@dataclass(frozen=True)
class MoodRange:
    min: int = -20
    max: int = 20

    def to_dict(self) -> dict[str, int]:
        return {"min": self.min, "max": self.max}

    @classmethod
    def from_dict(cls, data: Any) -> "MoodRange":
        if not isinstance(data, dict):
            return cls()
        return cls(min=int(data.get("min", -20)), max=int(data.get("max", 20)))


DEFAULT_TIERS: tuple[MoodTier, ...] = (
    MoodTier(id="very_negative", label="Very Negative", min=-100, max=-60),
    MoodTier(id="negative", label="Negative", min=-60, max=-20),
    MoodTier(id="neutral", label="Neutral", min=-20, max=20),
    MoodTier(id="positive", label="Positive", min=20, max=60),
    MoodTier(id="very_positive", label="Very Positive", min=60, max=100),
)


@dataclass(frozen=True)
class MoodConfig:
    tiers: tuple[MoodTier, ...] = DEFAULT_TIERS
    tags: dict[str, tuple[MoodTag, ...]] = field(default_factory=dict)
    initial_mood_range: MoodRange = field(default_factory=MoodRange)

    def tags_for(self, tier_id: str) -> tuple[MoodTag, ...]:
        return self.tags.get(tier_id, ())

    def to_dict(self) -> dict[str, Any]:
        return {
            "tiers": [t.to_dict() for t in self.tiers],
            "tags": {tier_id: [t.to_dict() for t in tags] for tier_id, tags in self.tags.items()},
            "initialMoodRange": self.initial_mood_range.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MoodConfig":
        raw_tiers = data.get("tiers")
        tiers = (
            tuple(MoodTier.from_dict(t) for t in raw_tiers if isinstance(t, dict))
            if isinstance(raw_tiers, list)
            else DEFAULT_TIERS
        )
        raw_tags = data.get("tags")
        tags: dict[str, tuple[MoodTag, ...]] = {}
        if isinstance(raw_tags, dict):
            for tier_id, items in raw_tags.items():
                if not isinstance(items, list):
                    continue
                tags[str(tier_id)] = tuple(
                    MoodTag.from_dict(item) for item in items if isinstance(item, dict) and item.get("tag")
                )
        return cls(
            tiers=tiers,
            tags=tags,
            initial_mood_range=MoodRange.from_dict(data.get("initialMoodRange")),
        )
