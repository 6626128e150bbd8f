from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class PromptPart:
    label: str
    prompt: str
    type: str
    node_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"label": self.label, "prompt": self.prompt, "type": self.type}
        if self.node_id is not None:
            out["nodeId"] = self.node_id
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PromptPart":
        node_id = data.get("nodeId")
        return cls(
            label=str(data.get("label") or ""),
            prompt=str(data.get("prompt") or ""),
            type=str(data.get("type") or ""),
            node_id=str(node_id) if node_id is not None else None,
        )


@dataclass(frozen=True)
class PromptContribution:
    """Text one ancestor hands down to the node being resolved."""

    node_id: str
    label: str
    prompt: str
    type: str

    def to_dict(self) -> dict[str, Any]:
        return {"nodeId": self.node_id, "label": self.label, "prompt": self.prompt, "type": self.type}


def join_parts(parts: tuple[PromptPart, ...] | list[PromptPart]) -> str:
    return ", ".join(p.prompt for p in parts if p.prompt and p.prompt.strip())


@dataclass(frozen=True)
class ComposedPrompt:
    parts: tuple[PromptPart, ...] = ()
    full: str = ""

    @classmethod
    def from_parts(cls, parts: tuple[PromptPart, ...] | list[PromptPart]) -> "ComposedPrompt":
        parts = tuple(parts)
        return cls(parts=parts, full=join_parts(parts))

    def to_dict(self) -> dict[str, Any]:
        return {"parts": [p.to_dict() for p in self.parts], "full": self.full}


@dataclass(frozen=True)
class ResultItem:
    """One generated artifact of a simulation run."""

    id: str
    original_id: str
    label: str
    type: str
    prompt: str
    parts: tuple[PromptPart, ...] = ()
    mood: int | None = None
    mood_tag: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "originalId": self.original_id,
            "label": self.label,
            "type": self.type,
            "prompt": self.prompt,
            "parts": [p.to_dict() for p in self.parts],
            "mood": self.mood,
            "moodTag": self.mood_tag,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ResultItem":
        raw_parts = data.get("parts")
        mood = data.get("mood")
        return cls(
            id=str(data["id"]),
            original_id=str(data["originalId"]),
            label=str(data.get("label") or ""),
            type=str(data.get("type") or ""),
            prompt=str(data.get("prompt") or ""),
            parts=tuple(PromptPart.from_dict(p) for p in raw_parts if isinstance(p, dict))
            if isinstance(raw_parts, list)
            else (),
            mood=int(mood) if mood is not None else None,
            mood_tag=data.get("moodTag"),
        )
