from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from eventflow.schema.mood import MoodConfig
from eventflow.schema.nodes import Edge, Node, NodeType


logger = logging.getLogger(__name__)

LIBRARY_VERSION = "1.0"


def _parse_nodes(raw_nodes: Any, event_id: str) -> tuple[Node, ...]:
    if raw_nodes is None:
        return ()
    if not isinstance(raw_nodes, list):
        raise ValueError(f"Event {event_id}: 'nodes' must be a list")
    nodes: list[Node] = []
    for raw in raw_nodes:
        if not isinstance(raw, dict):
            raise ValueError(f"Event {event_id}: node entries must be objects")
        try:
            nodes.append(Node.from_dict(raw))
        except ValueError:
            # Unknown node type strings come from newer editors; keep the rest of the graph.
            logger.warning("Skipping node %s with unknown type %r in event %s", raw.get("id"), raw.get("type"), event_id)
    return tuple(nodes)


def _parse_edges(raw_edges: Any, event_id: str) -> tuple[Edge, ...]:
    if raw_edges is None:
        return ()
    if not isinstance(raw_edges, list):
        raise ValueError(f"Event {event_id}: 'edges' must be a list")
    return tuple(Edge.from_dict(e) for e in raw_edges if isinstance(e, dict))


_EVENT_DOC_KEYS = frozenset({"id", "name", "description", "fixedPrompt", "nodes", "edges", "createdAt", "updatedAt"})


@dataclass(frozen=True)
class EventDocument:
    """One stored Event: a node/edge graph plus a fixed prompt prefix."""

    id: str
    name: str = ""
    fixed_prompt: str = ""
    nodes: tuple[Node, ...] = ()
    edges: tuple[Edge, ...] = ()
    description: str = ""
    created_at: str | None = None
    updated_at: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def end_node(self) -> Node | None:
        for node in self.nodes:
            if node.type == NodeType.END:
                return node
        return None

    def node_by_id(self, node_id: str) -> Node | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            **self.extra,
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "fixedPrompt": self.fixed_prompt,
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }
        if self.created_at is not None:
            out["createdAt"] = self.created_at
        if self.updated_at is not None:
            out["updatedAt"] = self.updated_at
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EventDocument":
        if not isinstance(data, dict):
            raise ValueError("Event entries must be objects")
        event_id = str(data["id"])
        return cls(
            id=event_id,
            name=str(data.get("name") or ""),
            fixed_prompt=str(data.get("fixedPrompt") or ""),
            nodes=_parse_nodes(data.get("nodes"), event_id),
            edges=_parse_edges(data.get("edges"), event_id),
            description=str(data.get("description") or ""),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
            extra={k: v for k, v in data.items() if k not in _EVENT_DOC_KEYS},
        )


def find_event(events: tuple[EventDocument, ...] | list[EventDocument], event_id: str | None) -> EventDocument | None:
    if not event_id:
        return None
    for event in events:
        if event.id == event_id:
            return event
    return None


@dataclass(frozen=True)
class EventLibrary:
    """The unit of storage: every Event plus the shared mood configuration."""

    events: tuple[EventDocument, ...] = ()
    version: str = LIBRARY_VERSION
    mood_config: MoodConfig | None = None

    def event_by_id(self, event_id: str) -> EventDocument | None:
        return find_event(self.events, event_id)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "events": [e.to_dict() for e in self.events],
            "version": self.version,
        }
        if self.mood_config is not None:
            out["moodConfig"] = self.mood_config.to_dict()
        return out

    @classmethod
    def from_dict(cls, data: Any) -> "EventLibrary":
        # Older stores wrote the bare events array.
        if isinstance(data, list):
            data = {"events": data}
        if not isinstance(data, dict):
            raise ValueError("Library payload must be an object")
        raw_events = data.get("events")
        if not isinstance(raw_events, list):
            raise ValueError("Library payload is missing an 'events' array")
        raw_mood = data.get("moodConfig")
        return cls(
            events=tuple(EventDocument.from_dict(e) for e in raw_events),
            version=str(data.get("version") or LIBRARY_VERSION),
            mood_config=MoodConfig.from_dict(raw_mood) if isinstance(raw_mood, dict) else None,
        )
