from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from random import Random
from typing import Any

from eventflow.schema.documents import EventDocument, find_event
from eventflow.schema.mood import MoodConfig
from eventflow.schema.nodes import NodeType
from eventflow.simulation.simulator import simulate_event


logger = logging.getLogger(__name__)

NO_NODES = "(No nodes found)"
NO_START_NODE = "(No Start Node found)"
NO_PATH = "(No path found or graph empty)"


@dataclass(frozen=True)
class ExportSelection:
    event_id: str
    overrides: Mapping[str, bool] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExportSelection":
        raw = data.get("overrides")
        overrides = {str(k): bool(v) for k, v in raw.items()} if isinstance(raw, dict) else {}
        return cls(event_id=str(data["eventId"]), overrides=overrides)


def event_header(event: EventDocument) -> str:
    return f"--- [Event: {event.name}] ---"


def _empty_reason(event: EventDocument) -> str:
    if not event.nodes:
        return NO_NODES
    if not any(n.type == NodeType.START for n in event.nodes):
        return NO_START_NODE
    return NO_PATH


def bulk_export(
    events: Sequence[EventDocument],
    selections: Sequence[ExportSelection],
    *,
    mood_config: MoodConfig | None = None,
    rng: Random | None = None,
) -> list[str]:
    """Flatten the simulated prompts of each selected Event under a header line."""
    rng = rng or Random()
    lines: list[str] = []
    for selection in selections:
        event = find_event(events, selection.event_id)
        if event is None:
            logger.debug("Bulk export skipping unknown event %s", selection.event_id)
            continue
        lines.append(event_header(event))
        items = simulate_event(
            event,
            events,
            overrides=selection.overrides,
            mood_config=mood_config,
            rng=rng,
        )
        if items:
            lines.extend(item.prompt for item in items)
        else:
            lines.append(_empty_reason(event))
    return lines


def export_prompts_json(
    events: Sequence[EventDocument],
    selections: Sequence[ExportSelection],
    *,
    mood_config: MoodConfig | None = None,
    rng: Random | None = None,
) -> str:
    lines = bulk_export(events, selections, mood_config=mood_config, rng=rng)
    return json.dumps(lines, ensure_ascii=False, indent=2)
