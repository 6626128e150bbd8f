from __future__ import annotations

import json
from random import Random

from eventflow.schema.documents import EventDocument
from eventflow.storage.export import ExportSelection, bulk_export, export_prompts_json


def _event(event_id: str, name: str, nodes: list[dict], edges: list[dict], fixed_prompt: str = "") -> EventDocument:
    return EventDocument.from_dict(
        {"id": event_id, "name": name, "fixedPrompt": fixed_prompt, "nodes": nodes, "edges": edges}
    )


def _gated_event() -> EventDocument:
    return _event(
        "gated",
        "Gated",
        [
            {"id": "s", "type": "startNode", "data": {"inputs": [{"id": "night", "enabled": False}]}},
            {"id": "if", "type": "ifNode", "data": {"conditionInputIds": ["night"]}},
            {"id": "moon", "type": "eventNode", "data": {"label": "Moon", "localPrompt": ["moonlight"]}},
            {"id": "sun", "type": "eventNode", "data": {"label": "Sun", "localPrompt": ["sunlight"]}},
        ],
        [
            {"id": "e1", "source": "s", "target": "if"},
            {"id": "e2", "source": "if", "sourceHandle": "true_output", "target": "moon"},
            {"id": "e3", "source": "if", "sourceHandle": "false_output", "target": "sun"},
        ],
        fixed_prompt="watercolor",
    )


def _events() -> list[EventDocument]:
    return [
        _gated_event(),
        _event("empty", "Empty", [], []),
        _event("no-start", "No Start", [{"id": "e", "type": "eventNode", "data": {}}], []),
        _event("dead-end", "Dead End", [{"id": "s", "type": "startNode", "data": {}}], []),
    ]


def test_bulk_export_headers_prompts_and_overrides() -> None:
    lines = bulk_export(
        _events(),
        [ExportSelection(event_id="gated"), ExportSelection(event_id="gated", overrides={"night": True})],
        rng=Random(0),
    )
    assert lines == [
        "--- [Event: Gated] ---",
        "watercolor, sunlight",
        "--- [Event: Gated] ---",
        "watercolor, moonlight",
    ]


def test_bulk_export_explains_empty_runs() -> None:
    lines = bulk_export(
        _events(),
        [ExportSelection("empty"), ExportSelection("no-start"), ExportSelection("dead-end"), ExportSelection("ghost")],
    )
    assert lines == [
        "--- [Event: Empty] ---",
        "(No nodes found)",
        "--- [Event: No Start] ---",
        "(No Start Node found)",
        "--- [Event: Dead End] ---",
        "(No path found or graph empty)",
    ]


def test_export_selection_from_dict() -> None:
    selection = ExportSelection.from_dict({"eventId": "gated", "overrides": {"night": 1}})
    assert selection.event_id == "gated"
    assert selection.overrides == {"night": True}


def test_export_prompts_json_is_pretty_list() -> None:
    text = export_prompts_json(_events(), [ExportSelection("gated")], rng=Random(0))
    assert json.loads(text) == ["--- [Event: Gated] ---", "watercolor, sunlight"]
    assert "\n  " in text
