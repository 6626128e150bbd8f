from __future__ import annotations

import json

from eventflow.schema.documents import EventDocument, EventLibrary
from eventflow.schema.mood import MoodConfig
from eventflow.storage.workspace import EventWorkspace


def _raw_event(event_id: str, name: str = "") -> dict:  # type: ignore[no-untyped-def]
    return {
        "id": event_id,
        "name": name or event_id.title(),
        "fixedPrompt": "",
        "nodes": [{"id": f"{event_id}-s", "type": "startNode", "position": {"x": 0, "y": 0}, "data": {}}],
        "edges": [],
    }


def _workspace() -> EventWorkspace:
    return EventWorkspace([EventDocument.from_dict(_raw_event("one")), EventDocument.from_dict(_raw_event("two"))])


def test_first_event_is_selected_initially() -> None:
    ws = _workspace()
    assert ws.current_event is not None
    assert ws.current_event.id == "one"
    assert EventWorkspace().current_event is None


def test_import_replaces_collection_and_selects_first() -> None:
    ws = _workspace()
    ok = ws.import_json(json.dumps({"events": [_raw_event("alpha"), _raw_event("beta")], "version": "1.0"}))
    assert ok
    assert [e.id for e in ws.events] == ["alpha", "beta"]
    assert ws.current_event_id == "alpha"


def test_import_rejects_invalid_payloads_without_touching_state() -> None:
    ws = _workspace()
    assert not ws.import_json("{broken")
    assert not ws.import_json(json.dumps({"events": "nope"}))
    assert not ws.import_json(json.dumps([_raw_event("x")]))
    assert not ws.import_json(json.dumps({"events": [{"name": "missing id"}]}))
    assert not ws.import_json(json.dumps({"events": [{"id": "x", "nodes": "bad"}]}))
    assert [e.id for e in ws.events] == ["one", "two"]
    assert ws.current_event_id == "one"


def test_import_empty_list_clears_selection() -> None:
    ws = _workspace()
    assert ws.import_json(json.dumps({"events": []}))
    assert ws.events == ()
    assert ws.current_event is None


def test_export_round_trips_through_import() -> None:
    ws = _workspace()
    exported = json.loads(ws.export_json())
    assert exported["version"] == "1.0"
    assert "exportedAt" in exported

    other = EventWorkspace()
    assert other.import_json(ws.export_json())
    assert other.events == ws.events


def test_select_upsert_and_delete() -> None:
    ws = _workspace()
    assert ws.select_event("two") is not None
    assert ws.current_event_id == "two"
    assert ws.select_event("missing") is None
    assert ws.current_event_id == "two"

    renamed = EventDocument.from_dict(_raw_event("two", "Renamed"))
    ws.upsert_event(renamed)
    assert ws.current_event is not None and ws.current_event.name == "Renamed"
    ws.upsert_event(EventDocument.from_dict(_raw_event("three")))
    assert ws.current_event_id == "three"

    assert ws.delete_event("three")
    assert ws.current_event_id == "one"
    assert not ws.delete_event("three")


def test_library_conversion_keeps_mood_config() -> None:
    library = EventLibrary(events=(EventDocument.from_dict(_raw_event("one")),), mood_config=MoodConfig())
    ws = EventWorkspace.from_library(library)
    assert ws.mood_config == MoodConfig()
    assert ws.to_library() == library
