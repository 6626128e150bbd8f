from __future__ import annotations

import json
import logging

import pytest

from eventflow.schema.documents import EventDocument, EventLibrary
from eventflow.schema.mood import MoodConfig
from eventflow.storage.store import EventStore


def _library() -> EventLibrary:
    event = EventDocument.from_dict(
        {
            "id": "ev-1",
            "name": "Opening",
            "fixedPrompt": "anime style",
            "nodes": [{"id": "s", "type": "startNode", "position": {"x": 0, "y": 0}, "data": {"label": "Start"}}],
            "edges": [],
        }
    )
    return EventLibrary(events=(event,), mood_config=MoodConfig())


def test_load_missing_file_returns_empty_library(tmp_path) -> None:  # type: ignore[no-untyped-def]
    store = EventStore(tmp_path / "nope.json")
    library = store.load()
    assert library.events == ()
    assert library.version == "1.0"


def test_save_load_round_trip(tmp_path) -> None:  # type: ignore[no-untyped-def]
    store = EventStore(tmp_path / "data" / "events.json")
    store.save(_library())
    assert store.exists()
    assert store.load() == _library()

    raw = json.loads(store.path.read_text(encoding="utf-8"))
    assert raw["version"] == "1.0"
    assert raw["events"][0]["fixedPrompt"] == "anime style"
    assert "moodConfig" in raw


def test_save_leaves_no_temp_files(tmp_path) -> None:  # type: ignore[no-untyped-def]
    store = EventStore(tmp_path / "events.json")
    store.save(_library())
    store.save(_library())
    assert sorted(p.name for p in tmp_path.iterdir()) == ["events.json"]


def test_load_accepts_bare_event_list(tmp_path) -> None:  # type: ignore[no-untyped-def]
    path = tmp_path / "events.json"
    path.write_text(json.dumps([_library().events[0].to_dict()]), encoding="utf-8")
    library = EventStore(path).load()
    assert [e.id for e in library.events] == ["ev-1"]


def test_load_malformed_file_degrades_to_empty(tmp_path, caplog) -> None:  # type: ignore[no-untyped-def]
    path = tmp_path / "events.json"
    path.write_text("{not json", encoding="utf-8")
    with caplog.at_level(logging.WARNING, logger="eventflow.storage.store"):
        library = EventStore(path).load()
    assert library.events == ()
    assert "Could not read event library" in caplog.text

    path.write_text(json.dumps({"events": "oops"}), encoding="utf-8")
    assert EventStore(path).load().events == ()


def test_save_failure_is_logged_and_raised(tmp_path, caplog) -> None:  # type: ignore[no-untyped-def]
    target = tmp_path / "events.json"
    target.mkdir()
    store = EventStore(target)
    with caplog.at_level(logging.ERROR, logger="eventflow.storage.store"):
        with pytest.raises(OSError):
            store.save(_library())
    assert "Failed to save event library" in caplog.text
    assert sorted(p.name for p in tmp_path.iterdir()) == ["events.json"]
