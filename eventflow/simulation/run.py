from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from random import Random
from typing import Any

from eventflow.config import load_config
from eventflow.schema.documents import EventDocument, EventLibrary
from eventflow.schema.mood import MoodConfig
from eventflow.simulation.simulator import simulate_event
from eventflow.storage.export import ExportSelection, bulk_export
from eventflow.storage.store import EventStore


FORMAT_VERSION = "1.0"

_TRUE_WORDS = {"true", "1", "yes", "on"}
_FALSE_WORDS = {"false", "0", "no", "off"}


def _parse_override(raw: str) -> tuple[str, bool]:
    key, sep, value = raw.partition("=")
    word = value.strip().lower()
    if not sep or not key.strip() or word not in _TRUE_WORDS | _FALSE_WORDS:
        raise argparse.ArgumentTypeError(f"expected INPUT=true|false, got {raw!r}")
    return key.strip(), word in _TRUE_WORDS


def _resolve_events(library: EventLibrary, wanted: list[str]) -> list[EventDocument]:
    if not wanted:
        return list(library.events)
    resolved: list[EventDocument] = []
    for key in wanted:
        event = library.event_by_id(key) or next((e for e in library.events if e.name == key), None)
        if event is None:
            raise SystemExit(f"Unknown event: {key}")
        resolved.append(event)
    return resolved


def main(argv: list[str] | None = None) -> int:
    config = load_config()
    parser = argparse.ArgumentParser(prog="eventflow.simulation.run")
    parser.add_argument("--library", default=config.data_path)
    parser.add_argument("--event", action="append", default=[], help="Event id or name; repeatable")
    parser.add_argument("--seed", type=int, default=config.seed)
    parser.add_argument("--override", action="append", default=[], type=_parse_override, metavar="INPUT=true|false")
    parser.add_argument("--no-mood", action="store_true")
    parser.add_argument("--prompts-only", action="store_true")
    parser.add_argument("--output")
    args = parser.parse_args(argv)

    logging.basicConfig(
        stream=sys.stderr,
        level=config.log_level,
        format="%(levelname)s %(name)s: %(message)s",
    )

    library = EventStore(args.library).load()
    events = _resolve_events(library, args.event)
    overrides = dict(args.override)
    mood_config = None if args.no_mood else (library.mood_config or MoodConfig())
    rng = Random(args.seed) if args.seed is not None else Random()

    output: Any
    if args.prompts_only:
        selections = [ExportSelection(event_id=e.id, overrides=overrides) for e in events]
        output = bulk_export(library.events, selections, mood_config=mood_config, rng=rng)
    else:
        runs: list[dict[str, Any]] = []
        for event in events:
            items = simulate_event(event, library.events, overrides=overrides, mood_config=mood_config, rng=rng)
            runs.append(
                {
                    "eventId": event.id,
                    "eventName": event.name,
                    "results": [item.to_dict() for item in items],
                }
            )
        output = {
            "format_version": FORMAT_VERSION,
            "generatedAt": datetime.now(UTC).isoformat(),
            "seed": args.seed,
            "runs": runs,
        }

    text = json.dumps(output, indent=2, ensure_ascii=False)
    if args.output:
        out_path = Path(args.output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text + "\n", encoding="utf-8")
    else:
        sys.stdout.write(text + "\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
