from __future__ import annotations

import json
import logging
import sys
from random import Random
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from eventflow.api.models import (
    BulkExportRequestModel,
    ComposeRequestModel,
    ImportRequestModel,
    LibraryPayloadModel,
    SimulateRequestModel,
)
from eventflow.config import EngineConfig, load_config
from eventflow.schema.documents import EventDocument, EventLibrary
from eventflow.schema.mood import MoodConfig
from eventflow.simulation.composer import compose
from eventflow.simulation.graph_query import ancestors_of
from eventflow.simulation.simulator import simulate_event
from eventflow.storage.export import ExportSelection, bulk_export
from eventflow.storage.store import EventStore
from eventflow.storage.workspace import EventWorkspace


logger = logging.getLogger(__name__)


def _rng_for(seed: int | None, config: EngineConfig) -> Random:
    if seed is not None:
        return Random(seed)
    if config.seed is not None:
        return Random(config.seed)
    return Random()


def _mood_config_for(library: EventLibrary, use_mood: bool) -> MoodConfig | None:
    if not use_mood:
        return None
    return library.mood_config or MoodConfig()


def _require_event(library: EventLibrary, event_id: str) -> EventDocument:
    event = library.event_by_id(event_id)
    if event is None:
        raise HTTPException(status_code=404, detail=f"Unknown event: {event_id}")
    return event


def create_app(config: EngineConfig | None = None) -> FastAPI:
    config = config or load_config()
    store = EventStore(config.data_path)

    app = FastAPI(title="eventflow Simulation API", version="1.0.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api/events")
    def get_events() -> dict[str, Any]:
        return store.load().to_dict()

    @app.post("/api/events")
    def save_events(payload: LibraryPayloadModel) -> Any:
        raw: dict[str, Any] = {"events": payload.events, "version": payload.version}
        if payload.mood_config is not None:
            raw["moodConfig"] = payload.mood_config
        try:
            library = EventLibrary.from_dict(raw)
        except (KeyError, TypeError, ValueError) as exc:
            raise HTTPException(status_code=400, detail=f"Invalid event library: {exc}") from exc
        if library.mood_config is None:
            # Keep the stored mood settings when the editor only sends events.
            library = EventLibrary(events=library.events, version=library.version, mood_config=store.load().mood_config)
        try:
            store.save(library)
        except Exception as exc:
            return JSONResponse(status_code=500, content={"success": False, "error": str(exc)})
        return {"success": True}

    @app.post("/api/import")
    def import_events(payload: ImportRequestModel) -> dict[str, Any]:
        workspace = EventWorkspace.from_library(store.load())
        if not workspace.import_json(json.dumps({"events": payload.events})):
            raise HTTPException(status_code=400, detail="Import payload must contain a valid 'events' array.")
        try:
            store.save(workspace.to_library())
        except Exception as exc:
            raise HTTPException(status_code=500, detail=f"Failed to save imported events: {exc}") from exc
        return {"success": True, "count": len(workspace.events)}

    @app.post("/api/simulate")
    def simulate(req: SimulateRequestModel) -> dict[str, Any]:
        library = store.load()
        event = _require_event(library, req.event_id)
        items = simulate_event(
            event,
            library.events,
            overrides=req.overrides,
            mood_config=_mood_config_for(library, req.use_mood),
            rng=_rng_for(req.seed, config),
        )
        return {"results": [item.to_dict() for item in items]}

    @app.post("/api/compose")
    def compose_node(req: ComposeRequestModel) -> dict[str, Any]:
        library = store.load()
        event = _require_event(library, req.event_id)
        if event.node_by_id(req.node_id) is None:
            raise HTTPException(status_code=404, detail=f"Unknown node: {req.node_id}")
        composed = compose(
            req.node_id,
            library.events,
            event.nodes,
            event.edges,
            event.fixed_prompt,
            randomize=req.randomize,
            rng=_rng_for(req.seed, config),
            event_trail=frozenset({event.id}),
        )
        ancestors = ancestors_of(req.node_id, event.nodes, event.edges)
        return {**composed.to_dict(), "ancestors": [a.to_dict() for a in ancestors]}

    @app.post("/api/export/bulk")
    def export_bulk(req: BulkExportRequestModel) -> dict[str, Any]:
        library = store.load()
        selections = [ExportSelection(event_id=s.event_id, overrides=dict(s.overrides)) for s in req.selections]
        prompts = bulk_export(
            library.events,
            selections,
            mood_config=_mood_config_for(library, req.use_mood),
            rng=_rng_for(req.seed, config),
        )
        return {"prompts": prompts}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    _config = load_config()
    logging.basicConfig(
        stream=sys.stderr,
        level=_config.log_level,
        format="%(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("eventflow.api.server:app", host="0.0.0.0", port=8000, reload=False)
