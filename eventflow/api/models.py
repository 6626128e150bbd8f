from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, Field

from eventflow.schema.documents import LIBRARY_VERSION


class LibraryPayloadModel(BaseModel):
    events: list[dict[str, Any]]
    version: str = LIBRARY_VERSION
    mood_config: dict[str, Any] | None = Field(
        default=None,
        validation_alias=AliasChoices("moodConfig", "mood_config"),
    )


class ImportRequestModel(BaseModel):
    # Left untyped so a malformed import is reported as 400 rather than a schema error.
    events: Any = None


class SimulateRequestModel(BaseModel):
    event_id: str = Field(validation_alias=AliasChoices("eventId", "event_id"))
    overrides: dict[str, bool] = Field(default_factory=dict)
    seed: int | None = None
    use_mood: bool = Field(default=True, validation_alias=AliasChoices("useMood", "use_mood"))


class ComposeRequestModel(BaseModel):
    event_id: str = Field(validation_alias=AliasChoices("eventId", "event_id"))
    node_id: str = Field(validation_alias=AliasChoices("nodeId", "node_id"))
    randomize: bool = False
    seed: int | None = None


class ExportSelectionModel(BaseModel):
    event_id: str = Field(validation_alias=AliasChoices("eventId", "event_id"))
    overrides: dict[str, bool] = Field(default_factory=dict)


class BulkExportRequestModel(BaseModel):
    selections: list[ExportSelectionModel] = Field(default_factory=list)
    seed: int | None = None
    use_mood: bool = Field(default=True, validation_alias=AliasChoices("useMood", "use_mood"))
