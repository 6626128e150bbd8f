"""Persistence and interchange for the Event library.

The file store, the in-memory workspace used for import/export, and bulk prompt export.
"""

from __future__ import annotations

from eventflow.storage.export import ExportSelection, bulk_export, export_prompts_json
from eventflow.storage.store import EventStore
from eventflow.storage.workspace import EventWorkspace

__all__ = [
    "EventStore",
    "EventWorkspace",
    "ExportSelection",
    "bulk_export",
    "export_prompts_json",
]
