"""Value types for Event graphs, the stored library and simulation results.

Every type is a frozen dataclass with `to_dict` / `from_dict` using the editor's camelCase JSON keys.
"""

from __future__ import annotations

from eventflow.schema.documents import LIBRARY_VERSION, EventDocument, EventLibrary, find_event
from eventflow.schema.mood import MoodConfig, MoodRange, MoodTag, MoodTier
from eventflow.schema.nodes import (
    DEFAULT_WEIGHT,
    BranchData,
    CarryForwardData,
    Edge,
    EndData,
    EventData,
    FieldData,
    GroupData,
    Handle,
    IfData,
    Node,
    NodeType,
    Position,
    ReferenceData,
    StartData,
)
from eventflow.schema.results import ComposedPrompt, PromptContribution, PromptPart, ResultItem

__all__ = [
    "DEFAULT_WEIGHT",
    "LIBRARY_VERSION",
    "BranchData",
    "CarryForwardData",
    "ComposedPrompt",
    "Edge",
    "EndData",
    "EventData",
    "EventDocument",
    "EventLibrary",
    "FieldData",
    "GroupData",
    "Handle",
    "IfData",
    "MoodConfig",
    "MoodRange",
    "MoodTag",
    "MoodTier",
    "Node",
    "NodeType",
    "Position",
    "PromptContribution",
    "PromptPart",
    "ReferenceData",
    "ResultItem",
    "StartData",
    "find_event",
]
