from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


DEFAULT_WEIGHT = 50
FIELD_DEFAULT_WIDTH = 400.0
FIELD_DEFAULT_HEIGHT = 300.0

TRUE_OUTPUT = "true_output"
FALSE_OUTPUT = "false_output"


class NodeType(Enum):
    START = "startNode"
    END = "endNode"
    EVENT = "eventNode"
    GROUP = "groupNode"
    BRANCH = "branchNode"
    REFERENCE = "referenceNode"
    IF = "ifNode"
    CARRY_FORWARD = "carryForwardNode"
    FIELD = "fieldNode"


# Node types that steer traversal but never emit a result item themselves.
CONTROL_FLOW_TYPES: frozenset[NodeType] = frozenset(
    {
        NodeType.START,
        NodeType.END,
        NodeType.BRANCH,
        NodeType.REFERENCE,
        NodeType.IF,
        NodeType.CARRY_FORWARD,
        NodeType.FIELD,
    }
)


def _prompt_list(value: Any) -> tuple[str, ...]:
    # Older documents store a single string instead of a list.
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,) if value else ()
    if isinstance(value, (list, tuple)):
        return tuple(str(v) for v in value if v is not None)
    return ()


def _id_list(value: Any) -> tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(str(v) for v in value if v is not None)


def _opt_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _opt_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _extra(data: dict[str, Any], known: frozenset[str]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if k not in known}


@dataclass(frozen=True)
class Handle:
    """A named connector on a node. Branch outputs carry a weight, Start inputs a flag."""

    id: str
    label: str = ""
    weight: int | None = None
    enabled: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"id": self.id, "label": self.label}
        if self.weight is not None:
            out["weight"] = self.weight
        if self.enabled is not None:
            out["enabled"] = self.enabled
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Handle":
        enabled = data.get("enabled")
        return cls(
            id=str(data["id"]),
            label=str(data.get("label") or ""),
            weight=_opt_int(data.get("weight")),
            enabled=bool(enabled) if enabled is not None else None,
        )


def _handles(value: Any) -> tuple[Handle, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(Handle.from_dict(h) for h in value if isinstance(h, dict) and h.get("id") is not None)


def _handles_to_list(handles: tuple[Handle, ...]) -> list[dict[str, Any]]:
    return [h.to_dict() for h in handles]


_EVENT_KEYS = frozenset(
    {
        "label",
        "content",
        "localPrompt",
        "inheritedPrompt",
        "disabledInheritedSources",
        "usePerspective",
        "cameraAbove",
        "cameraBelow",
        "cameraSide",
        "moodChangeMin",
        "moodChangeMax",
        "moodDisabled",
        "inputs",
        "outputs",
    }
)


@dataclass(frozen=True)
class EventData:
    label: str = ""
    content: str = ""
    local_prompt: tuple[str, ...] = ()
    inherited_prompt: tuple[str, ...] = ()
    disabled_inherited_sources: tuple[str, ...] = ()
    use_perspective: bool = False
    camera_above: bool = False
    camera_below: bool = False
    camera_side: bool = False
    mood_change_min: int | None = None
    mood_change_max: int | None = None
    mood_disabled: bool = False
    inputs: tuple[Handle, ...] = ()
    outputs: tuple[Handle, ...] = ()
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            **self.extra,
            "label": self.label,
            "content": self.content,
            "localPrompt": list(self.local_prompt),
            "inheritedPrompt": list(self.inherited_prompt),
            "disabledInheritedSources": list(self.disabled_inherited_sources),
            "usePerspective": self.use_perspective,
            "cameraAbove": self.camera_above,
            "cameraBelow": self.camera_below,
            "cameraSide": self.camera_side,
            "moodDisabled": self.mood_disabled,
            "inputs": _handles_to_list(self.inputs),
            "outputs": _handles_to_list(self.outputs),
        }
        if self.mood_change_min is not None:
            out["moodChangeMin"] = self.mood_change_min
        if self.mood_change_max is not None:
            out["moodChangeMax"] = self.mood_change_max
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EventData":
        return cls(
            label=str(data.get("label") or ""),
            content=str(data.get("content") or ""),
            local_prompt=_prompt_list(data.get("localPrompt")),
            inherited_prompt=_prompt_list(data.get("inheritedPrompt")),
            disabled_inherited_sources=_id_list(data.get("disabledInheritedSources")),
            use_perspective=bool(data.get("usePerspective", False)),
            camera_above=bool(data.get("cameraAbove", False)),
            camera_below=bool(data.get("cameraBelow", False)),
            camera_side=bool(data.get("cameraSide", False)),
            mood_change_min=_opt_int(data.get("moodChangeMin")),
            mood_change_max=_opt_int(data.get("moodChangeMax")),
            mood_disabled=bool(data.get("moodDisabled", False)),
            inputs=_handles(data.get("inputs")),
            outputs=_handles(data.get("outputs")),
            extra=_extra(data, _EVENT_KEYS),
        )


_GROUP_KEYS = frozenset({"label", "fixedPrompt", "inputs", "outputs"})


@dataclass(frozen=True)
class GroupData:
    label: str = ""
    fixed_prompt: str = ""
    inputs: tuple[Handle, ...] = ()
    outputs: tuple[Handle, ...] = ()
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.extra,
            "label": self.label,
            "fixedPrompt": self.fixed_prompt,
            "inputs": _handles_to_list(self.inputs),
            "outputs": _handles_to_list(self.outputs),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GroupData":
        return cls(
            label=str(data.get("label") or ""),
            fixed_prompt=str(data.get("fixedPrompt") or ""),
            inputs=_handles(data.get("inputs")),
            outputs=_handles(data.get("outputs")),
            extra=_extra(data, _GROUP_KEYS),
        )


_BRANCH_KEYS = frozenset({"label", "condition", "inputs", "outputs"})


@dataclass(frozen=True)
class BranchData:
    """Branch outputs carry display weights; traversal picks a handle uniformly."""

    label: str = ""
    condition: str = ""
    inputs: tuple[Handle, ...] = ()
    outputs: tuple[Handle, ...] = ()
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.extra,
            "label": self.label,
            "condition": self.condition,
            "inputs": _handles_to_list(self.inputs),
            "outputs": _handles_to_list(self.outputs),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BranchData":
        return cls(
            label=str(data.get("label") or ""),
            condition=str(data.get("condition") or ""),
            inputs=_handles(data.get("inputs")),
            outputs=_handles(data.get("outputs")),
            extra=_extra(data, _BRANCH_KEYS),
        )


_REFERENCE_KEYS = frozenset({"label", "referenceId", "inputOverrides", "inputs", "outputs"})


@dataclass(frozen=True)
class ReferenceData:
    label: str = ""
    reference_id: str | None = None
    input_overrides: dict[str, bool] = field(default_factory=dict)
    inputs: tuple[Handle, ...] = ()
    outputs: tuple[Handle, ...] = ()
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.extra,
            "label": self.label,
            "referenceId": self.reference_id,
            "inputOverrides": dict(self.input_overrides),
            "inputs": _handles_to_list(self.inputs),
            "outputs": _handles_to_list(self.outputs),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReferenceData":
        raw_overrides = data.get("inputOverrides")
        overrides = (
            {str(k): bool(v) for k, v in raw_overrides.items()} if isinstance(raw_overrides, dict) else {}
        )
        ref = data.get("referenceId")
        return cls(
            label=str(data.get("label") or ""),
            reference_id=str(ref) if ref else None,
            input_overrides=overrides,
            inputs=_handles(data.get("inputs")),
            outputs=_handles(data.get("outputs")),
            extra=_extra(data, _REFERENCE_KEYS),
        )


_IF_KEYS = frozenset({"label", "conditionInputIds", "inputs", "outputs"})
_IF_OUTPUTS = (Handle(id=TRUE_OUTPUT, label="True"), Handle(id=FALSE_OUTPUT, label="False"))


@dataclass(frozen=True)
class IfData:
    label: str = ""
    condition_input_ids: tuple[str, ...] = ()
    inputs: tuple[Handle, ...] = ()
    outputs: tuple[Handle, ...] = _IF_OUTPUTS
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.extra,
            "label": self.label,
            "conditionInputIds": list(self.condition_input_ids),
            "inputs": _handles_to_list(self.inputs),
            "outputs": _handles_to_list(self.outputs),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IfData":
        outputs = _handles(data.get("outputs"))
        return cls(
            label=str(data.get("label") or ""),
            condition_input_ids=_id_list(data.get("conditionInputIds")),
            inputs=_handles(data.get("inputs")),
            outputs=outputs or _IF_OUTPUTS,
            extra=_extra(data, _IF_KEYS),
        )


_CARRY_FORWARD_KEYS = frozenset({"label", "inheritedPrompt", "disabledInheritedSources", "inputs", "outputs"})


@dataclass(frozen=True)
class CarryForwardData:
    label: str = ""
    inherited_prompt: tuple[str, ...] = ()
    disabled_inherited_sources: tuple[str, ...] = ()
    inputs: tuple[Handle, ...] = ()
    outputs: tuple[Handle, ...] = ()
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.extra,
            "label": self.label,
            "inheritedPrompt": list(self.inherited_prompt),
            "disabledInheritedSources": list(self.disabled_inherited_sources),
            "inputs": _handles_to_list(self.inputs),
            "outputs": _handles_to_list(self.outputs),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CarryForwardData":
        return cls(
            label=str(data.get("label") or ""),
            inherited_prompt=_prompt_list(data.get("inheritedPrompt")),
            disabled_inherited_sources=_id_list(data.get("disabledInheritedSources")),
            inputs=_handles(data.get("inputs")),
            outputs=_handles(data.get("outputs")),
            extra=_extra(data, _CARRY_FORWARD_KEYS),
        )


_FIELD_KEYS = frozenset({"label", "selectCount", "randomizeOrder", "childWeights"})


@dataclass(frozen=True)
class FieldData:
    label: str = ""
    select_count: int = 1
    randomize_order: bool = False
    child_weights: dict[str, int] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    def weight_for(self, child_id: str) -> int:
        weight = self.child_weights.get(child_id)
        return weight if weight is not None and weight > 0 else DEFAULT_WEIGHT

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.extra,
            "label": self.label,
            "selectCount": self.select_count,
            "randomizeOrder": self.randomize_order,
            "childWeights": dict(self.child_weights),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FieldData":
        raw_weights = data.get("childWeights")
        weights: dict[str, int] = {}
        if isinstance(raw_weights, dict):
            for child_id, raw in raw_weights.items():
                w = _opt_int(raw)
                if w is not None:
                    weights[str(child_id)] = w
        select_count = _opt_int(data.get("selectCount"))
        return cls(
            label=str(data.get("label") or ""),
            select_count=select_count if select_count is not None else 1,
            randomize_order=bool(data.get("randomizeOrder", False)),
            child_weights=weights,
            extra=_extra(data, _FIELD_KEYS),
        )


_START_KEYS = frozenset({"label", "inputs", "outputs"})


@dataclass(frozen=True)
class StartData:
    label: str = ""
    inputs: tuple[Handle, ...] = ()
    outputs: tuple[Handle, ...] = ()
    extra: dict[str, Any] = field(default_factory=dict)

    def with_overrides(self, overrides: dict[str, bool]) -> "StartData":
        if not overrides:
            return self
        inputs = tuple(
            Handle(id=h.id, label=h.label, weight=h.weight, enabled=bool(overrides[h.id]))
            if h.id in overrides
            else h
            for h in self.inputs
        )
        return StartData(label=self.label, inputs=inputs, outputs=self.outputs, extra=self.extra)

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.extra,
            "label": self.label,
            "inputs": _handles_to_list(self.inputs),
            "outputs": _handles_to_list(self.outputs),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StartData":
        return cls(
            label=str(data.get("label") or ""),
            inputs=_handles(data.get("inputs")),
            outputs=_handles(data.get("outputs")),
            extra=_extra(data, _START_KEYS),
        )


_END_KEYS = frozenset({"label", "inputs"})


@dataclass(frozen=True)
class EndData:
    label: str = ""
    inputs: tuple[Handle, ...] = ()
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {**self.extra, "label": self.label, "inputs": _handles_to_list(self.inputs)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EndData":
        return cls(
            label=str(data.get("label") or ""),
            inputs=_handles(data.get("inputs")),
            extra=_extra(data, _END_KEYS),
        )


NodeData = Union[
    EventData,
    GroupData,
    BranchData,
    ReferenceData,
    IfData,
    CarryForwardData,
    FieldData,
    StartData,
    EndData,
]


def parse_node_data(node_type: NodeType, data: dict[str, Any]) -> NodeData:
    match node_type:
        case NodeType.EVENT:
            return EventData.from_dict(data)
        case NodeType.GROUP:
            return GroupData.from_dict(data)
        case NodeType.BRANCH:
            return BranchData.from_dict(data)
        case NodeType.REFERENCE:
            return ReferenceData.from_dict(data)
        case NodeType.IF:
            return IfData.from_dict(data)
        case NodeType.CARRY_FORWARD:
            return CarryForwardData.from_dict(data)
        case NodeType.FIELD:
            return FieldData.from_dict(data)
        case NodeType.START:
            return StartData.from_dict(data)
        case NodeType.END:
            return EndData.from_dict(data)


def default_node_data(node_type: NodeType) -> NodeData:
    return parse_node_data(node_type, {})


@dataclass(frozen=True)
class Position:
    x: float = 0.0
    y: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: Any) -> "Position":
        if not isinstance(data, dict):
            return cls()
        return cls(x=_opt_float(data.get("x")) or 0.0, y=_opt_float(data.get("y")) or 0.0)


_NODE_KEYS = frozenset({"id", "type", "position", "width", "height", "style", "data"})


@dataclass(frozen=True)
class Node:
    """A graph vertex. `data` is the payload variant matching `type`."""

    id: str
    type: NodeType
    position: Position = field(default_factory=Position)
    data: NodeData | None = None
    width: float | None = None
    height: float | None = None
    style: dict[str, Any] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        expected = default_node_data(self.type)
        if self.data is None:
            object.__setattr__(self, "data", expected)
        elif type(self.data) is not type(expected):
            raise TypeError(f"Node {self.id} of type {self.type.value} has {type(self.data).__name__} payload")

    @property
    def label(self) -> str:
        return self.data.label

    @property
    def forward_prompt(self) -> tuple[str, ...]:
        """Text this node passes on to every descendant."""
        match self.data:
            case EventData(inherited_prompt=prompt) | CarryForwardData(inherited_prompt=prompt):
                return prompt
            case _:
                return ()

    @property
    def disabled_sources(self) -> tuple[str, ...]:
        match self.data:
            case EventData(disabled_inherited_sources=ids) | CarryForwardData(disabled_inherited_sources=ids):
                return ids
            case _:
                return ()

    @property
    def size(self) -> tuple[float, float]:
        """Bounding box size: live size first, then declared style size, then the field default."""
        width = self.width if self.width is not None else _opt_float(self.style.get("width"))
        height = self.height if self.height is not None else _opt_float(self.style.get("height"))
        return (
            width if width is not None else FIELD_DEFAULT_WIDTH,
            height if height is not None else FIELD_DEFAULT_HEIGHT,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            **self.extra,
            "id": self.id,
            "type": self.type.value,
            "position": self.position.to_dict(),
            "data": self.data.to_dict(),
        }
        if self.width is not None:
            out["width"] = self.width
        if self.height is not None:
            out["height"] = self.height
        if self.style:
            out["style"] = dict(self.style)
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Node":
        node_type = NodeType(data["type"])
        raw_data = data.get("data")
        style = data.get("style")
        return cls(
            id=str(data["id"]),
            type=node_type,
            position=Position.from_dict(data.get("position")),
            data=parse_node_data(node_type, raw_data if isinstance(raw_data, dict) else {}),
            width=_opt_float(data.get("width")),
            height=_opt_float(data.get("height")),
            style=dict(style) if isinstance(style, dict) else {},
            extra=_extra(data, _NODE_KEYS),
        )


_EDGE_KEYS = frozenset({"id", "source", "sourceHandle", "target", "targetHandle"})


@dataclass(frozen=True)
class Edge:
    id: str
    source: str
    target: str
    source_handle: str | None = None
    target_handle: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.extra,
            "id": self.id,
            "source": self.source,
            "sourceHandle": self.source_handle,
            "target": self.target,
            "targetHandle": self.target_handle,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Edge":
        source_handle = data.get("sourceHandle")
        target_handle = data.get("targetHandle")
        return cls(
            id=str(data["id"]),
            source=str(data["source"]),
            target=str(data["target"]),
            source_handle=str(source_handle) if source_handle is not None else None,
            target_handle=str(target_handle) if target_handle is not None else None,
            extra=_extra(data, _EDGE_KEYS),
        )
