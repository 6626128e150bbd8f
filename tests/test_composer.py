from __future__ import annotations

from random import Random

from eventflow.schema.documents import EventDocument
from eventflow.schema.nodes import Edge, Node
from eventflow.simulation.composer import compose


def _node(node_id: str, node_type: str = "eventNode", **data) -> Node:  # type: ignore[no-untyped-def]
    return Node.from_dict({"id": node_id, "type": node_type, "data": data})


def _edge(source: str, target: str) -> Edge:
    return Edge(id=f"{source}->{target}", source=source, target=target)


def _graph() -> tuple[list[Node], list[Edge]]:
    nodes = [
        _node("s", "startNode"),
        _node("parent", label="Parent", inheritedPrompt=["rainy city"]),
        _node(
            "target",
            label="Target",
            localPrompt=["red dress"],
            inheritedPrompt=["umbrella"],
            usePerspective=True,
        ),
    ]
    return nodes, [_edge("s", "parent"), _edge("parent", "target")]


def test_missing_node_composes_to_empty() -> None:
    composed = compose("nope", [], [], [])
    assert composed.parts == ()
    assert composed.full == ""


def test_part_order_and_labels() -> None:
    nodes, edges = _graph()
    composed = compose("target", [], nodes, edges, "anime style")
    assert [(p.label, p.type) for p in composed.parts] == [
        ("Event Fixed Prompt", "event"),
        ("From: Parent", "eventNode"),
        ("This Event Only", "local"),
        ("Carries Forward", "inherited"),
        ("Perspective", "shot"),
    ]
    assert composed.parts[1].node_id == "parent"
    assert composed.full == "anime style, rainy city, red dress, umbrella, perspective, foreshortening"


def test_empty_allowed_edges_drops_only_inherited_parts() -> None:
    nodes, edges = _graph()
    composed = compose("target", [], nodes, edges, "anime style", allowed_edges=frozenset())
    assert [p.type for p in composed.parts] == ["event", "local", "inherited", "shot"]


def test_compose_is_stable_for_same_allowed_edges() -> None:
    nodes, edges = _graph()
    allowed = frozenset({"s->parent", "parent->target"})
    first = compose("target", [], nodes, edges, "x", allowed_edges=allowed, randomize=False)
    second = compose("target", [], nodes, edges, "x", allowed_edges=allowed, randomize=False)
    assert first.full == second.full


def test_camera_tags() -> None:
    def _full(**flags) -> str:  # type: ignore[no-untyped-def]
        return compose("n", [], [_node("n", **flags)], []).full

    assert _full(cameraAbove=True) == "from above"
    assert _full(cameraBelow=True) == "from below"
    assert _full(cameraAbove=True, cameraBelow=True) == "$from above|from below$"
    assert _full(cameraSide=True) == "from side"
    assert _full(cameraAbove=True, cameraSide=True) == "from above, from side"
    assert _full(usePerspective=True, cameraBelow=True) == "perspective, foreshortening, from below"
    assert _full() == ""


def test_carry_forward_node_has_no_local_or_camera_parts() -> None:
    composed = compose("cf", [], [_node("cf", "carryForwardNode", label="CF", inheritedPrompt=["fog"])], [])
    assert [(p.label, p.prompt) for p in composed.parts] == [("Carries Forward", "fog")]


def test_blank_prompt_entries_are_skipped_in_full() -> None:
    composed = compose("n", [], [_node("n", localPrompt=["", "  ", "kept"])], [], "")
    assert composed.full == "kept"


def _inner_event() -> EventDocument:
    return EventDocument.from_dict(
        {
            "id": "inner",
            "name": "Inner",
            "nodes": [
                {"id": "is", "type": "startNode", "data": {}},
                {"id": "ie", "type": "eventNode", "data": {"label": "Inner scene", "inheritedPrompt": ["snow"]}},
                {"id": "iend", "type": "endNode", "data": {}},
            ],
            "edges": [
                {"id": "is-ie", "source": "is", "target": "ie"},
                {"id": "ie-iend", "source": "ie", "target": "iend"},
            ],
        }
    )


def test_reference_node_lists_inner_parts() -> None:
    nodes = [_node("ref", "referenceNode", label="Ref", referenceId="inner")]
    composed = compose("ref", [_inner_event()], nodes, [])
    assert [(p.label, p.prompt, p.type, p.node_id) for p in composed.parts] == [
        ("(Ref) Inner scene", "snow", "reference-inner", "ie"),
    ]

    unresolved = compose("ref", [_inner_event()], nodes, [], resolve_references=False)
    assert unresolved.parts == ()


def test_reference_inner_parts_respect_event_trail() -> None:
    nodes = [_node("ref", "referenceNode", referenceId="inner")]
    composed = compose("ref", [_inner_event()], nodes, [], event_trail=frozenset({"inner"}))
    assert composed.parts == ()


def test_randomized_preview_picks_one_parent() -> None:
    nodes = [
        _node("left", label="L", inheritedPrompt=["left"]),
        _node("right", label="R", inheritedPrompt=["right"]),
        _node("join"),
    ]
    edges = [_edge("left", "join"), _edge("right", "join")]
    rng = Random(2)
    seen = {compose("join", [], nodes, edges, randomize=True, rng=rng).full for _ in range(100)}
    assert seen == {"left", "right"}
