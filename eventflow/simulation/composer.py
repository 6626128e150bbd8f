from __future__ import annotations

import logging
from collections.abc import Sequence
from random import Random

from eventflow.schema.documents import EventDocument, find_event
from eventflow.schema.nodes import Edge, EventData, Node, ReferenceData
from eventflow.schema.results import ComposedPrompt, PromptPart
from eventflow.simulation.graph_query import GraphView
from eventflow.simulation.inheritance import collect_inherited, join_prompt


logger = logging.getLogger(__name__)

PERSPECTIVE_TAG = "perspective, foreshortening"
FROM_ABOVE_TAG = "from above"
FROM_BELOW_TAG = "from below"
# Downstream generators expand `$a|b$` into one of the alternatives.
ABOVE_OR_BELOW_TAG = "$from above|from below$"
FROM_SIDE_TAG = "from side"


def camera_parts(data: EventData) -> list[PromptPart]:
    parts: list[PromptPart] = []
    if data.use_perspective:
        parts.append(PromptPart(label="Perspective", prompt=PERSPECTIVE_TAG, type="shot"))
    if data.camera_above and data.camera_below:
        parts.append(PromptPart(label="Camera", prompt=ABOVE_OR_BELOW_TAG, type="shot"))
    elif data.camera_above:
        parts.append(PromptPart(label="Camera", prompt=FROM_ABOVE_TAG, type="shot"))
    elif data.camera_below:
        parts.append(PromptPart(label="Camera", prompt=FROM_BELOW_TAG, type="shot"))
    if data.camera_side:
        parts.append(PromptPart(label="Camera", prompt=FROM_SIDE_TAG, type="shot"))
    return parts


def _reference_inner_parts(
    ref: ReferenceData,
    all_events: Sequence[EventDocument],
    *,
    randomize: bool,
    rng: Random | None,
    event_trail: frozenset[str],
) -> list[PromptPart]:
    if not ref.reference_id or ref.reference_id in event_trail:
        return []
    target = find_event(all_events, ref.reference_id)
    if target is None or target.end_node is None:
        logger.debug("Reference %s has no resolvable End node", ref.reference_id)
        return []
    inner = collect_inherited(
        target.end_node.id,
        all_events,
        target.nodes,
        target.edges,
        set(),
        select_single_path=True,
        randomize=randomize,
        rng=rng,
        event_trail=event_trail | {ref.reference_id},
    )
    return [
        PromptPart(label=f"(Ref) {c.label}", prompt=c.prompt, type="reference-inner", node_id=c.node_id)
        for c in inner
    ]


def compose(
    node_id: str,
    all_events: Sequence[EventDocument],
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    event_fixed_prompt: str = "",
    *,
    allowed_edges: set[str] | frozenset[str] | None = None,
    randomize: bool = False,
    resolve_references: bool = True,
    rng: Random | None = None,
    event_trail: frozenset[str] = frozenset(),
    graph: GraphView | None = None,
) -> ComposedPrompt:
    """Build the ordered prompt breakdown for one node.

    Without `allowed_edges` a single ancestor path is chosen at every join (the first one,
    or a random one when `randomize` is set). With `allowed_edges` only the walked edges count.
    Callers composing many nodes of one graph pass a shared `graph`.
    """
    if graph is None:
        graph = GraphView(nodes, edges)
    node = graph.node(node_id)
    if node is None:
        return ComposedPrompt()

    parts: list[PromptPart] = []
    if event_fixed_prompt:
        parts.append(PromptPart(label="Event Fixed Prompt", prompt=event_fixed_prompt, type="event"))

    inherited = collect_inherited(
        node_id,
        all_events,
        nodes,
        edges,
        set(),
        select_single_path=allowed_edges is None,
        randomize=randomize,
        allowed_edges=allowed_edges,
        rng=rng,
        event_trail=event_trail,
        graph=graph,
    )
    parts.extend(
        PromptPart(label=f"From: {c.label}", prompt=c.prompt, type=c.type, node_id=c.node_id) for c in inherited
    )

    if resolve_references and isinstance(node.data, ReferenceData):
        parts.extend(
            _reference_inner_parts(
                node.data,
                all_events,
                randomize=randomize,
                rng=rng,
                event_trail=event_trail,
            )
        )

    if isinstance(node.data, EventData):
        local = join_prompt(node.data.local_prompt)
        if local:
            parts.append(PromptPart(label="This Event Only", prompt=local, type="local"))

    forward = join_prompt(node.forward_prompt)
    if forward:
        parts.append(PromptPart(label="Carries Forward", prompt=forward, type="inherited"))

    if isinstance(node.data, EventData):
        parts.extend(camera_parts(node.data))

    return ComposedPrompt.from_parts(parts)
