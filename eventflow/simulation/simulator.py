from __future__ import annotations

import logging
import uuid
from collections import deque
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from random import Random

from eventflow.schema.documents import EventDocument, find_event
from eventflow.schema.mood import MoodConfig
from eventflow.schema.nodes import (
    CONTROL_FLOW_TYPES,
    FALSE_OUTPUT,
    TRUE_OUTPUT,
    BranchData,
    Edge,
    FieldData,
    IfData,
    Node,
    NodeType,
    ReferenceData,
    StartData,
)
from eventflow.schema.results import PromptPart, ResultItem, join_parts
from eventflow.simulation.composer import compose
from eventflow.simulation.graph_query import GraphView, spatial_children_of, start_nodes
from eventflow.simulation.mood import init_mood, mood_part, step
from eventflow.simulation.weighted import pick_n


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimulationOutcome:
    items: tuple[ResultItem, ...]
    mood: int | None = None


def _result_id(node_id: str) -> str:
    return f"{node_id}-{uuid.uuid4().hex[:9]}"


def _apply_start_overrides(
    nodes: Sequence[Node],
    overrides: Mapping[str, bool] | None,
    *,
    first_only: bool = False,
) -> list[Node]:
    """Shadow-copy Start nodes with input flags overridden; other nodes are shared as-is.

    With `first_only` just the first Start node in document order is overridden.
    """
    if not overrides:
        return list(nodes)
    out: list[Node] = []
    applied = False
    for node in nodes:
        if isinstance(node.data, StartData) and not (first_only and applied):
            node = replace(node, data=node.data.with_overrides(dict(overrides)))
            applied = True
        out.append(node)
    return out


def _unlock_field_children(nodes: Sequence[Node], rng: Random) -> tuple[set[str], set[str]]:
    """Return (children of any Field, children picked to emit results)."""
    contained: set[str] = set()
    unlocked: set[str] = set()
    for node in nodes:
        if not isinstance(node.data, FieldData):
            continue
        children = spatial_children_of(node, nodes)
        contained.update(c.id for c in children)
        count = min(node.data.select_count, len(children))
        if count <= 0:
            continue
        weighted = [(c.id, node.data.weight_for(c.id)) for c in children]
        unlocked.update(pick_n(weighted, count, rng))
    return contained, unlocked


def _start_input_flags(starts: Sequence[Node]) -> dict[str, bool]:
    flags: dict[str, bool] = {}
    for start in starts:
        if not isinstance(start.data, StartData):
            continue
        for handle in start.data.inputs:
            flags.setdefault(handle.id, handle.enabled is True)
    return flags


def _branch_edges(edges: Sequence[Edge], rng: Random) -> list[Edge]:
    # Uniform over distinct handles; stored output weights do not bias the pick.
    handles = list(dict.fromkeys(e.source_handle for e in edges))
    if not handles:
        return []
    chosen = rng.choice(handles)
    return [e for e in edges if e.source_handle == chosen]


def _if_edges(data: IfData, edges: Sequence[Edge], flags: Mapping[str, bool]) -> list[Edge]:
    ids = data.condition_input_ids
    all_enabled = bool(ids) and all(flags.get(input_id, False) for input_id in ids)
    handle = TRUE_OUTPUT if all_enabled else FALSE_OUTPUT
    return [e for e in edges if e.source_handle == handle]


def run_simulation(
    all_events: Sequence[EventDocument],
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    event_fixed_prompt: str = "",
    incoming_context: Sequence[PromptPart] = (),
    visited_event_ids: frozenset[str] = frozenset(),
    start_input_overrides: Mapping[str, bool] | None = None,
    mood_config: MoodConfig | None = None,
    incoming_mood: int | None = None,
    *,
    rng: Random | None = None,
) -> SimulationOutcome:
    """Walk the graph breadth-first from its Start nodes and emit one item per visible node.

    Referenced Events are simulated inline; `visited_event_ids` holds the Events currently
    being expanded so mutual references terminate.
    """
    rng = rng or Random()
    nodes = _apply_start_overrides(nodes, start_input_overrides)
    starts = sorted(start_nodes(nodes), key=lambda n: n.position.y)
    if not starts:
        logger.debug("No Start node; nothing to simulate")
        return SimulationOutcome(items=(), mood=incoming_mood)

    graph = GraphView(nodes, edges)
    field_children, unlocked = _unlock_field_children(nodes, rng)
    flags = _start_input_flags(starts)
    mood = init_mood(mood_config, rng, incoming_mood)

    items: list[ResultItem] = []
    queue: deque[Node] = deque(starts)
    visited_nodes: set[str] = set()
    visited_edges: set[str] = set()

    while queue:
        node = queue.popleft()
        if node.id in visited_nodes:
            continue
        visited_nodes.add(node.id)

        if isinstance(node.data, ReferenceData):
            ref_id = node.data.reference_id
            target = find_event(all_events, ref_id)
            if ref_id and target is not None and ref_id not in visited_event_ids:
                own = compose(
                    node.id,
                    all_events,
                    nodes,
                    edges,
                    event_fixed_prompt,
                    allowed_edges=visited_edges,
                    randomize=False,
                    resolve_references=False,
                    rng=rng,
                    event_trail=visited_event_ids,
                    graph=graph,
                )
                # Reference overrides target the referenced graph's first Start node only.
                inner_nodes = _apply_start_overrides(target.nodes, node.data.input_overrides, first_only=True)
                inner = run_simulation(
                    all_events,
                    inner_nodes,
                    target.edges,
                    target.fixed_prompt,
                    (*incoming_context, *own.parts),
                    visited_event_ids | {ref_id},
                    None,
                    mood_config,
                    mood,
                    rng=rng,
                )
                items.extend(inner.items)
                mood = inner.mood
            else:
                logger.debug("Skipping reference %s on node %s (missing or already expanding)", ref_id, node.id)
        elif node.type not in CONTROL_FLOW_TYPES and (node.id not in field_children or node.id in unlocked):
            composed = compose(
                node.id,
                all_events,
                nodes,
                edges,
                event_fixed_prompt,
                allowed_edges=visited_edges,
                randomize=False,
                resolve_references=False,
                rng=rng,
                event_trail=visited_event_ids,
                graph=graph,
            )
            parts = [*incoming_context, *composed.parts]
            mood_step = step(mood, node, mood_config, rng)
            mood = mood_step.mood
            if mood_step.tag:
                parts.append(mood_part(mood_step.tag))
            items.append(
                ResultItem(
                    id=_result_id(node.id),
                    original_id=node.id,
                    label=node.label or node.type.value,
                    type=node.type.value,
                    prompt=join_parts(parts),
                    parts=tuple(parts),
                    mood=mood,
                    mood_tag=mood_step.tag,
                )
            )

        if node.type == NodeType.END:
            continue

        candidates = graph.outgoing(node.id)
        match node.data:
            case BranchData():
                chosen = _branch_edges(candidates, rng)
            case IfData():
                chosen = _if_edges(node.data, candidates, flags)
            case _:
                chosen = candidates

        for edge in chosen:
            visited_edges.add(edge.id)
            target_node = graph.node(edge.target)
            if target_node is None:
                logger.debug("Edge %s points at missing node %s", edge.id, edge.target)
                continue
            queue.append(target_node)

    return SimulationOutcome(items=tuple(items), mood=mood)


def simulate(
    all_events: Sequence[EventDocument],
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    event_fixed_prompt: str = "",
    incoming_context: Sequence[PromptPart] = (),
    visited_event_ids: frozenset[str] = frozenset(),
    start_input_overrides: Mapping[str, bool] | None = None,
    mood_config: MoodConfig | None = None,
    incoming_mood: int | None = None,
    *,
    rng: Random | None = None,
) -> list[ResultItem]:
    outcome = run_simulation(
        all_events,
        nodes,
        edges,
        event_fixed_prompt,
        incoming_context,
        visited_event_ids,
        start_input_overrides,
        mood_config,
        incoming_mood,
        rng=rng,
    )
    return list(outcome.items)


def simulate_event(
    event: EventDocument,
    all_events: Sequence[EventDocument],
    *,
    overrides: Mapping[str, bool] | None = None,
    mood_config: MoodConfig | None = None,
    incoming_mood: int | None = None,
    rng: Random | None = None,
) -> list[ResultItem]:
    """Simulate a stored Event from the top, guarding against references back into itself."""
    items = simulate(
        all_events,
        event.nodes,
        event.edges,
        event.fixed_prompt,
        (),
        frozenset({event.id}),
        overrides,
        mood_config,
        incoming_mood,
        rng=rng,
    )
    logger.info("Simulated event %s (%s): %d result(s)", event.id, event.name, len(items))
    return items
