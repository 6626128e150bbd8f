from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from random import Random

from eventflow.schema.documents import EventDocument, find_event
from eventflow.schema.nodes import Edge, GroupData, Node, ReferenceData
from eventflow.schema.results import PromptContribution
from eventflow.simulation.graph_query import GraphView


logger = logging.getLogger(__name__)


def join_prompt(entries: Iterable[str]) -> str:
    """Drop blank entries and join the rest with a comma."""
    return ", ".join(e for e in entries if e and e.strip())


def _reference_contributions(
    ref: ReferenceData,
    all_events: Sequence[EventDocument],
    *,
    randomize: bool,
    rng: Random | None,
    event_trail: frozenset[str],
) -> list[PromptContribution]:
    if not ref.reference_id:
        return []
    if ref.reference_id in event_trail:
        logger.debug("Reference cycle through event %s; not descending again", ref.reference_id)
        return []
    target = find_event(all_events, ref.reference_id)
    if target is None:
        logger.debug("Reference to missing event %s", ref.reference_id)
        return []
    end = target.end_node
    if end is None:
        return []
    # The referenced graph has its own edge ids, so no allow-set applies there.
    return collect_inherited(
        end.id,
        all_events,
        target.nodes,
        target.edges,
        set(),
        disabled_override=(),
        select_single_path=True,
        randomize=randomize,
        allowed_edges=None,
        rng=rng,
        event_trail=event_trail | {ref.reference_id},
    )


def _own_contribution(parent: Node) -> PromptContribution | None:
    match parent.data:
        case GroupData(fixed_prompt=fixed) if fixed.strip():
            return PromptContribution(
                node_id=parent.id,
                label=parent.label or "Group",
                prompt=fixed,
                type=parent.type.value,
            )
        case _:
            text = join_prompt(parent.forward_prompt)
            if not text:
                return None
            return PromptContribution(
                node_id=parent.id,
                label=parent.label or "Unknown",
                prompt=text,
                type=parent.type.value,
            )


def collect_inherited(
    node_id: str,
    all_events: Sequence[EventDocument],
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    visited: set[str] | None = None,
    *,
    disabled_override: Iterable[str] | None = None,
    select_single_path: bool = False,
    randomize: bool = False,
    allowed_edges: set[str] | frozenset[str] | None = None,
    rng: Random | None = None,
    event_trail: frozenset[str] = frozenset(),
    graph: GraphView | None = None,
) -> list[PromptContribution]:
    """Walk upstream from `node_id`, returning ancestor contributions oldest first.

    The disabled set of the node the walk started from applies along the whole chain.
    `graph` must describe `nodes`/`edges`; it is built here when not supplied.
    """
    if visited is None:
        visited = set()
    if graph is None:
        graph = GraphView(nodes, edges)
    node = graph.node(node_id)
    if node is None or node_id in visited:
        return []
    visited.add(node_id)

    disabled = frozenset(disabled_override) if disabled_override is not None else frozenset(node.disabled_sources)

    links = graph.parents(node_id)
    if allowed_edges is not None:
        links = [link for link in links if link.edge_id in allowed_edges]
    if select_single_path and len(links) > 1:
        if randomize:
            rng = rng or Random()
            links = [rng.choice(links)]
        else:
            links = links[:1]

    out: list[PromptContribution] = []
    for link in links:
        parent = link.node
        out.extend(
            collect_inherited(
                parent.id,
                all_events,
                nodes,
                edges,
                visited,
                disabled_override=disabled,
                select_single_path=select_single_path,
                randomize=randomize,
                allowed_edges=allowed_edges,
                rng=rng,
                event_trail=event_trail,
                graph=graph,
            )
        )
        if parent.id in disabled:
            continue
        if isinstance(parent.data, ReferenceData):
            out.extend(
                _reference_contributions(
                    parent.data,
                    all_events,
                    randomize=randomize,
                    rng=rng,
                    event_trail=event_trail,
                )
            )
        contribution = _own_contribution(parent)
        if contribution is not None:
            out.append(contribution)
    return out
