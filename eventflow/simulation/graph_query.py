from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from eventflow.schema.nodes import Edge, GroupData, Node, NodeType


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParentLink:
    node: Node
    edge_id: str
    source_handle: str | None


@dataclass(frozen=True)
class Ancestor:
    """One upstream node as listed in the inheritance preview."""

    node: Node
    depth: int
    prompt: str

    def to_dict(self) -> dict[str, object]:
        return {
            "nodeId": self.node.id,
            "nodeLabel": self.node.label or "Unknown",
            "nodeType": self.node.type.value,
            "prompt": self.prompt,
            "depth": self.depth,
        }


def node_index(nodes: Iterable[Node]) -> dict[str, Node]:
    index: dict[str, Node] = {}
    for node in nodes:
        # First occurrence wins on duplicate ids.
        index.setdefault(node.id, node)
    return index


def start_nodes(nodes: Iterable[Node]) -> list[Node]:
    return [n for n in nodes if n.type == NodeType.START]


def outgoing_edges(node_id: str, edges: Iterable[Edge]) -> list[Edge]:
    return [e for e in edges if e.source == node_id]


class GraphView:
    """Lookup tables for one node/edge graph, built once and shared by every walk over it."""

    def __init__(self, nodes: Iterable[Node], edges: Iterable[Edge]):
        self.nodes = node_index(nodes)
        self._incoming: dict[str, list[Edge]] = {}
        self._outgoing: dict[str, list[Edge]] = {}
        for edge in edges:
            self._incoming.setdefault(edge.target, []).append(edge)
            self._outgoing.setdefault(edge.source, []).append(edge)

    def node(self, node_id: str) -> Node | None:
        return self.nodes.get(node_id)

    def outgoing(self, node_id: str) -> list[Edge]:
        return list(self._outgoing.get(node_id, ()))

    def parents(self, node_id: str) -> list[ParentLink]:
        links: list[ParentLink] = []
        for edge in self._incoming.get(node_id, ()):
            parent = self.nodes.get(edge.source)
            if parent is None:
                logger.debug("Ignoring dangling edge %s (source %s not found)", edge.id, edge.source)
                continue
            links.append(ParentLink(node=parent, edge_id=edge.id, source_handle=edge.source_handle))
        return links


def parents_of(node_id: str, nodes: Sequence[Node], edges: Iterable[Edge]) -> list[ParentLink]:
    return GraphView(nodes, edges).parents(node_id)


def _preview_prompt(node: Node) -> str:
    match node.data:
        case GroupData(fixed_prompt=fixed):
            return fixed
        case _:
            return ", ".join(p for p in node.forward_prompt if p.strip())


def ancestors_of(node_id: str, nodes: Sequence[Node], edges: Sequence[Edge]) -> list[Ancestor]:
    """Depth-first upstream listing: each parent, then that parent's own ancestors."""
    graph = GraphView(nodes, edges)
    listed: set[str] = {node_id}
    out: list[Ancestor] = []

    def walk(current_id: str, depth: int) -> None:
        for link in graph.parents(current_id):
            if link.node.id in listed:
                continue
            listed.add(link.node.id)
            out.append(Ancestor(node=link.node, depth=depth, prompt=_preview_prompt(link.node)))
            walk(link.node.id, depth + 1)

    walk(node_id, 0)
    return out


def spatial_children_of(field_node: Node, nodes: Iterable[Node]) -> list[Node]:
    """Nodes whose top-left corner lies inside the field's box `[x, x+w) x [y, y+h)`."""
    width, height = field_node.size
    left, top = field_node.position.x, field_node.position.y
    children: list[Node] = []
    for node in nodes:
        if node.id == field_node.id or node.type == NodeType.FIELD:
            continue
        x, y = node.position.x, node.position.y
        if left <= x < left + width and top <= y < top + height:
            children.append(node)
    return children
