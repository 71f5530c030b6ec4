"""Directed graph data structure for capability and stage graphs.

TAG: [GRAPH]

This module provides a small directed graph used for both the registry-wide
capability graph (worker ids) and the per-plan stage graph (stage ids).
Node iteration follows insertion order, so every algorithm built on top of
it is deterministic for a given input order.

Time Complexity:
- Node/Edge addition: O(1) amortized
- Successor/predecessor lookup: O(1)

Space Complexity: O(V + E)
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Hashable, Iterable, Iterator
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from planflow.schemas.plan import PlanStage

NodeId = TypeVar("NodeId", bound=Hashable)


class Graph(Generic[NodeId]):
    """Directed graph with forward and reverse adjacency.

    Type Parameters:
        NodeId: Hashable node identifier (worker id or stage id).

    Example:
        >>> graph = Graph[str]()
        >>> graph.add_edge("route_agent", "bunker_agent")
        >>> graph.get_successors("route_agent")
        ['bunker_agent']
    """

    __slots__ = ("_adjacency", "_edge_count", "_nodes", "_reverse_adjacency")

    def __init__(self, nodes: Iterable[NodeId] = ()) -> None:
        """Initialize a graph, optionally seeded with isolated nodes."""
        self._adjacency: defaultdict[NodeId, list[NodeId]] = defaultdict(list)
        self._reverse_adjacency: defaultdict[NodeId, list[NodeId]] = defaultdict(list)
        self._nodes: dict[NodeId, None] = {}
        self._edge_count: int = 0
        for node in nodes:
            self.add_node(node)

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return self._edge_count

    @property
    def nodes(self) -> list[NodeId]:
        """Nodes in insertion order."""
        return list(self._nodes)

    def add_node(self, node_id: NodeId) -> None:
        """Add a node. No-op if it already exists."""
        self._nodes.setdefault(node_id, None)

    def add_edge(self, source: NodeId, target: NodeId) -> None:
        """Add a directed edge from source to target.

        Both nodes are added if missing. A repeated edge is ignored so that
        in-degree counts stay consistent with distinct dependencies.

        Args:
            source: The source node ID.
            target: The target node ID.
        """
        self.add_node(source)
        self.add_node(target)
        if target in self._adjacency[source]:
            return
        self._adjacency[source].append(target)
        self._reverse_adjacency[target].append(source)
        self._edge_count += 1

    def has_edge(self, source: NodeId, target: NodeId) -> bool:
        return target in self._adjacency.get(source, [])

    def is_adjacent(self, a: NodeId, b: NodeId) -> bool:
        """True if an edge connects ``a`` and ``b`` in either direction."""
        return self.has_edge(a, b) or self.has_edge(b, a)

    def get_successors(self, node_id: NodeId) -> list[NodeId]:
        """Get all successor nodes (outgoing neighbors).

        Returns:
            List of successor node IDs. Empty list if node has no successors.
        """
        return self._adjacency.get(node_id, [])

    def get_predecessors(self, node_id: NodeId) -> list[NodeId]:
        """Get all predecessor nodes (incoming neighbors).

        Returns:
            List of predecessor node IDs. Empty list if node has no predecessors.
        """
        return self._reverse_adjacency.get(node_id, [])

    def get_in_degree(self, node_id: NodeId) -> int:
        return len(self._reverse_adjacency.get(node_id, []))

    def get_out_degree(self, node_id: NodeId) -> int:
        return len(self._adjacency.get(node_id, []))

    def edges(self) -> list[tuple[NodeId, NodeId]]:
        """All edges as (source, target) pairs, grouped by source in node order."""
        return [(source, target) for source in self._nodes for target in self._adjacency.get(source, [])]

    def subgraph(self, node_ids: Iterable[NodeId]) -> Graph[NodeId]:
        """Induced subgraph over ``node_ids``, keeping their given order.

        Ids not present in this graph are added as isolated nodes.
        """
        sub = Graph[NodeId](node_ids)
        for source in sub._nodes:
            for target in self._adjacency.get(source, []):
                if target in sub._nodes:
                    sub.add_edge(source, target)
        return sub

    def copy(self) -> Graph[NodeId]:
        """Create a copy with independent adjacency lists."""
        new_graph = Graph[NodeId]()
        new_graph._nodes = dict(self._nodes)
        new_graph._adjacency = defaultdict(
            list,
            {k: v.copy() for k, v in self._adjacency.items()},
        )
        new_graph._reverse_adjacency = defaultdict(
            list,
            {k: v.copy() for k, v in self._reverse_adjacency.items()},
        )
        new_graph._edge_count = self._edge_count
        return new_graph

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __iter__(self) -> Iterator[NodeId]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __repr__(self) -> str:
        return f"Graph(nodes={self.node_count}, edges={self.edge_count})"


def build_stage_graph(stages: Iterable[PlanStage]) -> Graph[str]:
    """Stage graph of a plan with edges ``dependency -> dependent``.

    Nodes keep plan order. Dependencies on ids that are not stages of the
    plan are dropped; the validator reports those separately.
    """
    stages = list(stages)
    graph = Graph[str](stage.stage_id for stage in stages)
    for stage in stages:
        for dep in stage.depends_on:
            if dep in graph:
                graph.add_edge(dep, stage.stage_id)
    return graph


__all__ = ["Graph", "NodeId", "build_stage_graph"]
