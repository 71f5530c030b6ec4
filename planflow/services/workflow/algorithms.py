"""Graph algorithms for capability and stage graph analysis.

TAG: [GRAPH] [ALGORITHMS]

This module provides the graph algorithms shared by the dependency analyzer,
the plan validator, the plan executor and the tool registry:
- Cycle detection using DFS with path tracking (first cycle, or one per root)
- Proposed-edge cycle check using BFS reachability
- Topological sort using Kahn's algorithm (flat and by levels)
- Transitive closure over an arbitrary neighbor relation

Time Complexity:
- Cycle detection: O(V + E)
- Topological sort: O(V + E)
- Closure: O(V + E)

Space Complexity: O(V + E) for all algorithms.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Hashable, Iterable
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from planflow.services.workflow.graph import Graph

NodeId = TypeVar("NodeId", bound=Hashable)


class GraphAlgorithms:
    """Collection of static graph algorithms.

    All algorithms iterate nodes in graph insertion order, so results are
    deterministic for a given construction order.

    Example:
        >>> graph = Graph[str]()
        >>> graph.add_edge("a", "b")
        >>> GraphAlgorithms.detect_cycle(graph) is None
        True
    """

    @staticmethod
    def detect_cycle(graph: Graph[NodeId]) -> list[NodeId] | None:
        """Return the first cycle found by DFS, or None.

        Example:
            >>> graph.add_edge(a, b); graph.add_edge(b, c); graph.add_edge(c, a)
            >>> GraphAlgorithms.detect_cycle(graph)
            [a, b, c, a]
        """
        cycles = GraphAlgorithms.detect_cycles(graph, stop_at_first=True)
        return cycles[0] if cycles else None

    @staticmethod
    def detect_cycles(
        graph: Graph[NodeId],
        roots: Iterable[NodeId] | None = None,
        *,
        stop_at_first: bool = False,
    ) -> list[list[NodeId]]:
        """Detect cycles using DFS with a recursion stack and path.

        A DFS is started from every root that has not been visited yet. When
        a DFS reaches a node already on the recursion stack, the cycle is the
        path slice from that node's first occurrence to the current node,
        closed by repeating the node. Each root reports at most one cycle;
        the search then moves on to the next unvisited root, so disjoint
        cycles are all reported.

        Args:
            graph: The graph to search.
            roots: Start nodes, in order. Defaults to every node.
            stop_at_first: Return as soon as one cycle is found.

        Returns:
            List of cycle paths, e.g. ``[[a, b, a]]``. Empty if acyclic.

        Time Complexity: O(V + E)
        """
        visited: set[NodeId] = set()
        rec_stack: set[NodeId] = set()
        path: list[NodeId] = []
        cycles: list[list[NodeId]] = []

        def dfs(node: NodeId) -> list[NodeId] | None:
            visited.add(node)
            rec_stack.add(node)
            path.append(node)
            try:
                for neighbor in graph.get_successors(node):
                    if neighbor in rec_stack:
                        cycle_start = path.index(neighbor)
                        return [*path[cycle_start:], neighbor]
                    if neighbor not in visited:
                        result = dfs(neighbor)
                        if result:
                            return result
                return None
            finally:
                path.pop()
                rec_stack.discard(node)

        for root in graph.nodes if roots is None else roots:
            if root in visited:
                continue
            cycle = dfs(root)
            if cycle:
                cycles.append(cycle)
                if stop_at_first:
                    break

        return cycles

    @staticmethod
    def detect_cycle_with_proposed_edge(
        graph: Graph[NodeId],
        source: NodeId,
        target: NodeId,
    ) -> list[NodeId] | None:
        """Check if adding ``source -> target`` would create a cycle.

        Instead of checking the entire graph, only checks whether target can
        already reach source.

        Returns:
            The would-be cycle starting and ending at ``source``, or None.

        Example:
            >>> graph.add_edge(a, b); graph.add_edge(b, c)
            >>> GraphAlgorithms.detect_cycle_with_proposed_edge(graph, c, a)
            [c, a, b, c]
        """
        visited: set[NodeId] = set()
        queue: deque[NodeId] = deque([target])
        parent: dict[NodeId, NodeId | None] = {target: None}

        while queue:
            current = queue.popleft()

            if current == source:
                # Walk parents back from source to target
                reversed_path: list[NodeId] = []
                node: NodeId | None = source
                while node is not None:
                    reversed_path.append(node)
                    node = parent.get(node)
                reversed_path.reverse()
                return [source, *reversed_path]

            visited.add(current)

            for neighbor in graph.get_successors(current):
                if neighbor not in visited and neighbor not in parent:
                    parent[neighbor] = current
                    queue.append(neighbor)

        return None

    @staticmethod
    def topological_sort(graph: Graph[NodeId]) -> list[NodeId]:
        """Kahn's algorithm.

        Seeds the queue with zero in-degree nodes in graph order and releases
        successors in edge order. On a cyclic graph the nodes on or behind a
        cycle never reach zero in-degree, so the result is shorter than the
        graph; callers compare lengths to detect that.

        Example:
            >>> graph.add_edge(a, b); graph.add_edge(a, c); graph.add_edge(b, d)
            >>> GraphAlgorithms.topological_sort(graph)
            [a, b, c, d]
        """
        in_degree: dict[NodeId, int] = {node: graph.get_in_degree(node) for node in graph.nodes}
        queue: deque[NodeId] = deque(node for node in graph.nodes if in_degree[node] == 0)
        order: list[NodeId] = []

        while queue:
            node = queue.popleft()
            order.append(node)
            for successor in graph.get_successors(node):
                in_degree[successor] -= 1
                if in_degree[successor] == 0:
                    queue.append(successor)

        return order

    @staticmethod
    def topological_sort_levels(graph: Graph[NodeId]) -> list[list[NodeId]] | None:
        """Kahn's algorithm for level-based topological sort.

        Groups nodes by wave: every node in a level depends only on nodes in
        earlier levels, so no edge ever joins two members of one level.

        Returns:
            List of levels, or None if the graph contains a cycle.

        Example:
            >>> # a -> b, a -> c, b -> d, c -> d
            >>> GraphAlgorithms.topological_sort_levels(graph)
            [[a], [b, c], [d]]
        """
        in_degree: dict[NodeId, int] = {node: graph.get_in_degree(node) for node in graph.nodes}
        current: list[NodeId] = [node for node in graph.nodes if in_degree[node] == 0]
        levels: list[list[NodeId]] = []
        placed = 0

        while current:
            levels.append(current)
            placed += len(current)
            released: list[NodeId] = []
            for node in current:
                for successor in graph.get_successors(node):
                    in_degree[successor] -= 1
                    if in_degree[successor] == 0:
                        released.append(successor)
            current = released

        if placed != graph.node_count:
            return None
        return levels

    @staticmethod
    def collect_reachable(
        start: NodeId,
        neighbors: Callable[[NodeId], Iterable[NodeId]],
    ) -> list[NodeId]:
        """Transitive closure of ``start`` under ``neighbors`` via DFS.

        ``start`` itself is not included unless a cycle leads back to it.
        Order is DFS discovery order.
        """
        visited: set[NodeId] = set()
        result: list[NodeId] = []

        def dfs(node: NodeId) -> None:
            for neighbor in neighbors(node):
                if neighbor in visited:
                    continue
                visited.add(neighbor)
                result.append(neighbor)
                dfs(neighbor)

        dfs(start)
        return result


__all__ = ["GraphAlgorithms"]
