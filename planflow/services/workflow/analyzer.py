"""Dependency Graph Analyzer for the worker capability graph.

TAG: [GRAPH] [ANALYZER]

The capability graph is derived on demand from the worker registry's
``dependencies.upstream`` / ``dependencies.downstream`` declarations. It is a
registry-wide planning hint and is never merged with a plan's stage graph.

Edges come from upstream declarations only: ``(upstream, worker)`` for each
declared upstream id that is registered. Cycle detection follows downstream
declarations only. The two relations are usually mirror images; when they
are not, ordering and cycle reporting can disagree, which is why
``get_execution_order`` re-checks the Kahn result length.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, TypeAlias

from planflow.core.logging import get_logger
from planflow.schemas.validation import (
    DependencyGraph,
    DependencyValidationResult,
    MissingDependency,
)
from planflow.services.workflow.algorithms import GraphAlgorithms
from planflow.services.workflow.exceptions import CircularDependencyError
from planflow.services.workflow.graph import Graph

if TYPE_CHECKING:
    from planflow.schemas.worker import WorkerDefinition
    from planflow.services.registry.worker_registry import WorkerRegistry

logger = get_logger(__name__)

_Graph: TypeAlias = Graph[str]


class DependencyGraphAnalyzer:
    """Graph queries over the worker capability graph.

    Every query reads the registry's current contents; nothing is cached.

    Example:
        >>> analyzer = DependencyGraphAnalyzer(workers)
        >>> analyzer.get_execution_order(["bunker_agent", "route_agent"])
        ['route_agent', 'bunker_agent']
    """

    def __init__(self, registry: WorkerRegistry) -> None:
        self._registry = registry

    # -------------------------------------------------------------------------
    # Graph construction
    # -------------------------------------------------------------------------

    def build_graph(self) -> _Graph:
        """Capability graph with edges ``upstream -> worker``."""
        workers = self._registry.get_all()
        graph = Graph[str](w.id for w in workers)
        for upstream, worker_id in self._upstream_edges(workers):
            graph.add_edge(upstream, worker_id)
        return graph

    def _downstream_graph(self) -> _Graph:
        workers = self._registry.get_all()
        graph = Graph[str](w.id for w in workers)
        for worker in workers:
            for downstream in worker.dependencies.downstream:
                if self._registry.has(downstream):
                    graph.add_edge(worker.id, downstream)
        return graph

    def _upstream_edges(self, workers: list[WorkerDefinition]) -> list[tuple[str, str]]:
        return [
            (upstream, worker.id)
            for worker in workers
            for upstream in worker.dependencies.upstream
            if self._registry.has(upstream)
        ]

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_dependency_graph(self) -> DependencyGraph:
        """Snapshot of nodes, upstream-derived edges and downstream cycles."""
        workers = self._registry.get_all()
        return DependencyGraph(
            nodes=[w.id for w in workers],
            edges=self._upstream_edges(workers),
            cycles=self.detect_cycles(),
        )

    def detect_cycles(self) -> list[list[str]]:
        """Cycles along downstream declarations, at most one per DFS root.

        Returns:
            Cycle paths such as ``["a", "b", "a"]``; empty when acyclic.
        """
        cycles = GraphAlgorithms.detect_cycles(self._downstream_graph())
        if cycles:
            logger.warning(
                f"Capability graph has {len(cycles)} cycle(s)",
                extra={"context": {"cycles": cycles}},
            )
        return cycles

    def get_execution_order(self, worker_ids: Iterable[str]) -> list[str]:
        """Topological order of ``worker_ids`` over the induced capability graph.

        Args:
            worker_ids: Subset to order. Duplicates are ignored; unregistered
                ids are ordered as isolated nodes.

        Returns:
            Every id once, upstream workers before their dependents.

        Raises:
            CircularDependencyError: If a known cycle lies entirely inside the
                subset (checked first), or if Kahn's algorithm cannot place
                every id.
        """
        ids = list(dict.fromkeys(worker_ids))
        subset = set(ids)

        known_cycles = self.detect_cycles()
        inside = [cycle for cycle in known_cycles if set(cycle) <= subset]
        if inside:
            raise CircularDependencyError(inside[0], cycles=inside)

        sub = self.build_graph().subgraph(ids)
        order = GraphAlgorithms.topological_sort(sub)
        if len(order) != len(ids):
            residual = GraphAlgorithms.detect_cycle(sub)
            if residual is None:
                placed = set(order)
                residual = [node for node in ids if node not in placed]
            raise CircularDependencyError(residual)
        return order

    def get_parallel_groups(self, worker_ids: Iterable[str]) -> list[list[str]]:
        """Partition ``worker_ids`` into successive parallel groups.

        Repeated topological peeling of the induced capability graph: each
        wave holds ids whose upstream workers all sit in earlier waves. In a
        wave, parallel-capable workers form one group and every other id
        forms a singleton group. Groups are returned in wave order, so
        running them one after another respects every edge.

        Raises:
            CircularDependencyError: If the subset is cyclic.
        """
        ids = list(dict.fromkeys(worker_ids))
        sub = self.build_graph().subgraph(ids)
        levels = GraphAlgorithms.topological_sort_levels(sub)
        if levels is None:
            raise CircularDependencyError(GraphAlgorithms.detect_cycle(sub) or ids)

        groups: list[list[str]] = []
        for level in levels:
            parallel = [worker_id for worker_id in level if self._is_parallel(worker_id)]
            if parallel:
                groups.append(parallel)
            groups.extend([worker_id] for worker_id in level if not self._is_parallel(worker_id))
        return groups

    def get_upstream_dependencies(self, worker_id: str) -> list[str]:
        """Transitive closure over declared ``upstream`` ids."""
        return GraphAlgorithms.collect_reachable(worker_id, self._declared_upstream)

    def get_downstream_dependencies(self, worker_id: str) -> list[str]:
        """Transitive closure over declared ``downstream`` ids."""
        return GraphAlgorithms.collect_reachable(worker_id, self._declared_downstream)

    def can_run_in_parallel(self, worker_a: str, worker_b: str) -> bool:
        """True iff both workers are parallel-capable and not directly adjacent.

        Only direct edges are checked; transitive relationships are not.
        Unknown ids are never parallel.
        """
        if not (self._is_parallel(worker_a) and self._is_parallel(worker_b)):
            return False
        return not self.build_graph().is_adjacent(worker_a, worker_b)

    def validate_dependencies(self) -> DependencyValidationResult:
        """Report declared upstream/downstream ids that are not registered."""
        missing: list[MissingDependency] = []
        for worker in self._registry.get_all():
            declared = [*worker.dependencies.upstream, *worker.dependencies.downstream]
            unknown = [dep for dep in dict.fromkeys(declared) if not self._registry.has(dep)]
            if unknown:
                missing.append(MissingDependency(worker_id=worker.id, missing_deps=unknown))
        return DependencyValidationResult(valid=not missing, missing=missing)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _is_parallel(self, worker_id: str) -> bool:
        worker = self._registry.get_by_id(worker_id)
        return worker is not None and worker.execution.can_run_in_parallel

    def _declared_upstream(self, worker_id: str) -> list[str]:
        worker = self._registry.get_by_id(worker_id)
        return worker.dependencies.upstream if worker is not None else []

    def _declared_downstream(self, worker_id: str) -> list[str]:
        worker = self._registry.get_by_id(worker_id)
        return worker.dependencies.downstream if worker is not None else []


__all__ = ["DependencyGraphAnalyzer"]
