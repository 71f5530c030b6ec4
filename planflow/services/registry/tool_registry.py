"""Tool Registry.

TAG: [REGISTRY] [TOOLS]

Catalog of the lower-level operations workers invoke. Registration follows
the shared catalog pattern and additionally rejects circular
``dependencies.internal`` chains through already-registered tools.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from planflow.core.config import Settings, get_settings
from planflow.core.logging import get_logger
from planflow.models.enums import ToolCategory, ToolCost
from planflow.schemas.tool import ToolDefinition, ToolSearchCriteria
from planflow.services.registry.base import CatalogRegistry
from planflow.services.registry.handlers import HandlerTable, ToolHandler, create_tool_table
from planflow.services.workflow.algorithms import GraphAlgorithms
from planflow.services.workflow.graph import Graph

logger = get_logger(__name__)


class ToolRegistry(CatalogRegistry[ToolDefinition]):
    """Registry of tool definitions.

    Example:
        tools = ToolRegistry()
        tools.handlers.register("fetch_route", fetch_route)
        tools.register({...})
        reliable = tools.search(ToolSearchCriteria(min_reliability=0.9))
    """

    kind = "tool"
    model = ToolDefinition

    def __init__(
        self,
        handlers: HandlerTable[ToolHandler] | None = None,
        *,
        ema_alpha: float | None = None,
        settings: Settings | None = None,
    ) -> None:
        super().__init__(handlers if handlers is not None else create_tool_table())
        self._settings = settings or get_settings()
        self._ema_alpha = self._settings.METRICS_EMA_ALPHA if ema_alpha is None else ema_alpha

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def get_by_category(self, category: ToolCategory | str) -> list[ToolDefinition]:
        return [tool for tool in self._entries.values() if tool.category == category]

    def get_by_worker(self, worker_id: str) -> list[ToolDefinition]:
        """Tools assigned to ``worker_id``."""
        return [tool for tool in self._entries.values() if worker_id in tool.worker_ids]

    def search(
        self,
        criteria: ToolSearchCriteria | Mapping[str, Any] | None = None,
        **filters: Any,
    ) -> list[ToolDefinition]:
        """AND-combine the given filters.

        Accepts a ToolSearchCriteria, a mapping, or keyword filters.
        """
        if criteria is None:
            criteria = ToolSearchCriteria(**filters)
        elif not isinstance(criteria, ToolSearchCriteria):
            criteria = ToolSearchCriteria.model_validate(criteria)

        results = list(self._entries.values())
        if criteria.category is not None:
            results = [t for t in results if t.category == criteria.category]
        if criteria.domain is not None:
            results = [t for t in results if criteria.domain in t.domain]
        if criteria.worker_id is not None:
            results = [t for t in results if criteria.worker_id in t.worker_ids]
        if criteria.min_reliability is not None:
            results = [t for t in results if t.reliability >= criteria.min_reliability]
        if criteria.max_latency_ms is not None:
            results = [t for t in results if t.avg_latency_ms <= criteria.max_latency_ms]
        if criteria.cost is not None:
            results = [t for t in results if t.cost == criteria.cost]
        if criteria.exclude_deprecated:
            results = [t for t in results if not t.deprecated]
        return results

    def get_by_reliability(self, min_reliability: float = 0.0) -> list[ToolDefinition]:
        """Tools at or above ``min_reliability``, most reliable first."""
        tools = [t for t in self._entries.values() if t.reliability >= min_reliability]
        return sorted(tools, key=lambda t: t.reliability, reverse=True)

    def get_by_latency(self, max_latency_ms: float | None = None) -> list[ToolDefinition]:
        """Tools at or below ``max_latency_ms`` average latency, fastest first."""
        tools = [
            t
            for t in self._entries.values()
            if max_latency_ms is None or t.avg_latency_ms <= max_latency_ms
        ]
        return sorted(tools, key=lambda t: t.avg_latency_ms)

    def get_cost(self, tool_id: str) -> ToolCost | None:
        tool = self._entries.get(tool_id)
        return ToolCost(tool.cost) if tool is not None else None

    # -------------------------------------------------------------------------
    # Metrics
    # -------------------------------------------------------------------------

    def record_call(self, tool_id: str, success: bool, latency_ms: float) -> None:
        """Record one tool call.

        Updates the call counters and folds the outcome into the reliability
        and average latency moving averages. Unknown ids are logged and
        ignored.
        """
        alpha = self._ema_alpha
        with self._lock:
            tool = self._entries.get(tool_id)
            if tool is None:
                logger.warning(f"Cannot record call for unknown tool: {tool_id}")
                return

            metrics = tool.metrics
            metrics.total_calls += 1
            if success:
                metrics.success_calls += 1
            else:
                metrics.failure_calls += 1
            metrics.last_called_at = datetime.now(UTC)

            tool.reliability = alpha * (1.0 if success else 0.0) + (1 - alpha) * tool.reliability
            tool.avg_latency_ms = alpha * latency_ms + (1 - alpha) * tool.avg_latency_ms

    # -------------------------------------------------------------------------
    # Registration hooks
    # -------------------------------------------------------------------------

    def _check_references(self, entry: ToolDefinition) -> list[str]:
        cycle = self.find_dependency_cycle(entry.id, entry.dependencies.internal)
        if cycle:
            return [f"Circular dependency detected: {' -> '.join(cycle)}"]
        return []

    def _reference_warnings(self, entry: ToolDefinition) -> list[str]:
        unknown = [dep for dep in entry.dependencies.internal if dep != entry.id and dep not in self._entries]
        if unknown:
            return [f"Tool '{entry.id}' depends on unregistered tools: {', '.join(unknown)}"]
        return []

    def find_dependency_cycle(self, tool_id: str, internal: list[str]) -> list[str] | None:
        """Return the cycle ``tool_id -> ... -> tool_id`` its internal deps would close.

        The graph holds the internal dependencies of every registered tool
        other than ``tool_id``; a cycle exists iff one of the new edges
        points at a tool that can already reach ``tool_id``.
        """
        graph = Graph[str]()
        for other in self._entries.values():
            if other.id == tool_id:
                continue
            graph.add_node(other.id)
            for dep in other.dependencies.internal:
                graph.add_edge(other.id, dep)

        for dep in internal:
            cycle = GraphAlgorithms.detect_cycle_with_proposed_edge(graph, tool_id, dep)
            if cycle:
                return cycle
        return None


__all__ = ["ToolRegistry"]
