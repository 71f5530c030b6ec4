"""Worker Registry.

TAG: [REGISTRY] [WORKERS]

Canonical catalog of worker definitions. One instance is built at startup
and handed to the analyzer, validator and executor; there is no module-level
singleton.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from planflow.core.config import Settings, get_settings
from planflow.core.logging import get_logger
from planflow.schemas.worker import WorkerDefinition, WorkerSearchCriteria
from planflow.services.registry.base import CatalogRegistry
from planflow.services.registry.handlers import HandlerTable, Worker, create_worker_table

if TYPE_CHECKING:
    from planflow.services.registry.tool_registry import ToolRegistry

logger = get_logger(__name__)


class WorkerRegistry(CatalogRegistry[WorkerDefinition]):
    """Registry of worker definitions.

    Registration order:
        1. Exhaustive shape validation plus implementation handle check
        2. Duplicate id check
        3. Every required tool ref must exist in the ToolRegistry

    Example:
        tools = ToolRegistry()
        workers = WorkerRegistry(tools)
        workers.handlers.register("route_worker", RouteWorker())
        workers.register(route_definition)
        worker = workers.get_handler("route_agent")
    """

    kind = "worker"
    model = WorkerDefinition

    def __init__(
        self,
        tool_registry: ToolRegistry,
        handlers: HandlerTable[Worker] | None = None,
        *,
        ema_alpha: float | None = None,
        settings: Settings | None = None,
    ) -> None:
        super().__init__(handlers if handlers is not None else create_worker_table())
        self._tools = tool_registry
        self._settings = settings or get_settings()
        self._ema_alpha = self._settings.METRICS_EMA_ALPHA if ema_alpha is None else ema_alpha

    @property
    def tool_registry(self) -> ToolRegistry:
        return self._tools

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def get_by_domain(self, domain: str) -> list[WorkerDefinition]:
        return [w for w in self._entries.values() if domain in w.domain]

    def get_by_capability(self, capability: str) -> list[WorkerDefinition]:
        return [w for w in self._entries.values() if capability in w.capabilities]

    def find_by_intent(self, intent: str) -> list[WorkerDefinition]:
        """Workers that declare ``intent`` for request routing."""
        return [w for w in self._entries.values() if intent in w.intents]

    def search(
        self,
        criteria: WorkerSearchCriteria | Mapping[str, Any] | None = None,
        **filters: Any,
    ) -> list[WorkerDefinition]:
        """AND-combine the given filters. Deprecated workers are always excluded.

        Args:
            criteria: A WorkerSearchCriteria or an equivalent mapping.
            **filters: Keyword form, used when ``criteria`` is omitted.

        Returns:
            Matching workers in registration order.
        """
        if criteria is None:
            criteria = WorkerSearchCriteria(**filters)
        elif not isinstance(criteria, WorkerSearchCriteria):
            criteria = WorkerSearchCriteria.model_validate(criteria)

        results = [w for w in self._entries.values() if not w.deprecated]
        if criteria.domain is not None:
            results = [w for w in results if criteria.domain in w.domain]
        if criteria.capability is not None:
            results = [w for w in results if criteria.capability in w.capabilities]
        if criteria.type is not None:
            results = [w for w in results if w.type == criteria.type]
        if criteria.can_run_in_parallel is not None:
            results = [
                w for w in results
                if w.execution.can_run_in_parallel == criteria.can_run_in_parallel
            ]
        if criteria.enabled is not None:
            results = [w for w in results if w.enabled == criteria.enabled]
        if criteria.intent is not None:
            results = [w for w in results if criteria.intent in w.intents]
        return results

    def get_handler(self, worker_id: str) -> Worker:
        """Resolve the implementation handle for a registered worker.

        Raises:
            EntryNotFoundError: If the worker is not registered.
            HandlerNotFoundError: If its implementation reference has no handler.
        """
        worker = self._require(worker_id)
        return self._handlers.get(worker.implementation)

    # -------------------------------------------------------------------------
    # Metrics
    # -------------------------------------------------------------------------

    def record_execution(self, worker_id: str, success: bool, duration_ms: float) -> None:
        """Record one execution outcome.

        The only mutation allowed on a registered definition. Average
        execution time is an exponential moving average. Unknown ids are
        logged and ignored.
        """
        with self._lock:
            worker = self._entries.get(worker_id)
            if worker is None:
                logger.warning(f"Cannot record execution for unknown worker: {worker_id}")
                return

            metrics = worker.metrics
            metrics.total_executions += 1
            if success:
                metrics.successful_executions += 1
            else:
                metrics.failed_executions += 1
            metrics.last_executed_at = datetime.now(UTC)
            metrics.avg_execution_time_ms = (
                self._ema_alpha * duration_ms
                + (1 - self._ema_alpha) * metrics.avg_execution_time_ms
            )

    # -------------------------------------------------------------------------
    # Registration hooks
    # -------------------------------------------------------------------------

    def _check_references(self, entry: WorkerDefinition) -> list[str]:
        return [
            f"tool_refs.required: tool '{tool_id}' not found in tool registry"
            for tool_id in entry.tool_refs.required
            if not self._tools.has(tool_id)
        ]

    def _reference_warnings(self, entry: WorkerDefinition) -> list[str]:
        return [
            f"Worker '{entry.id}': optional tool '{tool_id}' not found in tool registry"
            for tool_id in entry.tool_refs.optional
            if not self._tools.has(tool_id)
        ]


__all__ = ["WorkerRegistry"]
