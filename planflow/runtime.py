"""Runtime wiring for planflow.

Builds the registries, analyzer, validator and executor once and passes them
to each other explicitly. Hosts keep the returned PlanRuntime for the life of
the process; tests build a fresh one per case.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from planflow.core.config import Settings, get_settings
from planflow.core.logging import get_logger
from planflow.schemas.execution import ExecutionResult
from planflow.schemas.plan import ExecutionPlan
from planflow.schemas.validation import PlanValidationResult
from planflow.services.registry import (
    HandlerTable,
    ToolRegistry,
    Worker,
    WorkerRegistry,
    create_tool_table,
    create_worker_table,
)
from planflow.services.registry.handlers import ToolHandler
from planflow.services.workflow import (
    DependencyGraphAnalyzer,
    ExecutorOptions,
    InvalidPlanError,
    PlanExecutor,
    PlanValidator,
)

logger = get_logger(__name__)


@dataclass
class PlanRuntime:
    """The wired set of planflow services."""

    settings: Settings
    tools: ToolRegistry
    workers: WorkerRegistry
    analyzer: DependencyGraphAnalyzer
    validator: PlanValidator
    executor: PlanExecutor

    def validate_plan(
        self,
        plan: ExecutionPlan,
        state: Mapping[str, Any] | None = None,
    ) -> PlanValidationResult:
        return self.validator.validate(plan, state)

    async def run_plan(
        self,
        plan: ExecutionPlan,
        state: Mapping[str, Any] | None = None,
        options: ExecutorOptions | None = None,
    ) -> ExecutionResult:
        """Validate, stamp and execute ``plan``.

        Warnings do not stop execution.

        Raises:
            InvalidPlanError: If validation reports errors. Nothing runs.
        """
        validation = self.validator.validate(plan, state)
        if not validation.valid:
            logger.warning(
                f"Plan '{plan.plan_id}' rejected by validation",
                extra={"context": {"errors": validation.error_messages}},
            )
            raise InvalidPlanError(plan.plan_id, validation)

        stamped = self.validator.stamp(plan, validation)
        return await self.executor.execute(stamped, state, options)


def create_runtime(
    settings: Settings | None = None,
    worker_handlers: HandlerTable[Worker] | None = None,
    tool_handlers: HandlerTable[ToolHandler] | None = None,
) -> PlanRuntime:
    """Build a PlanRuntime.

    Args:
        settings: Defaults to the cached application settings.
        worker_handlers: Worker implementation table. A new empty table is
            created when omitted; register handlers on ``runtime.workers.handlers``.
        tool_handlers: Tool implementation table, same convention.

    Example:
        >>> runtime = create_runtime()
        >>> runtime.tools.handlers.register("fetch_route", fetch_route)
        >>> runtime.workers.handlers.register("route_worker", RouteWorker())
        >>> runtime.tools.register(route_tool)
        >>> runtime.workers.register(route_worker)
        >>> result = await runtime.run_plan(plan, {"messages": []})
    """
    settings = settings or get_settings()
    tools = ToolRegistry(
        tool_handlers if tool_handlers is not None else create_tool_table(),
        settings=settings,
    )
    workers = WorkerRegistry(
        tools,
        worker_handlers if worker_handlers is not None else create_worker_table(),
        settings=settings,
    )
    analyzer = DependencyGraphAnalyzer(workers)
    return PlanRuntime(
        settings=settings,
        tools=tools,
        workers=workers,
        analyzer=analyzer,
        validator=PlanValidator(workers, tools, settings),
        executor=PlanExecutor(workers, tools, analyzer, settings),
    )


__all__ = ["PlanRuntime", "create_runtime"]
