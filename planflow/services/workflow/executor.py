"""PlanExecutor for stage-graph plan execution.

TAG: [EXECUTION] [EXECUTOR]

Runs a validated ExecutionPlan:
- Stages run in topological waves of the stage graph (``depends_on``)
- Within a wave, the worker capability order breaks ties the plan leaves open
- Optional fan-out/join of parallel-capable stages (asyncio.TaskGroup)
- Early exit when the state asks for clarification or is badly degraded
- Per-stage retry with exponential backoff and jitter
- Per-stage and plan-wide timeouts (asyncio.timeout)
- Failure isolation: dependents of a failed stage are skipped
- Cost and duration accounting against the plan's estimates

Stage-level problems never escape ``execute``; they are reported in the
returned ExecutionResult. Only broken plans raise, before any stage runs.
"""

from __future__ import annotations

import asyncio
import inspect
import random
import time
from collections.abc import Awaitable, Callable, Mapping, Sized
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, TypeAlias

from planflow.core.config import Settings, get_settings
from planflow.core.logging import LogContext, get_logger
from planflow.models.enums import StageStatus, ToolCost
from planflow.schemas.execution import (
    EstimateComparison,
    ExecutionCosts,
    ExecutionResult,
    StageExecutionResult,
)
from planflow.schemas.plan import ExecutionPlan, PlanEstimates, PlanStage
from planflow.services.registry.errors import EntryNotFoundError, HandlerNotFoundError
from planflow.services.workflow.algorithms import GraphAlgorithms
from planflow.services.workflow.context import ExecutionContext
from planflow.services.workflow.exceptions import (
    CircularDependencyError,
    PlanPreconditionError,
    PlanTimeoutError,
    StageExecutionError,
    StageTimeoutError,
    WorkerNotFoundError,
)
from planflow.services.workflow.graph import Graph, build_stage_graph
from planflow.services.workflow.retry import BackoffPolicy

if TYPE_CHECKING:
    from planflow.schemas.worker import WorkerDefinition
    from planflow.services.registry.handlers import StateDelta, Worker
    from planflow.services.registry.tool_registry import ToolRegistry
    from planflow.services.registry.worker_registry import WorkerRegistry
    from planflow.services.workflow.analyzer import DependencyGraphAnalyzer

logger = get_logger(__name__)

_Graph: TypeAlias = Graph[str]
_Callback: TypeAlias = Callable[..., Any | Awaitable[Any]]


@dataclass
class ExecutorOptions:
    """Per-call executor options.

    Unset fields fall back to the executor settings.

    Attributes:
        max_retries: Overrides every worker's ``retry_policy.max_retries``.
        continue_on_error: Keep going after a required stage fails.
        enable_parallel: Dispatch parallel-capable stages concurrently.
        max_parallel_stages: Fan-out bound when ``enable_parallel`` is set.
        on_stage_start: Called with the PlanStage before it is dispatched.
        on_stage_complete: Called with each StageExecutionResult.
        on_progress: Called with ``(settled, total)`` after every stage.
        early_exit: Stop after a batch when the state calls for it.
    """

    max_retries: int | None = None
    continue_on_error: bool | None = None
    enable_parallel: bool | None = None
    max_parallel_stages: int | None = None
    on_stage_start: _Callback | None = None
    on_stage_complete: _Callback | None = None
    on_progress: _Callback | None = None
    early_exit: bool | None = None


@dataclass
class _InFlight:
    stage: PlanStage
    started_at: datetime
    started: float
    attempts: int = 0


@dataclass
class _PlanRun:
    """Mutable bookkeeping for one ``execute`` call."""

    plan: ExecutionPlan
    context: ExecutionContext
    options: ExecutorOptions
    results: dict[str, StageExecutionResult] = field(default_factory=dict)
    completed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    blocked: set[str] = field(default_factory=set)
    in_flight: dict[str, _InFlight] = field(default_factory=dict)
    required_failure: bool = False
    aborted: bool = False
    timed_out: bool = False
    exited_early: bool = False

    @property
    def settled(self) -> int:
        return len(self.results)


class PlanExecutor:
    """Stage-graph plan execution engine.

    Stateless per call: one instance can run many plans, concurrently
    included.

    Example:
        >>> executor = PlanExecutor(workers, tools, analyzer)
        >>> result = await executor.execute(plan, {"messages": []})
        >>> result.stages_completed
        ['route', 'bunker']
    """

    def __init__(
        self,
        worker_registry: WorkerRegistry,
        tool_registry: ToolRegistry,
        analyzer: DependencyGraphAnalyzer,
        settings: Settings | None = None,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            worker_registry: Resolves stage workers and their handlers.
            tool_registry: Supplies tool cost classes for accounting.
            analyzer: Capability-graph ordering and parallel compatibility.
            settings: Executor defaults, retry curve and cost classes.
            sleep: Awaitable used for retry backoff.
            rng: Random source for backoff jitter.
        """
        self._workers = worker_registry
        self._tools = tool_registry
        self._analyzer = analyzer
        self._settings = settings or get_settings()
        self._backoff = BackoffPolicy.from_settings(self._settings)
        self._sleep = sleep
        self._rng = rng or random.Random()

    async def execute(
        self,
        plan: ExecutionPlan,
        initial_state: Mapping[str, Any] | None = None,
        options: ExecutorOptions | None = None,
    ) -> ExecutionResult:
        """Execute a plan.

        Args:
            plan: Plan to run. Must not be marked invalid.
            initial_state: Starting state. Never mutated.
            options: Per-call options.

        Returns:
            ExecutionResult covering every stage of the plan.

        Raises:
            PlanPreconditionError: If the plan is marked invalid or its stage
                graph is broken (duplicate ids, unknown dependency, cycle).
        """
        opts = self._resolve_options(options)
        started = time.perf_counter()

        with LogContext(plan_id=plan.plan_id, correlation_id=plan.context.correlation_id):
            context = ExecutionContext(plan.plan_id, initial_state)
            if not plan.stages:
                logger.info(f"Plan '{plan.plan_id}' has no stages")
                return self._build_result(_PlanRun(plan, context, opts), started)

            self._check_preconditions(plan)
            run = _PlanRun(plan, context, opts)
            graph = build_stage_graph(plan.stages)
            timeout_ms = plan.context.timeout_ms or self._settings.DEFAULT_PLAN_TIMEOUT_MS

            logger.info(
                f"Executing plan '{plan.plan_id}' ({len(plan.stages)} stages)",
                extra={
                    "context": {
                        "stages": len(plan.stages),
                        "parallel": opts.enable_parallel,
                        "continue_on_error": opts.continue_on_error,
                        "timeout_ms": timeout_ms,
                    }
                },
            )

            try:
                async with asyncio.timeout(timeout_ms / 1000 if timeout_ms else None):
                    await self._execute_by_waves(run, graph)
            except TimeoutError:
                await self._handle_plan_timeout(run, timeout_ms or 0)

            if run.aborted or run.timed_out or run.exited_early:
                await self._skip_remaining(run)

            result = self._build_result(run, started)

        logger.info(
            f"Plan '{plan.plan_id}' finished: {'success' if result.success else 'failure'}",
            extra={
                "context": {
                    "plan_id": plan.plan_id,
                    "completed": len(result.stages_completed),
                    "failed": len(result.stages_failed),
                    "skipped": len(result.stages_skipped),
                    "duration_ms": round(result.duration_ms, 2),
                    "aborted": result.aborted,
                }
            },
        )
        return result

    # ==========================================================================
    # Preconditions
    # ==========================================================================

    def _resolve_options(self, options: ExecutorOptions | None) -> ExecutorOptions:
        opts = options or ExecutorOptions()
        s = self._settings
        return replace(
            opts,
            continue_on_error=(
                s.EXECUTOR_CONTINUE_ON_ERROR
                if opts.continue_on_error is None
                else opts.continue_on_error
            ),
            enable_parallel=(
                s.EXECUTOR_ENABLE_PARALLEL if opts.enable_parallel is None else opts.enable_parallel
            ),
            max_parallel_stages=opts.max_parallel_stages or s.EXECUTOR_MAX_PARALLEL_STAGES,
            early_exit=s.EXECUTOR_EARLY_EXIT if opts.early_exit is None else opts.early_exit,
        )

    def _check_preconditions(self, plan: ExecutionPlan) -> None:
        problems: list[str] = []

        if plan.validation.is_valid is False:
            problems.append("plan is marked invalid by validation")

        seen: set[str] = set()
        for stage in plan.stages:
            if stage.stage_id in seen:
                problems.append(f"duplicate stage id '{stage.stage_id}'")
            seen.add(stage.stage_id)

        for stage in plan.stages:
            unknown = [dep for dep in stage.depends_on if dep not in seen]
            if unknown:
                problems.append(
                    f"stage '{stage.stage_id}' depends on unknown stage(s): {', '.join(unknown)}"
                )

        cycle = GraphAlgorithms.detect_cycle(build_stage_graph(plan.stages))
        if cycle:
            problems.append(f"stage graph has a cycle: {' -> '.join(cycle)}")

        if problems:
            logger.error(
                f"Refusing to execute plan '{plan.plan_id}'",
                extra={"context": {"problems": problems}},
            )
            raise PlanPreconditionError(plan.plan_id, problems)

    # ==========================================================================
    # Scheduling
    # ==========================================================================

    async def _execute_by_waves(self, run: _PlanRun, graph: _Graph) -> None:
        """Run every wave of the stage graph in order.

        Each wave holds stages whose dependencies all sit in earlier waves.
        The wave is split into batches; a batch is joined before the next
        one starts, so a stage never starts before its dependencies settle.
        """
        stage_by_id = {stage.stage_id: stage for stage in run.plan.stages}
        waves = GraphAlgorithms.topological_sort_levels(graph) or []

        for wave in waves:
            ordered = self._order_wave([stage_by_id[stage_id] for stage_id in wave])
            if run.options.enable_parallel:
                batches = self._batch_wave(ordered)
            else:
                batches = [[stage] for stage in ordered]

            for batch in batches:
                if run.aborted:
                    return
                runnable = [stage for stage in batch if await self._admit(run, stage)]
                if len(runnable) == 1:
                    await self._run_stage(run, runnable[0])
                elif runnable:
                    await self._run_batch(run, runnable)

                if run.options.early_exit:
                    reason = self._early_exit_reason(run.context.state)
                    if reason is not None:
                        logger.info(
                            f"Plan '{run.plan.plan_id}' exiting early: {reason}",
                            extra={"context": {"settled": run.settled}},
                        )
                        run.exited_early = True
                        return

    def _early_exit_reason(self, state: Mapping[str, Any]) -> str | None:
        """Why the state says the plan should stop, or None to keep going."""
        if state.get("needs_clarification"):
            return "needs_clarification is set"
        missing = state.get("missing_data")
        missing_count = len(missing) if isinstance(missing, Sized) else 0
        threshold = self._settings.EARLY_EXIT_MISSING_DATA_THRESHOLD
        if state.get("degraded_mode") and missing_count > threshold:
            return f"degraded_mode with {missing_count} missing data fields"
        return None

    def _order_wave(self, stages: list[PlanStage]) -> list[PlanStage]:
        """Sort a wave by plan order, then by capability order, then plan position."""
        worker_ids = list(dict.fromkeys(stage.worker_id for stage in stages))
        try:
            capability_order = self._analyzer.get_execution_order(worker_ids)
        except CircularDependencyError as e:
            logger.warning(
                "Capability graph is cyclic for this wave; keeping plan order",
                extra={"context": {"cycle": e.cycle_path}},
            )
            capability_order = worker_ids
        rank = {worker_id: index for index, worker_id in enumerate(capability_order)}
        position = {id(stage): index for index, stage in enumerate(stages)}
        return sorted(
            stages,
            key=lambda s: (s.order, rank.get(s.worker_id, len(rank)), position[id(s)]),
        )

    def _batch_wave(self, stages: list[PlanStage]) -> list[list[PlanStage]]:
        """Group consecutive parallel-capable stages whose workers may run together."""
        batches: list[list[PlanStage]] = []
        current: list[PlanStage] = []

        for stage in stages:
            if not stage.can_run_in_parallel:
                if current:
                    batches.append(current)
                    current = []
                batches.append([stage])
                continue
            if current and not all(
                self._analyzer.can_run_in_parallel(member.worker_id, stage.worker_id)
                for member in current
            ):
                batches.append(current)
                current = []
            current.append(stage)

        if current:
            batches.append(current)
        return batches

    async def _admit(self, run: _PlanRun, stage: PlanStage) -> bool:
        """Decide whether ``stage`` is dispatched; settle it as skipped if not."""
        blocking = [dep for dep in stage.depends_on if dep in run.blocked]
        if blocking:
            run.blocked.add(stage.stage_id)
            if stage.required:
                run.required_failure = True
            await self._settle_skipped(
                run, stage, f"dependency '{blocking[0]}' did not complete"
            )
            return False

        state = run.context.snapshot()
        if stage.skip_conditions is not None and stage.skip_conditions.matches_any(state):
            await self._settle_skipped(run, stage, "skip condition matched")
            return False
        if stage.continue_conditions is not None and not stage.continue_conditions.matches(state):
            await self._settle_skipped(run, stage, "continue condition not met")
            return False
        return True

    async def _run_batch(self, run: _PlanRun, stages: list[PlanStage]) -> None:
        """Fan out a batch with bounded concurrency and join it."""
        semaphore = asyncio.Semaphore(run.options.max_parallel_stages or len(stages))

        async def bounded(stage: PlanStage) -> None:
            async with semaphore:
                await self._run_stage(run, stage)

        async with asyncio.TaskGroup() as tg:
            for stage in stages:
                tg.create_task(bounded(stage))

    # ==========================================================================
    # Stage execution
    # ==========================================================================

    async def _run_stage(self, run: _PlanRun, stage: PlanStage) -> None:
        """Dispatch one stage, settle its outcome and apply the failure policy."""
        started_at = datetime.now(UTC)
        started = time.perf_counter()
        tracker = _InFlight(stage=stage, started_at=started_at, started=started)
        run.in_flight[stage.stage_id] = tracker
        await self._notify(run.options.on_stage_start, stage)

        logger.debug(
            f"Stage '{stage.stage_id}' running",
            extra={"context": {"stage_id": stage.stage_id, "worker_id": stage.worker_id}},
        )

        error: StageExecutionError | None = None
        try:
            delta = await self._execute_with_retry(run, stage, tracker)
        except StageExecutionError as e:
            error = e
        else:
            try:
                await run.context.apply_delta(stage.stage_id, delta)
            except Exception as e:
                error = StageExecutionError(
                    stage.stage_id,
                    f"delta could not be merged: {e}",
                    worker_id=stage.worker_id,
                    attempts=tracker.attempts,
                    original_error=e,
                )

        del run.in_flight[stage.stage_id]
        duration_ms = (time.perf_counter() - started) * 1000
        attempts = error.attempts if error is not None else tracker.attempts
        cost_usd, api_calls = self._stage_cost(stage) if attempts > 0 else (0.0, 0)

        if attempts > 0:
            self._workers.record_execution(stage.worker_id, error is None, duration_ms)

        result = StageExecutionResult(
            stage_id=stage.stage_id,
            worker_id=stage.worker_id,
            status=StageStatus.COMPLETED if error is None else StageStatus.FAILED,
            attempts=attempts,
            duration_ms=duration_ms,
            cost_usd=cost_usd,
            api_calls=api_calls,
            error=error.reason if error is not None else None,
            started_at=started_at,
            completed_at=datetime.now(UTC),
        )

        if error is None:
            logger.info(
                f"Stage '{stage.stage_id}' completed",
                extra={
                    "context": {
                        "stage_id": stage.stage_id,
                        "attempts": attempts,
                        "duration_ms": round(duration_ms, 2),
                    }
                },
            )
            run.completed.append(stage.stage_id)
        else:
            await self._record_failure(run, stage, error)

        await self._settle(run, result)

    async def _record_failure(
        self,
        run: _PlanRun,
        stage: PlanStage,
        error: StageExecutionError,
    ) -> None:
        await run.context.add_error(stage.stage_id, error.error_type, error.message, error.attempts)
        run.failed.append(stage.stage_id)
        run.blocked.add(stage.stage_id)

        if stage.required:
            run.required_failure = True
            if not run.options.continue_on_error:
                run.aborted = True

        logger.error(
            f"Stage '{stage.stage_id}' failed: {error.reason}",
            extra={
                "context": {
                    "stage_id": stage.stage_id,
                    "worker_id": stage.worker_id,
                    "error_type": error.error_type,
                    "attempts": error.attempts,
                    "required": stage.required,
                    "aborting": run.aborted,
                }
            },
        )

    async def _execute_with_retry(
        self,
        run: _PlanRun,
        stage: PlanStage,
        tracker: _InFlight,
    ) -> dict[str, Any]:
        """Invoke the stage's worker until it succeeds or retries run out.

        Returns:
            The worker's delta.

        Raises:
            WorkerNotFoundError: If the worker or its handler cannot be resolved.
            StageTimeoutError: If the last attempt timed out.
            StageExecutionError: If the last attempt failed otherwise.
        """
        worker = self._workers.get_by_id(stage.worker_id)
        if worker is None:
            raise WorkerNotFoundError(stage.stage_id, stage.worker_id)
        try:
            handler = self._workers.get_handler(stage.worker_id)
        except (EntryNotFoundError, HandlerNotFoundError) as e:
            raise WorkerNotFoundError(stage.stage_id, stage.worker_id, e.message) from e

        policy = worker.execution.retry_policy
        max_retries = (
            run.options.max_retries if run.options.max_retries is not None else policy.max_retries
        )
        attempt = 0

        while True:
            attempt += 1
            tracker.attempts = attempt
            try:
                return await self._invoke(stage, worker, handler, run.context.snapshot(), attempt)
            except StageExecutionError as e:
                error = e
            except Exception as e:
                error = StageExecutionError(
                    stage.stage_id,
                    str(e) or type(e).__name__,
                    worker_id=stage.worker_id,
                    attempts=attempt,
                    original_error=e,
                )

            if attempt > max_retries:
                error.attempts = attempt
                error.details["attempts"] = attempt
                raise error

            delay_ms = self._backoff.delay_ms(policy.backoff_ms, attempt, self._rng)
            logger.warning(
                f"Stage '{stage.stage_id}' attempt {attempt} failed, retrying",
                extra={
                    "context": {
                        "stage_id": stage.stage_id,
                        "error": error.reason,
                        "delay_ms": round(delay_ms, 2),
                    }
                },
            )
            if delay_ms > 0:
                await self._sleep(delay_ms / 1000)

    async def _invoke(
        self,
        stage: PlanStage,
        worker: WorkerDefinition,
        handler: Worker,
        snapshot: Mapping[str, Any],
        attempt: int,
    ) -> dict[str, Any]:
        """One bounded call to the worker handler."""
        timeout_ms = worker.execution.max_execution_time_ms
        try:
            async with asyncio.timeout(timeout_ms / 1000 if timeout_ms > 0 else None):
                delta: StateDelta | None = await handler.execute(snapshot)
        except TimeoutError:
            raise StageTimeoutError(
                stage.stage_id,
                timeout_ms,
                worker_id=stage.worker_id,
                attempts=attempt,
            ) from None

        if delta is None:
            return {}
        if not isinstance(delta, Mapping):
            raise StageExecutionError(
                stage.stage_id,
                f"worker returned {type(delta).__name__}, expected a mapping",
                worker_id=stage.worker_id,
                attempts=attempt,
            )
        return dict(delta)

    def _stage_cost(self, stage: PlanStage) -> tuple[float, int]:
        """Cost in USD and API calls of one run of ``stage``'s tools."""
        cost_usd = 0.0
        api_calls = 0
        for tool_id in stage.tools_needed:
            cost = self._tools.get_cost(tool_id)
            if cost == ToolCost.API_CALL:
                cost_usd += self._settings.API_CALL_COST_USD
                api_calls += 1
            elif cost == ToolCost.EXPENSIVE:
                cost_usd += self._settings.EXPENSIVE_CALL_COST_USD
                api_calls += 1
        return cost_usd, api_calls

    # ==========================================================================
    # Settlement
    # ==========================================================================

    async def _settle(self, run: _PlanRun, result: StageExecutionResult) -> None:
        run.results[result.stage_id] = result
        await self._notify(run.options.on_stage_complete, result)
        await self._notify(run.options.on_progress, run.settled, len(run.plan.stages))

    async def _settle_skipped(self, run: _PlanRun, stage: PlanStage, reason: str) -> None:
        logger.info(
            f"Stage '{stage.stage_id}' skipped: {reason}",
            extra={"context": {"stage_id": stage.stage_id}},
        )
        run.skipped.append(stage.stage_id)
        now = datetime.now(UTC)
        await self._settle(
            run,
            StageExecutionResult(
                stage_id=stage.stage_id,
                worker_id=stage.worker_id,
                status=StageStatus.SKIPPED,
                skip_reason=reason,
                started_at=now,
                completed_at=now,
            ),
        )

    async def _handle_plan_timeout(self, run: _PlanRun, timeout_ms: int) -> None:
        """Fail the stages cancelled by the plan timeout."""
        run.timed_out = True
        in_flight = list(run.in_flight.values())
        run.in_flight.clear()
        error = PlanTimeoutError(
            run.plan.plan_id,
            timeout_ms,
            [tracker.stage.stage_id for tracker in in_flight],
        )
        logger.error(error.message, extra={"context": error.details})

        if not in_flight:
            await run.context.add_error(run.plan.plan_id, error.error_type, error.message)
            return

        for tracker in in_flight:
            stage = tracker.stage
            duration_ms = (time.perf_counter() - tracker.started) * 1000
            await run.context.add_error(
                stage.stage_id, error.error_type, error.message, tracker.attempts
            )
            run.failed.append(stage.stage_id)
            run.blocked.add(stage.stage_id)
            cost_usd, api_calls = self._stage_cost(stage)
            self._workers.record_execution(stage.worker_id, False, duration_ms)
            await self._settle(
                run,
                StageExecutionResult(
                    stage_id=stage.stage_id,
                    worker_id=stage.worker_id,
                    status=StageStatus.FAILED,
                    attempts=tracker.attempts,
                    duration_ms=duration_ms,
                    cost_usd=cost_usd,
                    api_calls=api_calls,
                    error=error.message,
                    started_at=tracker.started_at,
                    completed_at=datetime.now(UTC),
                ),
            )

    async def _skip_remaining(self, run: _PlanRun) -> None:
        if run.timed_out:
            reason = "plan timed out"
        elif run.aborted:
            reason = "plan aborted"
        else:
            reason = "early exit"
        for stage in run.plan.stages:
            if stage.stage_id not in run.results:
                await self._settle_skipped(run, stage, reason)

    async def _notify(self, callback: _Callback | None, *args: Any) -> None:
        if callback is None:
            return
        try:
            outcome = callback(*args)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception:
            logger.exception("Executor callback raised; continuing")

    # ==========================================================================
    # Result
    # ==========================================================================

    def _build_result(self, run: _PlanRun, started: float) -> ExecutionResult:
        duration_ms = (time.perf_counter() - started) * 1000
        ran = list(run.results.values())
        actual_cost = sum(r.cost_usd for r in ran)
        stage_results = [
            run.results[stage.stage_id]
            for stage in run.plan.stages
            if stage.stage_id in run.results
        ]

        return ExecutionResult(
            plan_id=run.plan.plan_id,
            success=not (run.required_failure or run.aborted or run.timed_out),
            stages_completed=run.completed,
            stages_failed=run.failed,
            stages_skipped=run.skipped,
            errors=run.context.errors,
            duration_ms=duration_ms,
            costs=ExecutionCosts(
                actual_cost_usd=actual_cost,
                llm_calls=0,
                api_calls=sum(r.api_calls for r in ran),
            ),
            vs_estimates=compare_to_estimates(duration_ms, actual_cost, run.plan.estimates),
            stage_results=stage_results,
            final_state=run.context.state,
            state_delta=run.context.delta,
            aborted=run.aborted,
            exited_early=run.exited_early,
        )


def compare_to_estimates(
    duration_ms: float,
    cost_usd: float,
    estimates: PlanEstimates,
) -> EstimateComparison:
    """Compare actuals with the planner's estimates.

    ``accuracy_percent`` is ``round((1 - |actual - estimate| / estimate) * 100)``
    over duration, or 0 when the plan carries no duration estimate.
    """
    estimated = estimates.estimated_duration_ms
    if estimated > 0:
        accuracy = round((1 - abs(duration_ms - estimated) / estimated) * 100)
    else:
        accuracy = 0
    return EstimateComparison(
        duration_diff_ms=duration_ms - estimated,
        cost_diff_usd=cost_usd - estimates.estimated_cost_usd,
        accuracy_percent=accuracy,
    )


__all__ = ["ExecutorOptions", "PlanExecutor", "compare_to_estimates"]
