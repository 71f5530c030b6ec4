"""Graph analysis and plan execution exceptions.

TAG: [GRAPH] [EXCEPTIONS]
TAG: [EXECUTION] [EXCEPTIONS]

Stage-level errors are captured by the executor and attached to the
ExecutionResult; they never escape ``PlanExecutor.execute``. Only the
precondition errors are raised to callers.
"""

from __future__ import annotations

from typing import Any

from planflow.core.exceptions import PlanflowError

# ============================================================================
# Graph Analysis Exceptions
# ============================================================================


class CircularDependencyError(PlanflowError):
    """Raised when an ordering is requested over a cyclic set of ids.

    Attributes:
        cycle_path: Ids forming the cycle, first id repeated at the end when
            the cycle was traced; otherwise the ids left unordered.
        cycles: Every cycle known for the requested set.
    """

    def __init__(
        self,
        cycle_path: list[str],
        cycles: list[list[str]] | None = None,
        scope: str = "capability",
    ) -> None:
        cycle_str = " -> ".join(cycle_path)
        super().__init__(
            message=f"Circular dependency detected in {scope} graph: {cycle_str}",
            error_code="CYCLE_DETECTED",
            details={"cycle_path": list(cycle_path), "scope": scope},
        )
        self.cycle_path = list(cycle_path)
        self.cycles = cycles if cycles is not None else [self.cycle_path]
        self.scope = scope


# ============================================================================
# Plan Execution Exceptions
# ============================================================================


class ExecutionError(PlanflowError):
    """Base exception for plan execution errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "EXECUTION_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, error_code, details)


class StageExecutionError(ExecutionError):
    """Raised when a stage fails after all attempts.

    Attributes:
        stage_id: Stage that failed.
        worker_id: Worker the stage dispatched to.
        attempts: Attempts made, including the first.
        original_error: Last underlying exception, if any.
    """

    error_type = "stage_error"

    def __init__(
        self,
        stage_id: str,
        message: str,
        *,
        worker_id: str = "",
        attempts: int = 1,
        original_error: BaseException | None = None,
    ) -> None:
        super().__init__(
            f"Stage '{stage_id}' failed: {message}",
            error_code="STAGE_FAILED",
            details={"stage_id": stage_id, "worker_id": worker_id, "attempts": attempts},
        )
        self.stage_id = stage_id
        self.worker_id = worker_id
        self.reason = message
        self.attempts = attempts
        self.original_error = original_error


class StageTimeoutError(StageExecutionError):
    """Raised when a worker does not return within its time bound."""

    error_type = "stage_timeout"

    def __init__(
        self,
        stage_id: str,
        timeout_ms: int,
        *,
        worker_id: str = "",
        attempts: int = 1,
    ) -> None:
        super().__init__(
            stage_id,
            f"timed out after {timeout_ms}ms",
            worker_id=worker_id,
            attempts=attempts,
        )
        self.error_code = "STAGE_TIMEOUT"
        self.timeout_ms = timeout_ms


class WorkerNotFoundError(StageExecutionError):
    """Raised when a stage's worker or its handler cannot be resolved."""

    error_type = "worker_not_found"

    def __init__(self, stage_id: str, worker_id: str, reason: str | None = None) -> None:
        super().__init__(
            stage_id,
            reason or f"worker '{worker_id}' not found in registry",
            worker_id=worker_id,
            attempts=0,
        )
        self.error_code = "WORKER_NOT_FOUND"


class PlanTimeoutError(ExecutionError):
    """Raised when the plan as a whole exceeds ``context.timeout_ms``.

    Attributes:
        plan_id: Plan that timed out.
        timeout_ms: Plan time bound.
        in_flight: Stages cancelled by the timeout.
    """

    error_type = "plan_timeout"

    def __init__(self, plan_id: str, timeout_ms: int, in_flight: list[str] | None = None) -> None:
        super().__init__(
            f"Plan '{plan_id}' exceeded its {timeout_ms}ms timeout",
            error_code="PLAN_TIMEOUT",
            details={"plan_id": plan_id, "timeout_ms": timeout_ms, "in_flight": in_flight or []},
        )
        self.plan_id = plan_id
        self.timeout_ms = timeout_ms
        self.in_flight = in_flight or []


class PlanPreconditionError(ExecutionError):
    """Raised before any stage runs when a plan must not be executed.

    Attributes:
        plan_id: Offending plan.
        problems: Every precondition that failed.
    """

    def __init__(self, plan_id: str, problems: list[str]) -> None:
        super().__init__(
            f"Plan '{plan_id}' cannot be executed: {'; '.join(problems)}",
            error_code="PLAN_PRECONDITION_FAILED",
            details={"plan_id": plan_id, "problems": list(problems)},
        )
        self.plan_id = plan_id
        self.problems = list(problems)


class InvalidPlanError(PlanPreconditionError):
    """Raised by ``PlanRuntime.run_plan`` when validation reports errors.

    Attributes:
        validation: The full PlanValidationResult.
    """

    def __init__(self, plan_id: str, validation: Any) -> None:
        super().__init__(plan_id, [issue.message for issue in validation.errors])
        self.error_code = "PLAN_INVALID"
        self.validation = validation


__all__ = [
    "CircularDependencyError",
    "ExecutionError",
    "InvalidPlanError",
    "PlanPreconditionError",
    "PlanTimeoutError",
    "StageExecutionError",
    "StageTimeoutError",
    "WorkerNotFoundError",
]
