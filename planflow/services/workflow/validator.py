"""Plan Validation Service.

TAG: [PLAN] [VALIDATION]

Checks a proposed ExecutionPlan against the worker and tool registries and
the caller's current state before anything runs:
- Structure: plan_id, workflow_id, non-empty stages, unique stage ids
- References: workers exist, are enabled and not feature-gated; tools exist
- Ordering: every dependency is a known stage with a lower order
- Cycles: the stage graph is acyclic
- State readiness, timeout reasonability, optimization suggestions

Errors block execution. Warnings and suggestions never do.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, TypeAlias

from planflow.core.config import Settings, get_settings
from planflow.core.logging import get_logger
from planflow.models.enums import IssueCode, IssueSeverity
from planflow.schemas.plan import ExecutionPlan, PlanStage
from planflow.schemas.validation import (
    CircularDependencyIssue,
    PlanValidationResult,
    ValidationIssue,
)
from planflow.services.workflow.algorithms import GraphAlgorithms
from planflow.services.workflow.graph import build_stage_graph

if TYPE_CHECKING:
    from planflow.services.registry.tool_registry import ToolRegistry
    from planflow.services.registry.worker_registry import WorkerRegistry

logger = get_logger(__name__)

_Issues: TypeAlias = list[ValidationIssue]


def _issue(
    severity: IssueSeverity,
    code: IssueCode,
    message: str,
    stage_ids: list[str] | None = None,
    **details: Any,
) -> ValidationIssue:
    return ValidationIssue(
        code=code,
        severity=severity,
        message=message,
        stage_ids=stage_ids or [],
        details=details,
    )


def _error(code: IssueCode, message: str, stage_ids: list[str] | None = None, **details: Any) -> ValidationIssue:
    return _issue(IssueSeverity.ERROR, code, message, stage_ids, **details)


def _warning(code: IssueCode, message: str, stage_ids: list[str] | None = None, **details: Any) -> ValidationIssue:
    return _issue(IssueSeverity.WARNING, code, message, stage_ids, **details)


def _suggestion(code: IssueCode, message: str, stage_ids: list[str] | None = None, **details: Any) -> ValidationIssue:
    return _issue(IssueSeverity.SUGGESTION, code, message, stage_ids, **details)


class PlanValidator:
    """Stateless plan validator.

    Example:
        >>> validator = PlanValidator(workers, tools)
        >>> result = validator.validate(plan, {"messages": []})
        >>> if not result.valid:
        ...     print(result.error_messages)
    """

    def __init__(
        self,
        worker_registry: WorkerRegistry,
        tool_registry: ToolRegistry,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the validator.

        Args:
            worker_registry: Catalog stage worker ids are resolved against.
            tool_registry: Catalog ``tools_needed`` ids are resolved against.
            settings: Supplies the always-present state fields, disabled
                feature flags and default plan timeout.
        """
        self._workers = worker_registry
        self._tools = tool_registry
        self._settings = settings or get_settings()

    def validate(
        self,
        plan: ExecutionPlan,
        current_state: Mapping[str, Any] | None = None,
    ) -> PlanValidationResult:
        """Run every check and return the categorized report.

        Args:
            plan: Plan to check.
            current_state: State the plan would start from.

        Returns:
            PlanValidationResult whose ``valid`` is True iff no errors.
        """
        state = current_state or {}
        errors: _Issues = []
        warnings: _Issues = []
        suggestions: _Issues = []

        self._run_blocking_checks(plan, errors, warnings)
        self._validate_state_requirements(plan, state, warnings)
        self._validate_timeout(plan, warnings)
        self._find_optimizations(plan, suggestions)

        result = PlanValidationResult(
            valid=len(errors) == 0,
            plan_id=plan.plan_id,
            errors=errors,
            warnings=warnings,
            suggestions=suggestions,
        )

        logger.info(
            f"Validated plan '{plan.plan_id}': {'valid' if result.valid else 'invalid'}",
            extra={
                "context": {
                    "plan_id": plan.plan_id,
                    "errors": len(errors),
                    "warnings": len(warnings),
                    "suggestions": len(suggestions),
                }
            },
        )
        return result

    def is_valid(self, plan: ExecutionPlan) -> bool:
        """Boolean form of ``validate``: blocking checks only, no report."""
        errors: _Issues = []
        self._run_blocking_checks(plan, errors, [])
        return not errors

    @staticmethod
    def stamp(plan: ExecutionPlan, result: PlanValidationResult) -> ExecutionPlan:
        """Return a copy of ``plan`` carrying the condensed validation outcome."""
        return plan.model_copy(update={"validation": result.to_snapshot()})

    # -------------------------------------------------------------------------
    # Blocking checks
    # -------------------------------------------------------------------------

    def _run_blocking_checks(self, plan: ExecutionPlan, errors: _Issues, warnings: _Issues) -> None:
        self._validate_structure(plan, errors)
        self._validate_workers(plan, errors, warnings)
        self._validate_tools(plan, errors, warnings)
        self._validate_stage_order(plan, errors)
        self._validate_dependency_graph(plan, errors)

    def _validate_structure(self, plan: ExecutionPlan, errors: _Issues) -> None:
        if not plan.plan_id:
            errors.append(_error(IssueCode.MISSING_FIELD, "Plan missing plan_id", field="plan_id"))
        if not plan.workflow_id:
            errors.append(
                _error(IssueCode.MISSING_FIELD, "Plan missing workflow_id", field="workflow_id")
            )
        if not plan.stages:
            errors.append(_error(IssueCode.EMPTY_PLAN, "Plan has no stages"))

        seen: set[str] = set()
        reported: set[str] = set()
        for stage in plan.stages:
            if stage.stage_id in seen and stage.stage_id not in reported:
                reported.add(stage.stage_id)
                errors.append(
                    _error(
                        IssueCode.DUPLICATE_STAGE,
                        f"Duplicate stage id '{stage.stage_id}'",
                        [stage.stage_id],
                    )
                )
            seen.add(stage.stage_id)

    def _validate_workers(self, plan: ExecutionPlan, errors: _Issues, warnings: _Issues) -> None:
        disabled_flags = set(self._settings.DISABLED_FEATURE_FLAGS)

        for stage in plan.stages:
            worker = self._workers.get_by_id(stage.worker_id)
            if worker is None:
                errors.append(
                    _error(
                        IssueCode.UNKNOWN_WORKER,
                        f"Worker '{stage.worker_id}' not found in registry",
                        [stage.stage_id],
                        worker_id=stage.worker_id,
                    )
                )
                continue

            if not worker.enabled:
                errors.append(
                    _error(
                        IssueCode.DISABLED_WORKER,
                        f"Worker '{stage.worker_id}' is disabled",
                        [stage.stage_id],
                        worker_id=stage.worker_id,
                    )
                )

            if worker.feature_flag and worker.feature_flag in disabled_flags:
                errors.append(
                    _error(
                        IssueCode.FEATURE_DISABLED,
                        f"Worker '{stage.worker_id}' requires feature flag "
                        f"'{worker.feature_flag}' which is disabled",
                        [stage.stage_id],
                        worker_id=stage.worker_id,
                        feature_flag=worker.feature_flag,
                    )
                )

            if worker.deprecated:
                replacement = f", use '{worker.replaced_by}' instead" if worker.replaced_by else ""
                warnings.append(
                    _warning(
                        IssueCode.DEPRECATED_WORKER,
                        f"Worker '{stage.worker_id}' is deprecated{replacement}",
                        [stage.stage_id],
                        worker_id=stage.worker_id,
                        replaced_by=worker.replaced_by,
                    )
                )

    def _validate_tools(self, plan: ExecutionPlan, errors: _Issues, warnings: _Issues) -> None:
        for stage in plan.stages:
            for tool_id in stage.tools_needed:
                tool = self._tools.get_by_id(tool_id)
                if tool is None:
                    errors.append(
                        _error(
                            IssueCode.UNKNOWN_TOOL,
                            f"Tool '{tool_id}' for worker '{stage.worker_id}' not found",
                            [stage.stage_id],
                            tool_id=tool_id,
                        )
                    )
                    continue

                if tool.deprecated:
                    replacement = f", use '{tool.replaced_by}' instead" if tool.replaced_by else ""
                    warnings.append(
                        _warning(
                            IssueCode.DEPRECATED_TOOL,
                            f"Tool '{tool_id}' is deprecated{replacement}",
                            [stage.stage_id],
                            tool_id=tool_id,
                            replaced_by=tool.replaced_by,
                        )
                    )

    def _validate_stage_order(self, plan: ExecutionPlan, errors: _Issues) -> None:
        order_by_id: dict[str, int] = {}
        for stage in plan.stages:
            order_by_id.setdefault(stage.stage_id, stage.order)

        for stage in plan.stages:
            for dep_id in stage.depends_on:
                dep_order = order_by_id.get(dep_id)
                if dep_order is None:
                    errors.append(
                        _error(
                            IssueCode.UNKNOWN_DEPENDENCY,
                            f"Stage '{stage.stage_id}' depends on non-existent stage '{dep_id}'",
                            [stage.stage_id],
                            dependency=dep_id,
                        )
                    )
                elif dep_order >= stage.order:
                    errors.append(
                        _error(
                            IssueCode.ORDER_VIOLATION,
                            f"Stage '{stage.stage_id}' (order {stage.order}) depends on "
                            f"'{dep_id}' (order {dep_order}) but runs before or at the same time",
                            [stage.stage_id, dep_id],
                            dependency=dep_id,
                        )
                    )

    def _validate_dependency_graph(self, plan: ExecutionPlan, errors: _Issues) -> None:
        graph = build_stage_graph(plan.stages)
        for cycle in GraphAlgorithms.detect_cycles(graph):
            errors.append(
                CircularDependencyIssue(
                    message=f"Circular dependency detected: {' -> '.join(cycle)}",
                    stage_ids=list(dict.fromkeys(cycle)),
                    cycle_path=cycle,
                )
            )

    # -------------------------------------------------------------------------
    # Non-blocking checks
    # -------------------------------------------------------------------------

    def _validate_state_requirements(
        self,
        plan: ExecutionPlan,
        state: Mapping[str, Any],
        warnings: _Issues,
    ) -> None:
        """Check the inputs of root stages and the plan's required state.

        A root stage has no dependencies. Each of its ``requires`` fields
        must already be in ``state`` or be provided by a stage with a lower
        order.
        """
        always_present = set(self._settings.ALWAYS_PRESENT_STATE_FIELDS)
        produced_anywhere = {field for stage in plan.stages for field in stage.provides}

        for stage in plan.stages:
            if stage.depends_on:
                continue
            provided_earlier = {
                field
                for other in plan.stages
                if other.order < stage.order
                for field in other.provides
            }
            for field in stage.requires:
                if field in always_present or field in state or field in provided_earlier:
                    continue
                if field in produced_anywhere:
                    warnings.append(
                        _warning(
                            IssueCode.STATE_PRODUCED_LATER,
                            f"Field '{field}' required by stage '{stage.stage_id}' is missing "
                            "but will be produced later",
                            [stage.stage_id],
                            field=field,
                        )
                    )
                else:
                    warnings.append(
                        _warning(
                            IssueCode.STATE_MISSING,
                            f"Field '{field}' required by stage '{stage.stage_id}' is missing "
                            "and not produced upstream",
                            [stage.stage_id],
                            field=field,
                        )
                    )

        for field in plan.required_state:
            if field in always_present or field in state or field in produced_anywhere:
                continue
            warnings.append(
                _warning(
                    IssueCode.STATE_MISSING,
                    f"Plan requires state field '{field}' which is missing and not produced "
                    "by any stage",
                    field=field,
                )
            )

    def _validate_timeout(self, plan: ExecutionPlan, warnings: _Issues) -> None:
        timeout_ms = plan.context.timeout_ms or self._settings.DEFAULT_PLAN_TIMEOUT_MS
        if not timeout_ms:
            return

        estimated = plan.estimates.estimated_duration_ms
        if timeout_ms < estimated:
            warnings.append(
                _warning(
                    IssueCode.TIMEOUT_RISK,
                    f"Timeout ({timeout_ms}ms) is less than estimated duration ({estimated}ms)",
                    timeout_ms=timeout_ms,
                    estimated_duration_ms=estimated,
                )
            )

        for stage in plan.stages:
            if stage.estimated_duration_ms > timeout_ms:
                warnings.append(
                    _warning(
                        IssueCode.TIMEOUT_RISK,
                        f"Stage '{stage.stage_id}' estimated duration "
                        f"({stage.estimated_duration_ms}ms) exceeds plan timeout",
                        [stage.stage_id],
                        timeout_ms=timeout_ms,
                        estimated_duration_ms=stage.estimated_duration_ms,
                    )
                )

    def _find_optimizations(self, plan: ExecutionPlan, suggestions: _Issues) -> None:
        by_order: dict[int, list[PlanStage]] = {}
        for stage in plan.stages:
            by_order.setdefault(stage.order, []).append(stage)

        for order, stages in by_order.items():
            ungrouped = [s for s in stages if s.can_run_in_parallel and s.parallel_group is None]
            if len(ungrouped) > 1:
                suggestions.append(
                    _suggestion(
                        IssueCode.PARALLEL_OPPORTUNITY,
                        f"{len(ungrouped)} stages at order {order} could run in parallel "
                        "but aren't grouped",
                        [s.stage_id for s in ungrouped],
                        order=order,
                    )
                )

        self._find_sequential_independent_stages(plan, suggestions)

        for stage in plan.stages:
            checks = stage.skip_conditions.state_checks if stage.skip_conditions else {}
            if checks and stage.provides and len(checks) == len(stage.provides):
                suggestions.append(
                    _suggestion(
                        IssueCode.SKIP_CONDITION,
                        f"Stage '{stage.stage_id}' could be skipped - all outputs may already exist",
                        [stage.stage_id],
                    )
                )

    def _find_sequential_independent_stages(
        self,
        plan: ExecutionPlan,
        suggestions: _Issues,
    ) -> None:
        """Flag parallel-capable stage pairs with no dependency path between them
        that the plan nonetheless places at different orders."""
        graph = build_stage_graph(plan.stages)
        if GraphAlgorithms.detect_cycle(graph) is not None:
            return

        candidates = [s for s in plan.stages if s.can_run_in_parallel]
        reachable = {
            s.stage_id: set(GraphAlgorithms.collect_reachable(s.stage_id, graph.get_successors))
            for s in candidates
        }
        for i, first in enumerate(candidates):
            for second in candidates[i + 1 :]:
                if first.order == second.order:
                    continue
                if _connected(reachable, first.stage_id, second.stage_id):
                    continue
                suggestions.append(
                    _suggestion(
                        IssueCode.PARALLEL_OPPORTUNITY,
                        f"Stages '{first.stage_id}' and '{second.stage_id}' have no mutual "
                        "dependency but run sequentially",
                        [first.stage_id, second.stage_id],
                    )
                )


def _connected(reachable: dict[str, set[str]], a: str, b: str) -> bool:
    return b in reachable.get(a, set()) or a in reachable.get(b, set())


__all__ = ["PlanValidator"]
