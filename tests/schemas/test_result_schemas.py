"""Tests for validation and execution result schemas.

TAG: [SCHEMAS] [VALIDATION] [EXECUTION] [TEST]
"""

from planflow.models.enums import IssueCode, IssueSeverity, StageStatus
from planflow.schemas.execution import ExecutionCosts, ExecutionResult, StageExecutionResult
from planflow.schemas.validation import (
    CircularDependencyIssue,
    PlanValidationResult,
    ValidationIssue,
)


def _issue(code: IssueCode, severity: IssueSeverity, **details) -> ValidationIssue:
    return ValidationIssue(code=code, severity=severity, message=code.value, details=details)


class TestPlanValidationResult:
    def test_cycle_issue_is_always_an_error(self) -> None:
        issue = CircularDependencyIssue(message="cycle", cycle_path=["a", "b", "a"])

        assert issue.code == IssueCode.CYCLE_DETECTED
        assert issue.severity == IssueSeverity.ERROR

    def test_has_code_searches_every_bucket(self) -> None:
        result = PlanValidationResult(
            valid=True,
            suggestions=[_issue(IssueCode.SKIP_CONDITION, IssueSeverity.SUGGESTION)],
        )

        assert result.has_code(IssueCode.SKIP_CONDITION) is True
        assert result.has_code(IssueCode.UNKNOWN_WORKER) is False

    def test_message_accessors(self) -> None:
        result = PlanValidationResult(
            valid=False,
            errors=[_issue(IssueCode.EMPTY_PLAN, IssueSeverity.ERROR)],
            warnings=[_issue(IssueCode.TIMEOUT_RISK, IssueSeverity.WARNING)],
        )

        assert result.error_messages == ["EMPTY_PLAN"]
        assert result.warning_messages == ["TIMEOUT_RISK"]

    def test_to_snapshot_condenses_references(self) -> None:
        result = PlanValidationResult(
            valid=False,
            errors=[
                _issue(IssueCode.UNKNOWN_WORKER, IssueSeverity.ERROR, worker_id="ghost_agent"),
                _issue(IssueCode.DISABLED_WORKER, IssueSeverity.ERROR, worker_id="eca_agent"),
                _issue(IssueCode.UNKNOWN_TOOL, IssueSeverity.ERROR, tool_id="fetch_prices"),
            ],
            warnings=[
                _issue(IssueCode.STATE_MISSING, IssueSeverity.WARNING, field="vessel_profile"),
            ],
        )

        snapshot = result.to_snapshot()

        assert snapshot.is_valid is False
        assert snapshot.invalid_workers == ["eca_agent", "ghost_agent"]
        assert snapshot.invalid_tools == ["fetch_prices"]
        assert snapshot.missing_inputs == ["vessel_profile"]
        assert snapshot.warnings == ["STATE_MISSING"]


class TestExecutionResult:
    def test_get_stage_result(self) -> None:
        result = ExecutionResult(
            plan_id="plan_1",
            success=True,
            stage_results=[
                StageExecutionResult(
                    stage_id="route", worker_id="route_agent", status=StageStatus.COMPLETED
                )
            ],
        )

        assert result.get_stage_result("route").status == StageStatus.COMPLETED
        assert result.get_stage_result("bunker") is None

    def test_costs_serialize_with_usd_suffix(self) -> None:
        dumped = ExecutionCosts(actual_cost_usd=0.011, api_calls=2).model_dump(by_alias=True)

        assert dumped == {"actualCostUSD": 0.011, "llmCalls": 0, "apiCalls": 2}
