"""Pydantic schemas for execution plans.

TAG: [SCHEMAS] [PLAN]

An ExecutionPlan is produced once per request by an external planner. Its
stages form the stage graph (``depends_on``), which is independent of the
registry-wide capability graph declared on worker definitions.

The schema accepts structurally odd plans (empty ids, no stages) on purpose:
reporting those is the PlanValidator's job, not a parse failure.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from pydantic import AliasChoices, Field

from planflow.models.enums import PlanPriority
from planflow.schemas.base import BaseSchema


def _utcnow() -> datetime:
    return datetime.now(UTC)


class StageCondition(BaseSchema):
    """State checks gating a stage.

    Each entry maps a state field to either an expected value (equality) or
    ``{"exists": bool}``. Continue conditions use ``matches`` (every entry
    must hold); skip conditions use ``matches_any`` (one holding entry is
    enough).
    """

    state_checks: dict[str, Any] = Field(default_factory=dict)

    def matches(self, state: Mapping[str, Any]) -> bool:
        """True if every check holds. An empty condition matches."""
        return all(
            _check_holds(state, field_name, expected)
            for field_name, expected in self.state_checks.items()
        )

    def matches_any(self, state: Mapping[str, Any]) -> bool:
        """True if at least one check holds. An empty condition never matches."""
        return any(
            _check_holds(state, field_name, expected)
            for field_name, expected in self.state_checks.items()
        )


def _check_holds(state: Mapping[str, Any], field_name: str, expected: Any) -> bool:
    if isinstance(expected, Mapping) and set(expected) == {"exists"}:
        return (state.get(field_name) is not None) == bool(expected["exists"])
    return state.get(field_name) == expected


class PlanStage(BaseSchema):
    """One scheduled occurrence of a worker within a plan."""

    stage_id: str = Field(..., min_length=1)
    order: int
    worker_id: str
    required: bool = True
    can_run_in_parallel: bool = False
    parallel_group: str | None = None

    depends_on: list[str] = Field(default_factory=list)
    provides: list[str] = Field(default_factory=list)
    requires: list[str] = Field(default_factory=list)
    tools_needed: list[str] = Field(default_factory=list)

    estimated_duration_ms: int = Field(default=0, ge=0)
    estimated_cost: float = Field(default=0.0, ge=0.0)

    skip_conditions: StageCondition | None = None
    continue_conditions: StageCondition | None = None


class PlanEstimates(BaseSchema):
    """Planner estimates the executor reports against."""

    total_workers: int = Field(default=0, ge=0)
    llm_calls: int = Field(default=0, ge=0)
    api_calls: int = Field(default=0, ge=0)
    estimated_cost_usd: float = Field(
        default=0.0,
        ge=0.0,
        validation_alias=AliasChoices("estimatedCostUSD", "estimatedCostUsd", "estimated_cost_usd"),
        serialization_alias="estimatedCostUSD",
    )
    estimated_duration_ms: int = Field(default=0, ge=0)


class ValidationSnapshot(BaseSchema):
    """Outcome of the last validation, stamped onto the plan.

    ``is_valid`` is None until a validator has looked at the plan.
    """

    is_valid: bool | None = None
    missing_inputs: list[str] = Field(default_factory=list)
    invalid_workers: list[str] = Field(default_factory=list)
    invalid_tools: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class PlanContext(BaseSchema):
    """Request-level execution context."""

    priority: PlanPriority = PlanPriority.NORMAL
    timeout_ms: int | None = Field(
        default=None,
        gt=0,
        validation_alias=AliasChoices("timeoutMs", "timeout", "timeout_ms"),
        serialization_alias="timeoutMs",
        description="Plan-wide time bound",
    )
    correlation_id: str | None = None


class ExecutionPlan(BaseSchema):
    """Validated, ordered set of stages for one request."""

    plan_id: str = ""
    workflow_id: str = ""
    query_type: str | None = None
    stages: list[PlanStage] = Field(default_factory=list)
    estimates: PlanEstimates = Field(default_factory=PlanEstimates)
    validation: ValidationSnapshot = Field(default_factory=ValidationSnapshot)
    required_state: list[str] = Field(default_factory=list)
    expected_outputs: list[str] = Field(default_factory=list)
    context: PlanContext = Field(default_factory=PlanContext)
    created_at: datetime = Field(default_factory=_utcnow)

    def get_stage(self, stage_id: str) -> PlanStage | None:
        """Return the first stage with ``stage_id``, if any."""
        return next((s for s in self.stages if s.stage_id == stage_id), None)

    @property
    def stage_ids(self) -> list[str]:
        return [stage.stage_id for stage in self.stages]


__all__ = [
    "ExecutionPlan",
    "PlanContext",
    "PlanEstimates",
    "PlanStage",
    "StageCondition",
    "ValidationSnapshot",
]
