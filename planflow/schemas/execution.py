"""Pydantic schemas for plan execution results.

TAG: [SCHEMAS] [EXECUTION]
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, Field

from planflow.models.enums import StageStatus
from planflow.schemas.base import BaseSchema


class StageError(BaseSchema):
    """Error recorded against one stage (or the plan as a whole)."""

    stage_id: str
    error: str
    error_type: str = Field(
        default="stage_error",
        description="stage_error | stage_timeout | plan_timeout | worker_not_found",
    )
    attempts: int = 0


class StageExecutionResult(BaseSchema):
    """Per-stage outcome detail."""

    stage_id: str
    worker_id: str
    status: StageStatus
    attempts: int = 0
    duration_ms: float = 0.0
    cost_usd: float = 0.0
    api_calls: int = 0
    error: str | None = None
    skip_reason: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None


class ExecutionCosts(BaseSchema):
    """Actual spend of one plan run."""

    actual_cost_usd: float = Field(
        default=0.0,
        validation_alias=AliasChoices("actualCostUSD", "actual_cost_usd"),
        serialization_alias="actualCostUSD",
    )
    llm_calls: int = 0
    api_calls: int = 0


class EstimateComparison(BaseSchema):
    """Actuals versus the plan's estimates."""

    duration_diff_ms: float = 0.0
    cost_diff_usd: float = Field(
        default=0.0,
        validation_alias=AliasChoices("costDiffUSD", "cost_diff_usd"),
        serialization_alias="costDiffUSD",
    )
    accuracy_percent: int = 0


class ExecutionResult(BaseSchema):
    """Complete result of one plan run.

    Always returned by the executor for stage-level problems; ``success``
    carries the outcome and ``errors`` the detail.
    """

    plan_id: str
    success: bool
    stages_completed: list[str] = Field(default_factory=list)
    stages_failed: list[str] = Field(default_factory=list)
    stages_skipped: list[str] = Field(default_factory=list)
    errors: list[StageError] = Field(default_factory=list)
    duration_ms: float = 0.0
    costs: ExecutionCosts = Field(default_factory=ExecutionCosts)
    vs_estimates: EstimateComparison = Field(default_factory=EstimateComparison)
    stage_results: list[StageExecutionResult] = Field(default_factory=list)
    final_state: dict[str, Any] = Field(default_factory=dict)
    state_delta: dict[str, Any] = Field(default_factory=dict)
    aborted: bool = False
    exited_early: bool = False

    def get_stage_result(self, stage_id: str) -> StageExecutionResult | None:
        return next((r for r in self.stage_results if r.stage_id == stage_id), None)


__all__ = [
    "EstimateComparison",
    "ExecutionCosts",
    "ExecutionResult",
    "StageError",
    "StageExecutionResult",
]
