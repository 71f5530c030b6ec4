"""Pydantic schemas for validation and graph analysis results.

TAG: [SCHEMAS] [VALIDATION]

This module defines the report shapes returned by the registries
(definition validation), the dependency analyzer (capability graph) and the
plan validator (errors / warnings / suggestions).
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import Field

from planflow.models.enums import IssueCode, IssueSeverity
from planflow.schemas.base import BaseSchema
from planflow.schemas.plan import ValidationSnapshot

# =============================================================================
# Definition Validation
# =============================================================================


class DefinitionValidationResult(BaseSchema):
    """Outcome of validating one worker or tool definition."""

    valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


# =============================================================================
# Capability Graph
# =============================================================================


class DependencyGraph(BaseSchema):
    """Capability graph snapshot. Recomputed on every query."""

    nodes: list[str] = Field(default_factory=list)
    edges: list[tuple[str, str]] = Field(
        default_factory=list,
        description="(upstream, downstream) pairs",
    )
    cycles: list[list[str]] = Field(default_factory=list)


class MissingDependency(BaseSchema):
    """Unregistered ids referenced by one worker's dependencies."""

    worker_id: str
    missing_deps: list[str]


class DependencyValidationResult(BaseSchema):
    """Outcome of ``DependencyGraphAnalyzer.validate_dependencies``."""

    valid: bool
    missing: list[MissingDependency] = Field(default_factory=list)


# =============================================================================
# Plan Validation
# =============================================================================


class ValidationIssue(BaseSchema):
    """Single plan validation finding."""

    code: IssueCode
    severity: IssueSeverity
    message: str
    stage_ids: list[str] = Field(default_factory=list)
    details: dict[str, Any] = Field(default_factory=dict)


class CircularDependencyIssue(ValidationIssue):
    """Stage-graph cycle. Always an error."""

    code: IssueCode = IssueCode.CYCLE_DETECTED
    severity: IssueSeverity = IssueSeverity.ERROR
    cycle_path: list[str]


class PlanValidationResult(BaseSchema):
    """Categorized plan validation report.

    Callers decide whether to proceed on warnings and must not proceed when
    ``valid`` is False.
    """

    valid: bool
    plan_id: str = ""
    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationIssue] = Field(default_factory=list)
    suggestions: list[ValidationIssue] = Field(default_factory=list)
    validated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def error_messages(self) -> list[str]:
        return [issue.message for issue in self.errors]

    @property
    def warning_messages(self) -> list[str]:
        return [issue.message for issue in self.warnings]

    def has_code(self, code: IssueCode) -> bool:
        """True if any error, warning or suggestion carries ``code``."""
        return any(
            issue.code == code
            for issue in (*self.errors, *self.warnings, *self.suggestions)
        )

    def to_snapshot(self) -> ValidationSnapshot:
        """Condense the report into the snapshot stored on a plan."""
        invalid_workers = sorted(
            {
                issue.details["worker_id"]
                for issue in self.errors
                if issue.code in (IssueCode.UNKNOWN_WORKER, IssueCode.DISABLED_WORKER)
                and "worker_id" in issue.details
            }
        )
        invalid_tools = sorted(
            {
                issue.details["tool_id"]
                for issue in self.errors
                if issue.code == IssueCode.UNKNOWN_TOOL and "tool_id" in issue.details
            }
        )
        missing_inputs = sorted(
            {
                issue.details["field"]
                for issue in self.warnings
                if issue.code == IssueCode.STATE_MISSING and "field" in issue.details
            }
        )
        return ValidationSnapshot(
            is_valid=self.valid,
            missing_inputs=missing_inputs,
            invalid_workers=invalid_workers,
            invalid_tools=invalid_tools,
            warnings=self.warning_messages,
        )


__all__ = [
    "CircularDependencyIssue",
    "DefinitionValidationResult",
    "DependencyGraph",
    "DependencyValidationResult",
    "MissingDependency",
    "PlanValidationResult",
    "ValidationIssue",
]
