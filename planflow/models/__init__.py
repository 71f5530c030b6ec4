"""Shared enumerations."""

from planflow.models.enums import (
    IssueCode,
    IssueSeverity,
    PlanPriority,
    StageStatus,
    ToolCategory,
    ToolCost,
    WorkerType,
)

__all__ = [
    "IssueCode",
    "IssueSeverity",
    "PlanPriority",
    "StageStatus",
    "ToolCategory",
    "ToolCost",
    "WorkerType",
]
