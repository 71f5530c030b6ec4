"""Pydantic schemas for worker/tool catalogs, plans and results."""

from planflow.schemas.base import BaseSchema
from planflow.schemas.execution import (
    EstimateComparison,
    ExecutionCosts,
    ExecutionResult,
    StageError,
    StageExecutionResult,
)
from planflow.schemas.plan import (
    ExecutionPlan,
    PlanContext,
    PlanEstimates,
    PlanStage,
    StageCondition,
    ValidationSnapshot,
)
from planflow.schemas.tool import (
    ObjectSchema,
    RateLimit,
    ToolDefinition,
    ToolDependencies,
    ToolMetrics,
    ToolSearchCriteria,
)
from planflow.schemas.validation import (
    CircularDependencyIssue,
    DefinitionValidationResult,
    DependencyGraph,
    DependencyValidationResult,
    MissingDependency,
    PlanValidationResult,
    ValidationIssue,
)
from planflow.schemas.worker import (
    ExecutionConstraints,
    LLMConfig,
    RetryPolicy,
    StateConsumption,
    StateProduction,
    ToolRefs,
    WorkerDefinition,
    WorkerDependencies,
    WorkerMetrics,
    WorkerSearchCriteria,
)

__all__ = [
    "BaseSchema",
    # Worker
    "ExecutionConstraints",
    "LLMConfig",
    "RetryPolicy",
    "StateConsumption",
    "StateProduction",
    "ToolRefs",
    "WorkerDefinition",
    "WorkerDependencies",
    "WorkerMetrics",
    "WorkerSearchCriteria",
    # Tool
    "ObjectSchema",
    "RateLimit",
    "ToolDefinition",
    "ToolDependencies",
    "ToolMetrics",
    "ToolSearchCriteria",
    # Plan
    "ExecutionPlan",
    "PlanContext",
    "PlanEstimates",
    "PlanStage",
    "StageCondition",
    "ValidationSnapshot",
    # Validation
    "CircularDependencyIssue",
    "DefinitionValidationResult",
    "DependencyGraph",
    "DependencyValidationResult",
    "MissingDependency",
    "PlanValidationResult",
    "ValidationIssue",
    # Execution
    "EstimateComparison",
    "ExecutionCosts",
    "ExecutionResult",
    "StageError",
    "StageExecutionResult",
]
