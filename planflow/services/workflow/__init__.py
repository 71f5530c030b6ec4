"""Plan analysis, validation and execution package.

TAG: [GRAPH] [ANALYZER]
TAG: [PLAN] [VALIDATION]
TAG: [EXECUTION] [EXECUTOR]

Components:
Graph analysis:
- Graph: Generic directed graph data structure
- GraphAlgorithms: Cycle detection, topological sort, closure
- DependencyGraphAnalyzer: Queries over the worker capability graph

Validation:
- PlanValidator: Structural, referential, ordering and state checks

Execution:
- PlanExecutor: Stage-graph execution engine
- ExecutionContext: Per-run state with snapshot/delta merging
- BackoffPolicy: Retry delay curve

Example:
    >>> from planflow.services.workflow import PlanExecutor, PlanValidator
    >>> result = PlanValidator(workers, tools).validate(plan, state)
    >>> outcome = await PlanExecutor(workers, tools, analyzer).execute(plan, state)
"""

# ============================================================================
# Graph Analysis
# ============================================================================

from planflow.services.workflow.algorithms import GraphAlgorithms
from planflow.services.workflow.analyzer import DependencyGraphAnalyzer
from planflow.services.workflow.graph import Graph, build_stage_graph

# ============================================================================
# Validation
# ============================================================================

from planflow.services.workflow.validator import PlanValidator

# ============================================================================
# Execution
# ============================================================================

from planflow.services.workflow.context import ExecutionContext
from planflow.services.workflow.exceptions import (
    CircularDependencyError,
    ExecutionError,
    InvalidPlanError,
    PlanPreconditionError,
    PlanTimeoutError,
    StageExecutionError,
    StageTimeoutError,
    WorkerNotFoundError,
)
from planflow.services.workflow.executor import (
    ExecutorOptions,
    PlanExecutor,
    compare_to_estimates,
)
from planflow.services.workflow.retry import BackoffPolicy

__all__ = [
    # Graph Analysis
    "DependencyGraphAnalyzer",
    "Graph",
    "GraphAlgorithms",
    "build_stage_graph",
    # Validation
    "PlanValidator",
    # Execution
    "BackoffPolicy",
    "ExecutionContext",
    "ExecutorOptions",
    "PlanExecutor",
    "compare_to_estimates",
    # Exceptions
    "CircularDependencyError",
    "ExecutionError",
    "InvalidPlanError",
    "PlanPreconditionError",
    "PlanTimeoutError",
    "StageExecutionError",
    "StageTimeoutError",
    "WorkerNotFoundError",
]
