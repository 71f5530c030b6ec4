"""Scheduling services.

This package contains the catalogs (``registry``) and the plan analysis,
validation and execution services (``workflow``).
"""

from planflow.services.registry import ToolRegistry, WorkerRegistry
from planflow.services.workflow import (
    DependencyGraphAnalyzer,
    ExecutorOptions,
    PlanExecutor,
    PlanValidator,
)

__all__ = [
    "DependencyGraphAnalyzer",
    "ExecutorOptions",
    "PlanExecutor",
    "PlanValidator",
    "ToolRegistry",
    "WorkerRegistry",
]
