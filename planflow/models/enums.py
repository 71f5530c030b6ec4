"""Domain enum definitions for planflow.

This module defines the enum types shared by the schemas, registries,
validator and executor.
"""

from enum import Enum


class WorkerType(str, Enum):
    """Worker role within a plan.

    SUPERVISOR and COORDINATOR route work, SPECIALIST does domain work,
    FINALIZER consumes the merged state at the end of a plan.
    """

    SUPERVISOR = "supervisor"
    SPECIALIST = "specialist"
    COORDINATOR = "coordinator"
    FINALIZER = "finalizer"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


class ToolCategory(str, Enum):
    """Tool classification by operational area."""

    ROUTING = "routing"
    WEATHER = "weather"
    BUNKER = "bunker"
    COMPLIANCE = "compliance"
    VESSEL = "vessel"
    CALCULATION = "calculation"
    VALIDATION = "validation"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


class ToolCost(str, Enum):
    """Cost class of a single tool invocation."""

    FREE = "free"
    API_CALL = "api_call"
    EXPENSIVE = "expensive"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


class StageStatus(str, Enum):
    """Stage lifecycle status inside one plan run.

    PENDING -> RUNNING -> COMPLETED | FAILED, or PENDING -> SKIPPED when a
    condition or an upstream failure rules the stage out.
    """

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


class PlanPriority(str, Enum):
    """Caller-assigned plan priority."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    CRITICAL = "critical"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


class IssueSeverity(str, Enum):
    """Severity bucket of a validation issue."""

    ERROR = "error"
    WARNING = "warning"
    SUGGESTION = "suggestion"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


class IssueCode(str, Enum):
    """Standardized plan validation issue codes."""

    # Structural
    MISSING_FIELD = "MISSING_FIELD"
    EMPTY_PLAN = "EMPTY_PLAN"
    DUPLICATE_STAGE = "DUPLICATE_STAGE"

    # Referential
    UNKNOWN_WORKER = "UNKNOWN_WORKER"
    DISABLED_WORKER = "DISABLED_WORKER"
    DEPRECATED_WORKER = "DEPRECATED_WORKER"
    FEATURE_DISABLED = "FEATURE_DISABLED"
    UNKNOWN_TOOL = "UNKNOWN_TOOL"
    DEPRECATED_TOOL = "DEPRECATED_TOOL"

    # Ordering
    UNKNOWN_DEPENDENCY = "UNKNOWN_DEPENDENCY"
    ORDER_VIOLATION = "ORDER_VIOLATION"
    CYCLE_DETECTED = "CYCLE_DETECTED"

    # State readiness
    STATE_PRODUCED_LATER = "STATE_PRODUCED_LATER"
    STATE_MISSING = "STATE_MISSING"

    # Advisory
    TIMEOUT_RISK = "TIMEOUT_RISK"
    PARALLEL_OPPORTUNITY = "PARALLEL_OPPORTUNITY"
    SKIP_CONDITION = "SKIP_CONDITION"


__all__ = [
    "IssueCode",
    "IssueSeverity",
    "PlanPriority",
    "StageStatus",
    "ToolCategory",
    "ToolCost",
    "WorkerType",
]
