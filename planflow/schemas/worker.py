"""Pydantic schemas for worker definitions.

TAG: [SCHEMAS] [WORKER]

A worker definition is the catalog entry for one unit of work: what it
consumes and produces, which tools it needs, which other workers it sits
upstream or downstream of, and how it may be executed. The shape checks here
make registration exhaustive; semantic checks that need other registries
(tool references, implementation handles) live in the registry.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import Field, model_validator

from planflow.models.enums import WorkerType
from planflow.schemas.base import SLUG_PATTERN, BaseSchema, is_semver


def _utcnow() -> datetime:
    return datetime.now(UTC)


# =============================================================================
# Contract Sections
# =============================================================================


class StateProduction(BaseSchema):
    """State fields and message types a worker writes."""

    state_fields: list[str] = Field(default_factory=list)
    message_types: list[str] = Field(default_factory=list)


class StateConsumption(BaseSchema):
    """State fields a worker reads."""

    required: list[str] = Field(default_factory=list)
    optional: list[str] = Field(default_factory=list)


class ToolRefs(BaseSchema):
    """References into the tool registry."""

    required: list[str] = Field(default_factory=list)
    optional: list[str] = Field(default_factory=list)


class WorkerDependencies(BaseSchema):
    """Capability graph declarations (worker ids)."""

    upstream: list[str] = Field(default_factory=list)
    downstream: list[str] = Field(default_factory=list)


class RetryPolicy(BaseSchema):
    """Per-worker retry policy.

    ``backoff_ms`` is the base delay; the executor grows it exponentially
    per attempt and applies jitter.
    """

    max_retries: int = Field(..., ge=0, description="Extra attempts after the first")
    backoff_ms: int = Field(..., ge=0, description="Base delay between attempts")


class ExecutionConstraints(BaseSchema):
    """How a worker may be executed."""

    can_run_in_parallel: bool = False
    max_execution_time_ms: int = Field(
        ...,
        ge=0,
        description="Per-invocation time bound; 0 disables the bound",
    )
    retry_policy: RetryPolicy


class LLMConfig(BaseSchema):
    """Optional model configuration for LLM-backed workers."""

    model: str = Field(..., min_length=1)
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)
    max_tokens: int = Field(default=1024, ge=1)
    system_prompt: str | None = None


class WorkerMetrics(BaseSchema):
    """Execution counters maintained by the registry."""

    total_executions: int = Field(default=0, ge=0)
    successful_executions: int = Field(default=0, ge=0)
    failed_executions: int = Field(default=0, ge=0)
    avg_execution_time_ms: float = Field(default=0.0, ge=0.0)
    last_executed_at: datetime | None = None

    @model_validator(mode="after")
    def check_counter_consistency(self) -> WorkerMetrics:
        """Successful plus failed executions never exceed the total."""
        if self.successful_executions + self.failed_executions > self.total_executions:
            raise ValueError(
                "successful_executions + failed_executions exceeds total_executions"
            )
        return self


# =============================================================================
# Worker Definition
# =============================================================================


class WorkerDefinition(BaseSchema):
    """Registered worker capability.

    Immutable once registered except for ``metrics``, which only
    ``WorkerRegistry.record_execution`` mutates.
    """

    id: str = Field(..., min_length=1, pattern=SLUG_PATTERN)
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    version: str = Field(..., min_length=1)
    type: WorkerType

    domain: list[str] = Field(..., min_length=1)
    capabilities: list[str] = Field(default_factory=list)
    intents: list[str] = Field(default_factory=list)

    produces: StateProduction = Field(default_factory=StateProduction)
    consumes: StateConsumption = Field(default_factory=StateConsumption)
    tool_refs: ToolRefs = Field(default_factory=ToolRefs)
    dependencies: WorkerDependencies = Field(default_factory=WorkerDependencies)

    execution: ExecutionConstraints
    llm: LLMConfig | None = None
    implementation: str = Field(
        ...,
        min_length=1,
        description="Key of the handler in the worker HandlerTable",
    )

    metrics: WorkerMetrics = Field(default_factory=WorkerMetrics)

    enabled: bool = True
    deprecated: bool = False
    replaced_by: str | None = None
    feature_flag: str | None = None

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def collect_warnings(self) -> list[str]:
        """Return non-fatal findings about this definition."""
        warnings: list[str] = []
        if not is_semver(self.version):
            warnings.append(
                f"Worker '{self.id}': version '{self.version}' is not semver (x.y.z)"
            )
        if self.deprecated and not self.replaced_by:
            warnings.append(f"Worker '{self.id}' is deprecated but has no replaced_by")
        if self.replaced_by and not self.deprecated:
            warnings.append(
                f"Worker '{self.id}' has replaced_by '{self.replaced_by}' but is not deprecated"
            )
        if self.id in self.dependencies.upstream or self.id in self.dependencies.downstream:
            warnings.append(f"Worker '{self.id}' lists itself as a dependency")
        return warnings


class WorkerSearchCriteria(BaseSchema):
    """AND-combined worker search filters. Unset fields do not filter."""

    domain: str | None = None
    capability: str | None = None
    type: WorkerType | None = None
    can_run_in_parallel: bool | None = None
    enabled: bool | None = None
    intent: str | None = None


__all__ = [
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
]
