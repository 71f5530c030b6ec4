"""Pydantic schemas for tool definitions.

TAG: [SCHEMAS] [TOOL]

Tools are the lower-level operations workers invoke (route lookups, price
feeds, calculators). They share the worker registration pattern and add
operational metadata: cost class, latency and reliability.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import AliasChoices, ConfigDict, Field, model_validator

from planflow.models.enums import ToolCategory, ToolCost
from planflow.schemas.base import SLUG_PATTERN, BaseSchema, is_semver


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ObjectSchema(BaseSchema):
    """JSON-schema object describing a tool's input or output.

    Only the object form is accepted. Keys other than ``type``,
    ``properties`` and ``required`` are kept as-is.
    """

    model_config = ConfigDict(extra="allow")

    type: Literal["object"]
    properties: dict[str, Any]
    required: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_required_subset(self) -> ObjectSchema:
        """Every required property must be declared in properties."""
        undeclared = [name for name in self.required if name not in self.properties]
        if undeclared:
            raise ValueError(f"required properties not declared: {undeclared}")
        return self


class ToolDependencies(BaseSchema):
    """External services and internal tool ids a tool relies on."""

    external: list[str] = Field(default_factory=list)
    internal: list[str] = Field(default_factory=list)


class RateLimit(BaseSchema):
    """Calls allowed per time window."""

    calls: int = Field(..., ge=1)
    window_ms: int = Field(..., ge=1)


class ToolMetrics(BaseSchema):
    """Call counters maintained by the registry."""

    total_calls: int = Field(default=0, ge=0)
    success_calls: int = Field(default=0, ge=0)
    failure_calls: int = Field(default=0, ge=0)
    last_called_at: datetime | None = None

    @model_validator(mode="after")
    def check_counter_consistency(self) -> ToolMetrics:
        """Success plus failure calls never exceed the total."""
        if self.success_calls + self.failure_calls > self.total_calls:
            raise ValueError("success_calls + failure_calls exceeds total_calls")
        return self


class ToolDefinition(BaseSchema):
    """Registered tool.

    Immutable once registered except for ``metrics``, ``reliability`` and
    ``avg_latency_ms``, which ``ToolRegistry.record_call`` maintains.
    """

    id: str = Field(..., min_length=1, pattern=SLUG_PATTERN)
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    version: str = Field(..., min_length=1)
    category: ToolCategory
    domain: list[str] = Field(default_factory=list)

    input_schema: ObjectSchema
    output_schema: ObjectSchema

    cost: ToolCost
    avg_latency_ms: float = Field(..., ge=0)
    max_latency_ms: float = Field(..., ge=0)
    reliability: float = Field(..., ge=0.0, le=1.0)

    dependencies: ToolDependencies = Field(default_factory=ToolDependencies)
    worker_ids: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("workerIds", "agentIds", "worker_ids"),
        serialization_alias="workerIds",
        description="Workers allowed to call this tool",
    )
    requires_auth: bool = False
    rate_limit: RateLimit | None = None
    implementation: str = Field(
        ...,
        min_length=1,
        description="Key of the handler in the tool HandlerTable",
    )

    metrics: ToolMetrics = Field(default_factory=ToolMetrics)

    enabled: bool = True
    deprecated: bool = False
    replaced_by: str | None = None

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def collect_warnings(self) -> list[str]:
        """Return non-fatal findings about this definition."""
        warnings: list[str] = []
        if not is_semver(self.version):
            warnings.append(f"Tool '{self.id}': version '{self.version}' is not semver (x.y.z)")
        if not self.domain:
            warnings.append(f"Tool '{self.id}' declares no domain")
        if not self.worker_ids:
            warnings.append(f"Tool '{self.id}' is not assigned to any worker")
        if self.max_latency_ms < self.avg_latency_ms:
            warnings.append(
                f"Tool '{self.id}': max_latency_ms ({self.max_latency_ms}) "
                f"is below avg_latency_ms ({self.avg_latency_ms})"
            )
        if self.deprecated and not self.replaced_by:
            warnings.append(f"Tool '{self.id}' is deprecated but has no replaced_by")
        return warnings


class ToolSearchCriteria(BaseSchema):
    """AND-combined tool search filters. Unset fields do not filter."""

    category: ToolCategory | None = None
    domain: str | None = None
    worker_id: str | None = None
    min_reliability: float | None = Field(default=None, ge=0.0, le=1.0)
    max_latency_ms: float | None = Field(default=None, ge=0)
    cost: ToolCost | None = None
    exclude_deprecated: bool = True


__all__ = [
    "ObjectSchema",
    "RateLimit",
    "ToolDefinition",
    "ToolDependencies",
    "ToolMetrics",
    "ToolSearchCriteria",
]
