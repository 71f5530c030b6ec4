"""pytest configuration and fixtures for planflow.

This module provides factories for worker/tool definitions and plans,
scriptable worker handlers, and registries wired the way the runtime wires
them. Every fixture builds fresh objects, so tests never share catalog state.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any

import pytest

from planflow.core.config import Settings
from planflow.runtime import PlanRuntime, create_runtime
from planflow.schemas.plan import ExecutionPlan, PlanStage
from planflow.services.registry import ToolRegistry, WorkerRegistry
from planflow.services.workflow import DependencyGraphAnalyzer, PlanExecutor, PlanValidator

# =============================================================================
# PYTEST CONFIGURATION
# =============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "asyncio: marks tests as async (pytest-asyncio)",
    )


# =============================================================================
# WORKER HANDLERS
# =============================================================================


class ScriptedWorker:
    """Worker handler whose behaviour is scripted per attempt.

    Attributes:
        delta: Returned on success.
        failures: Number of leading attempts that raise RuntimeError.
        delay: Seconds to sleep before answering.
        calls: Snapshots received, one per attempt.
    """

    def __init__(
        self,
        delta: Mapping[str, Any] | None = None,
        *,
        failures: int = 0,
        delay: float = 0.0,
        log: list[str] | None = None,
        name: str = "worker",
    ) -> None:
        self.delta = delta
        self.failures = failures
        self.delay = delay
        self.log = log
        self.name = name
        self.calls: list[Mapping[str, Any]] = []

    async def execute(self, state: Mapping[str, Any]) -> Mapping[str, Any] | None:
        self.calls.append(state)
        if self.log is not None:
            self.log.append(f"start:{self.name}")
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.log is not None:
            self.log.append(f"end:{self.name}")
        if len(self.calls) <= self.failures:
            raise RuntimeError(f"{self.name} attempt {len(self.calls)} failed")
        return self.delta

    @property
    def call_count(self) -> int:
        return len(self.calls)


@pytest.fixture
def scripted_worker():
    """The ScriptedWorker class, for building handlers inside tests."""
    return ScriptedWorker


# =============================================================================
# SETTINGS
# =============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """Settings with deterministic retry delays and no env file."""
    return Settings(
        _env_file=None,
        RETRY_JITTER_RATIO=0.0,
        EXECUTOR_CONTINUE_ON_ERROR=True,
        EXECUTOR_ENABLE_PARALLEL=False,
        DISABLED_FEATURE_FLAGS=[],
        DEFAULT_PLAN_TIMEOUT_MS=None,
    )


# =============================================================================
# DEFINITION FACTORIES
# =============================================================================


@pytest.fixture
def worker_factory():
    """Factory for raw worker definition mappings.

    Example:
        def test_something(worker_factory):
            definition = worker_factory("route_agent", capabilities=["routing"])
    """

    def _create(worker_id: str = "route_agent", **overrides: Any) -> dict[str, Any]:
        parallel = overrides.pop("can_run_in_parallel", False)
        max_time = overrides.pop("max_execution_time_ms", 30_000)
        max_retries = overrides.pop("max_retries", 0)
        backoff_ms = overrides.pop("backoff_ms", 0)
        upstream = overrides.pop("upstream", [])
        downstream = overrides.pop("downstream", [])
        definition: dict[str, Any] = {
            "id": worker_id,
            "name": worker_id.replace("_", " ").title(),
            "description": f"Factory worker {worker_id}",
            "version": "1.0.0",
            "type": "specialist",
            "domain": ["maritime"],
            "capabilities": [],
            "intents": [],
            "dependencies": {"upstream": upstream, "downstream": downstream},
            "execution": {
                "can_run_in_parallel": parallel,
                "max_execution_time_ms": max_time,
                "retry_policy": {"max_retries": max_retries, "backoff_ms": backoff_ms},
            },
            "implementation": f"{worker_id}_impl",
        }
        definition.update(overrides)
        return definition

    return _create


@pytest.fixture
def tool_factory():
    """Factory for raw tool definition mappings."""

    def _create(tool_id: str = "calculate_route", **overrides: Any) -> dict[str, Any]:
        internal = overrides.pop("internal", [])
        definition: dict[str, Any] = {
            "id": tool_id,
            "name": tool_id.replace("_", " ").title(),
            "description": f"Factory tool {tool_id}",
            "version": "1.0.0",
            "category": "routing",
            "domain": ["maritime"],
            "input_schema": {"type": "object", "properties": {"origin": {"type": "string"}}},
            "output_schema": {"type": "object", "properties": {}},
            "cost": "free",
            "avg_latency_ms": 100,
            "max_latency_ms": 500,
            "reliability": 0.95,
            "dependencies": {"external": [], "internal": internal},
            "worker_ids": ["route_agent"],
            "implementation": f"{tool_id}_impl",
        }
        definition.update(overrides)
        return definition

    return _create


@pytest.fixture
def stage_factory():
    """Factory for PlanStage objects."""

    def _create(stage_id: str, order: int, worker_id: str | None = None, **overrides: Any) -> PlanStage:
        return PlanStage(
            stage_id=stage_id,
            order=order,
            worker_id=worker_id or f"{stage_id}_agent",
            **overrides,
        )

    return _create


@pytest.fixture
def plan_factory():
    """Factory for ExecutionPlan objects."""

    def _create(stages: list[PlanStage], **overrides: Any) -> ExecutionPlan:
        defaults: dict[str, Any] = {
            "plan_id": "plan_1",
            "workflow_id": "bunker_planning",
            "stages": stages,
        }
        defaults.update(overrides)
        return ExecutionPlan(**defaults)

    return _create


# =============================================================================
# REGISTRIES AND SERVICES
# =============================================================================


@pytest.fixture
def tool_registry() -> ToolRegistry:
    return ToolRegistry(ema_alpha=0.1)


@pytest.fixture
def worker_registry(tool_registry: ToolRegistry) -> WorkerRegistry:
    return WorkerRegistry(tool_registry, ema_alpha=0.1)


@pytest.fixture
def analyzer(worker_registry: WorkerRegistry) -> DependencyGraphAnalyzer:
    return DependencyGraphAnalyzer(worker_registry)


@pytest.fixture
def validator(
    worker_registry: WorkerRegistry,
    tool_registry: ToolRegistry,
    test_settings: Settings,
) -> PlanValidator:
    return PlanValidator(worker_registry, tool_registry, test_settings)


@pytest.fixture
def sleeps() -> list[float]:
    """Backoff delays (seconds) requested by the executor under test."""
    return []


@pytest.fixture
def executor(
    worker_registry: WorkerRegistry,
    tool_registry: ToolRegistry,
    analyzer: DependencyGraphAnalyzer,
    test_settings: Settings,
    sleeps: list[float],
) -> PlanExecutor:
    """Executor whose backoff sleeps are recorded instead of awaited."""

    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return PlanExecutor(
        worker_registry,
        tool_registry,
        analyzer,
        test_settings,
        sleep=fake_sleep,
    )


@pytest.fixture
def register_worker(worker_registry: WorkerRegistry, worker_factory):
    """Register a worker definition together with its handler.

    Returns the handler so tests can inspect calls.

    Example:
        def test_something(register_worker):
            route = register_worker("route_agent", ScriptedWorker({"route": 1}))
    """

    def _register(worker_id: str, handler: Any | None = None, **overrides: Any) -> Any:
        handler = handler if handler is not None else ScriptedWorker({}, name=worker_id)
        definition = worker_factory(worker_id, **overrides)
        worker_registry.handlers.register(definition["implementation"], handler)
        worker_registry.register(definition)
        return handler

    return _register


@pytest.fixture
def register_tool(tool_registry: ToolRegistry, tool_factory):
    """Register a tool definition together with a no-op handler."""

    def _register(tool_id: str, **overrides: Any) -> None:
        definition = tool_factory(tool_id, **overrides)
        tool_registry.handlers.register(definition["implementation"], lambda **_: {})
        tool_registry.register(definition)

    return _register


@pytest.fixture
def runtime(test_settings: Settings) -> PlanRuntime:
    return create_runtime(test_settings)
