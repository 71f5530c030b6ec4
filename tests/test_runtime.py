"""Tests for runtime wiring.

TAG: [RUNTIME] [TEST]
"""

import pytest

from planflow.models.enums import IssueCode
from planflow.runtime import create_runtime
from planflow.services.registry import create_tool_table, create_worker_table
from planflow.services.workflow import ExecutorOptions, InvalidPlanError


@pytest.fixture
def wired(runtime, worker_factory, scripted_worker):
    """Register a worker on the runtime and return its handler."""

    def _register(worker_id, handler=None, **overrides):
        handler = handler or scripted_worker({}, name=worker_id)
        definition = worker_factory(worker_id, **overrides)
        runtime.workers.handlers.register(definition["implementation"], handler)
        runtime.workers.register(definition)
        return handler

    return _register


class TestCreateRuntime:
    def test_services_share_registries(self, runtime, wired, stage_factory, plan_factory) -> None:
        wired("route_agent")

        validation = runtime.validate_plan(plan_factory([stage_factory("route", 1)]))

        assert validation.valid is True
        assert runtime.analyzer.get_execution_order(["route_agent"]) == ["route_agent"]

    def test_handler_tables_are_used(self, test_settings) -> None:
        worker_handlers = create_worker_table()
        tool_handlers = create_tool_table()

        runtime = create_runtime(test_settings, worker_handlers, tool_handlers)

        assert runtime.workers.handlers is worker_handlers
        assert runtime.tools.handlers is tool_handlers
        assert runtime.settings is test_settings

    def test_fresh_tables_by_default(self, test_settings) -> None:
        first = create_runtime(test_settings)
        second = create_runtime(test_settings)

        assert first.workers.handlers is not second.workers.handlers


class TestRunPlan:
    @pytest.mark.asyncio
    async def test_valid_plan_runs(
        self, runtime, wired, scripted_worker, stage_factory, plan_factory
    ) -> None:
        wired("route_agent", scripted_worker({"route_data": {"distance_nm": 8000}}))
        wired("bunker_agent", scripted_worker({"bunker_ports": ["SGSIN"]}))
        plan = plan_factory(
            [
                stage_factory("route", 1, provides=["route_data"]),
                stage_factory("bunker", 2, depends_on=["route"], requires=["route_data"]),
            ]
        )

        result = await runtime.run_plan(plan, {"messages": []})

        assert result.success is True
        assert result.stages_completed == ["route", "bunker"]
        assert result.final_state["bunker_ports"] == ["SGSIN"]
        assert plan.validation.is_valid is None

    @pytest.mark.asyncio
    async def test_unknown_worker_rejected(
        self, runtime, wired, stage_factory, plan_factory
    ) -> None:
        bunker = wired("bunker_agent")
        plan = plan_factory(
            [
                stage_factory("route", 1, worker_id="ghost_agent"),
                stage_factory("bunker", 2, depends_on=["route"]),
            ]
        )

        with pytest.raises(InvalidPlanError) as exc_info:
            await runtime.run_plan(plan)

        assert exc_info.value.validation.has_code(IssueCode.UNKNOWN_WORKER)
        assert bunker.call_count == 0

    @pytest.mark.asyncio
    async def test_warnings_do_not_block(
        self, runtime, wired, stage_factory, plan_factory
    ) -> None:
        route = wired("route_agent")
        plan = plan_factory([stage_factory("route", 1, requires=["vessel_profile"])])

        validation = runtime.validate_plan(plan, {})
        result = await runtime.run_plan(plan, {})

        assert validation.valid is True
        assert validation.has_code(IssueCode.STATE_MISSING)
        assert result.success is True
        assert route.call_count == 1

    @pytest.mark.asyncio
    async def test_options_are_forwarded(
        self, runtime, wired, scripted_worker, stage_factory, plan_factory
    ) -> None:
        route = wired("route_agent", scripted_worker(failures=5), max_retries=3)

        result = await runtime.run_plan(
            plan_factory([stage_factory("route", 1)]),
            options=ExecutorOptions(max_retries=0),
        )

        assert result.success is False
        assert route.call_count == 1
