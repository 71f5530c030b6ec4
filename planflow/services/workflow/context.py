"""ExecutionContext for plan execution.

TAG: [EXECUTION] [CONTEXT]

Holds the working copy of the plan state during one executor run. Stages
never see the working copy itself: each gets a deep-copied, read-only
snapshot and returns a delta, which the executor merges here one at a time.
"""

from __future__ import annotations

import asyncio
import copy
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from planflow.schemas.execution import StageError


class ExecutionContext:
    """Per-run state holder shared by the stages of one plan.

    Attributes:
        plan_id: Plan being executed.
        _state: Working copy of the state (initial state plus merged deltas).
        _delta: Every field changed during the run, last write wins.
        _stage_outputs: Delta returned by each completed stage.
        _errors: Errors recorded during the run.
        _lock: Serializes merges when stages complete concurrently.
    """

    def __init__(self, plan_id: str, initial_state: Mapping[str, Any] | None = None) -> None:
        """Initialize the context.

        Args:
            plan_id: Plan being executed.
            initial_state: Caller's state. Deep-copied; never mutated.
        """
        self.plan_id = plan_id
        self._state: dict[str, Any] = copy.deepcopy(dict(initial_state or {}))
        self._delta: dict[str, Any] = {}
        self._stage_outputs: dict[str, dict[str, Any]] = {}
        self._errors: list[StageError] = []
        self._lock = asyncio.Lock()

    def snapshot(self) -> Mapping[str, Any]:
        """Deep-copied, read-only view of the current state.

        Mutating nested values inside a snapshot cannot reach the working
        copy; top-level assignment raises TypeError.
        """
        return MappingProxyType(copy.deepcopy(self._state))

    async def apply_delta(self, stage_id: str, delta: Mapping[str, Any]) -> None:
        """Merge ``delta`` into the state, overwriting the returned fields."""
        merged = copy.deepcopy(dict(delta))
        async with self._lock:
            self._state.update(merged)
            self._delta.update(merged)
            self._stage_outputs[stage_id] = merged

    async def add_error(
        self,
        stage_id: str,
        error_type: str,
        message: str,
        attempts: int = 0,
    ) -> None:
        async with self._lock:
            self._errors.append(
                StageError(
                    stage_id=stage_id,
                    error=message,
                    error_type=error_type,
                    attempts=attempts,
                )
            )

    def has_errors(self) -> bool:
        return len(self._errors) > 0

    def get_output(self, stage_id: str) -> dict[str, Any] | None:
        """Delta returned by ``stage_id``, if it completed."""
        return self._stage_outputs.get(stage_id)

    @property
    def state(self) -> dict[str, Any]:
        return dict(self._state)

    @property
    def delta(self) -> dict[str, Any]:
        return dict(self._delta)

    @property
    def errors(self) -> list[StageError]:
        return list(self._errors)


__all__ = ["ExecutionContext"]
