"""Handler tables for worker and tool implementations.

TAG: [REGISTRY] [HANDLERS]

Definitions never hold code. A definition's ``implementation`` field is a
reference key; the concrete object lives in a HandlerTable owned by the
host and injected into the registry. Workers implement the ``Worker``
protocol; tools are plain callables.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Generic, Protocol, TypeAlias, TypeVar, runtime_checkable

from planflow.services.registry.errors import HandlerNotFoundError

H = TypeVar("H")

StateDelta: TypeAlias = Mapping[str, Any]


@runtime_checkable
class Worker(Protocol):
    """Closed interface every worker implementation satisfies.

    ``execute`` receives a read-only snapshot of the plan state and returns
    the fields it changed (or None for no change). Raising signals failure.
    """

    async def execute(self, state: Mapping[str, Any]) -> StateDelta | None: ...


class FunctionWorker:
    """Adapt a plain function (sync or async) to the Worker protocol.

    Example:
        >>> async def route(state):
        ...     return {"route_data": {"distance_nm": 8000}}
        >>> handlers.register("route_worker", FunctionWorker(route))
    """

    def __init__(self, func: Callable[[Mapping[str, Any]], Any], name: str | None = None) -> None:
        if not callable(func):
            raise TypeError(f"FunctionWorker expects a callable, got {type(func).__name__}")
        self._func = func
        self.name = name or getattr(func, "__name__", "function_worker")

    async def execute(self, state: Mapping[str, Any]) -> StateDelta | None:
        result = self._func(state)
        if inspect.isawaitable(result):
            result = await result
        return result

    def __repr__(self) -> str:
        return f"FunctionWorker({self.name})"


class HandlerTable(Generic[H]):
    """Lookup table from implementation reference to concrete handler.

    Example:
        table = HandlerTable[Worker]("worker", is_worker_handler)
        table.register("route_worker", RouteWorker())
        worker = table.get("route_worker")
    """

    def __init__(self, kind: str, check: Callable[[Any], bool] | None = None) -> None:
        self.kind = kind
        self._check = check or callable
        self._handlers: dict[str, H] = {}

    def register(self, reference: str, handler: H) -> None:
        """Register a handler under ``reference``.

        Note:
            Re-registering a reference replaces the previous handler.

        Raises:
            TypeError: If the handler does not satisfy this table's contract.
        """
        if not self._check(handler):
            raise TypeError(
                f"Handler for {self.kind} reference '{reference}' is not a valid "
                f"{self.kind} implementation"
            )
        self._handlers[reference] = handler

    def get(self, reference: str) -> H:
        """Return the handler for ``reference``.

        Raises:
            HandlerNotFoundError: If nothing is registered under ``reference``.
        """
        if reference not in self._handlers:
            raise HandlerNotFoundError(reference)
        return self._handlers[reference]

    def resolve(self, reference: str) -> H | None:
        """Return the handler for ``reference`` or None."""
        return self._handlers.get(reference)

    def is_valid(self, reference: str) -> bool:
        """True if ``reference`` resolves to a handler that satisfies the contract."""
        handler = self._handlers.get(reference)
        return handler is not None and self._check(handler)

    def unregister(self, reference: str) -> None:
        self._handlers.pop(reference, None)

    def list_registered(self) -> list[str]:
        return list(self._handlers)

    def __contains__(self, reference: object) -> bool:
        return reference in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)


def is_worker_handler(handler: Any) -> bool:
    """A worker handler exposes a callable ``execute``."""
    return callable(getattr(handler, "execute", None))


ToolHandler: TypeAlias = Callable[..., Any | Awaitable[Any]]


def create_worker_table() -> HandlerTable[Worker]:
    return HandlerTable[Worker]("worker", is_worker_handler)


def create_tool_table() -> HandlerTable[ToolHandler]:
    return HandlerTable[ToolHandler]("tool", callable)


__all__ = [
    "FunctionWorker",
    "HandlerTable",
    "StateDelta",
    "ToolHandler",
    "Worker",
    "create_tool_table",
    "create_worker_table",
    "is_worker_handler",
]
