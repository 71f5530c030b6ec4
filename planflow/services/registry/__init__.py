"""Worker and tool catalogs.

Components:
- WorkerRegistry: worker definitions, validation-on-register, metrics
- ToolRegistry: tool definitions, cost/latency/reliability metadata
- HandlerTable: implementation reference -> concrete handler lookup
"""

from planflow.services.registry.errors import (
    DuplicateRegistrationError,
    EntryNotFoundError,
    HandlerNotFoundError,
    RegistrationError,
    RegistryError,
)
from planflow.services.registry.handlers import (
    FunctionWorker,
    HandlerTable,
    Worker,
    create_tool_table,
    create_worker_table,
)
from planflow.services.registry.tool_registry import ToolRegistry
from planflow.services.registry.worker_registry import WorkerRegistry

__all__ = [
    # Registries
    "ToolRegistry",
    "WorkerRegistry",
    # Handlers
    "FunctionWorker",
    "HandlerTable",
    "Worker",
    "create_tool_table",
    "create_worker_table",
    # Errors
    "DuplicateRegistrationError",
    "EntryNotFoundError",
    "HandlerNotFoundError",
    "RegistrationError",
    "RegistryError",
]
