"""planflow: plan scheduling and execution for multi-worker workflows.

Worker and tool catalogs, capability-graph analysis, plan validation and a
retrying, timeout-aware plan executor.
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
