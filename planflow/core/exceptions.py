"""Common exception base classes.

Every error raised by planflow derives from PlanflowError, so hosts can catch
the whole family with one clause and still read a machine-readable code.
"""

from __future__ import annotations

from typing import Any


class PlanflowError(Exception):
    """Base exception for planflow.

    Attributes:
        message: Human-readable error message.
        error_code: Machine-readable error code.
        details: Additional error context as dictionary.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "PLANFLOW_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error for structured results and logs."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


__all__ = ["PlanflowError"]
