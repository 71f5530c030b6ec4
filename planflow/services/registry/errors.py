"""Registry Error Classes.

TAG: [REGISTRY] [ERRORS]
"""

from __future__ import annotations

from planflow.core.exceptions import PlanflowError


class RegistryError(PlanflowError):
    """Base exception for catalog errors."""


class RegistrationError(RegistryError):
    """Raised when a definition cannot be registered.

    Registration is all-or-nothing: when this is raised the catalog is
    unchanged.

    Attributes:
        entry_id: Id of the rejected definition (may be empty if unparsable).
        errors: Every problem found, not just the first.
    """

    def __init__(self, kind: str, entry_id: str, errors: list[str]) -> None:
        label = entry_id or "<unknown>"
        super().__init__(
            message=f"Invalid {kind} definition '{label}': {'; '.join(errors)}",
            error_code="REGISTRATION_FAILED",
            details={"kind": kind, "id": entry_id, "errors": list(errors)},
        )
        self.kind = kind
        self.entry_id = entry_id
        self.errors = list(errors)


class DuplicateRegistrationError(RegistrationError):
    """Raised when an id is already registered."""

    def __init__(self, kind: str, entry_id: str) -> None:
        super().__init__(kind, entry_id, [f"{kind.capitalize()} '{entry_id}' is already registered"])
        self.error_code = "DUPLICATE_ID"


class EntryNotFoundError(RegistryError):
    """Raised when an operation needs a registered id that does not exist."""

    def __init__(self, kind: str, entry_id: str) -> None:
        super().__init__(
            message=f"{kind.capitalize()} '{entry_id}' not found in registry",
            error_code="NOT_FOUND",
            details={"kind": kind, "id": entry_id},
        )
        self.kind = kind
        self.entry_id = entry_id


class HandlerNotFoundError(RegistryError):
    """Raised when an implementation reference has no handler."""

    def __init__(self, reference: str) -> None:
        super().__init__(
            message=f"No handler registered for implementation reference: {reference}",
            error_code="HANDLER_NOT_FOUND",
            details={"reference": reference},
        )
        self.reference = reference


__all__ = [
    "DuplicateRegistrationError",
    "EntryNotFoundError",
    "HandlerNotFoundError",
    "RegistrationError",
    "RegistryError",
]
