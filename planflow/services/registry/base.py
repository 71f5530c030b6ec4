"""Shared catalog mechanics for the worker and tool registries.

TAG: [REGISTRY] [BASE]

Both catalogs follow the same pattern: exhaustive validation, then the
duplicate check, then cross-registry reference checks, and only then
insertion. A failure at any step leaves the catalog untouched.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from planflow.core.logging import get_logger
from planflow.schemas.validation import DefinitionValidationResult
from planflow.services.registry.errors import (
    DuplicateRegistrationError,
    EntryNotFoundError,
    RegistrationError,
)
from planflow.services.registry.handlers import HandlerTable

logger = get_logger(__name__)


D = TypeVar("D", bound=BaseModel)


def format_validation_errors(exc: ValidationError) -> list[str]:
    """Flatten a pydantic ValidationError into ``"loc: message"`` strings."""
    messages: list[str] = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err["loc"])
        messages.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return messages


class CatalogRegistry(Generic[D]):
    """Base class for id-keyed definition catalogs.

    Subclasses set ``kind`` and ``model`` and may extend
    ``_check_references`` / ``_reference_warnings``.

    Entries are stored in registration order. Metric mutation goes through
    ``_lock`` so concurrent stage completions never lose an increment.
    """

    kind: ClassVar[str] = "entry"
    model: ClassVar[type[BaseModel]]

    def __init__(self, handlers: HandlerTable[Any]) -> None:
        self._handlers = handlers
        self._entries: dict[str, D] = {}
        self._lock = threading.RLock()

    @property
    def handlers(self) -> HandlerTable[Any]:
        """Implementation lookup table backing this catalog."""
        return self._handlers

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def register(self, definition: D | Mapping[str, Any]) -> DefinitionValidationResult:
        """Validate and insert a definition.

        Args:
            definition: A model instance or a raw mapping (camelCase or
                snake_case keys).

        Returns:
            Validation result carrying any non-fatal warnings.

        Raises:
            RegistrationError: If the definition is malformed or references
                something that does not exist.
            DuplicateRegistrationError: If the id is already registered.
        """
        entry, errors = self._parse(definition)
        if entry is not None:
            errors.extend(self._check_handler(entry))
        if entry is None or errors:
            entry_id = entry.id if entry is not None else _raw_id(definition)
            logger.warning(
                f"Rejected {self.kind} '{entry_id}': {len(errors)} error(s)",
                extra={"context": {"kind": self.kind, "id": entry_id, "errors": errors}},
            )
            raise RegistrationError(self.kind, entry_id, errors)

        with self._lock:
            if entry.id in self._entries:
                raise DuplicateRegistrationError(self.kind, entry.id)

            reference_errors = self._check_references(entry)
            if reference_errors:
                logger.warning(
                    f"Rejected {self.kind} '{entry.id}': unresolved references",
                    extra={"context": {"id": entry.id, "errors": reference_errors}},
                )
                raise RegistrationError(self.kind, entry.id, reference_errors)

            warnings = [*entry.collect_warnings(), *self._reference_warnings(entry)]
            self._entries[entry.id] = entry

        for warning in warnings:
            logger.warning(warning)
        logger.info(f"Registered {self.kind}: {entry.id} ({entry.name})")

        return DefinitionValidationResult(valid=True, warnings=warnings)

    def validate(self, entry_id: str) -> DefinitionValidationResult:
        """Re-run validation against a registered entry.

        Raises:
            EntryNotFoundError: If ``entry_id`` is not registered.
        """
        entry = self._require(entry_id)
        reparsed, errors = self._parse(entry)
        if reparsed is not None:
            errors.extend(self._check_handler(reparsed))
            errors.extend(self._check_references(reparsed))
        warnings = [*entry.collect_warnings(), *self._reference_warnings(entry)]
        return DefinitionValidationResult(valid=not errors, errors=errors, warnings=warnings)

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def get_by_id(self, entry_id: str) -> D | None:
        return self._entries.get(entry_id)

    def get_all(self) -> list[D]:
        return list(self._entries.values())

    def has(self, entry_id: str) -> bool:
        return entry_id in self._entries

    def get_count(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        """Drop every entry. The only way entries leave a catalog."""
        with self._lock:
            self._entries.clear()
        logger.info(f"Cleared {self.kind} registry")

    def __contains__(self, entry_id: object) -> bool:
        return entry_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.kind}s={len(self._entries)})"

    # -------------------------------------------------------------------------
    # Hooks and helpers
    # -------------------------------------------------------------------------

    def _check_references(self, entry: D) -> list[str]:
        return []

    def _reference_warnings(self, entry: D) -> list[str]:
        return []

    def _check_handler(self, entry: D) -> list[str]:
        reference = entry.implementation
        if reference not in self._handlers:
            return [f"implementation: no handler registered for '{reference}'"]
        if not self._handlers.is_valid(reference):
            return [f"implementation: handler for '{reference}' is not callable"]
        return []

    def _parse(self, definition: Any) -> tuple[D | None, list[str]]:
        data = definition.model_dump() if isinstance(definition, BaseModel) else definition
        if not isinstance(data, Mapping):
            return None, [f"definition must be a mapping, got {type(data).__name__}"]
        try:
            return self.model.model_validate(data), []  # type: ignore[return-value]
        except ValidationError as exc:
            return None, format_validation_errors(exc)

    def _require(self, entry_id: str) -> D:
        entry = self._entries.get(entry_id)
        if entry is None:
            raise EntryNotFoundError(self.kind, entry_id)
        return entry


def _raw_id(definition: Any) -> str:
    if isinstance(definition, Mapping):
        raw = definition.get("id", "")
    else:
        raw = getattr(definition, "id", "")
    return raw if isinstance(raw, str) else ""


__all__ = [
    "CatalogRegistry",
    "format_validation_errors",
]
