"""Base Pydantic schemas with common patterns.

Records exchanged with the planner and with workers are camelCase on the
wire and snake_case in Python; the alias generator bridges the two.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# Stable identifier for workers and tools
SLUG_PATTERN = r"^[a-z0-9_]+$"

# Leading MAJOR.MINOR.PATCH; pre-release/build suffixes are tolerated
SEMVER_RE = re.compile(r"^\d+\.\d+\.\d+")


class BaseSchema(BaseModel):
    """Base schema with common configuration for all schemas.

    Configures Pydantic v2 settings for consistent behavior across all schemas.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        use_enum_values=True,
    )


def is_semver(version: str) -> bool:
    """Return True when ``version`` starts with a MAJOR.MINOR.PATCH triple."""
    return bool(SEMVER_RE.match(version))


__all__ = [
    "SEMVER_RE",
    "SLUG_PATTERN",
    "BaseSchema",
    "is_semver",
]
