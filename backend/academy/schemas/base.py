"""
Academy Backend: Shared Schema Helpers
=======================================

What:  Base classes and validators shared by the entity schemas.
Who:   Imported by every module in `academy.schemas`.

Three kinds of model per entity:
    <Entity>        a stored row, as the table service returns it
    <Entity>Create  fields accepted on insert; required fields enforced
    <Entity>Update  every field optional; only fields the caller set are sent
"""

import re
from typing import Dict, Iterable, Optional

from pydantic import BaseModel

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

_SEPARATORS = re.compile(r"[\s_-]+")


class RecordModel(BaseModel):
    """A row read from a table. Columns added later on the service side are ignored."""

    model_config = {"extra": "ignore"}


class InputModel(BaseModel):
    """Fields supplied by a caller. Unknown keys are rejected."""

    model_config = {"extra": "forbid", "str_strip_whitespace": True}


def normalize_choice(
    value: Optional[str],
    allowed: Iterable[str],
    aliases: Optional[Dict[str, str]] = None,
    label: str = "value",
) -> Optional[str]:
    """
    Map a free-form label onto one of the allowed lowercase values.

    "Kids Class", "kids" and " KIDS " all become "kids" when the alias
    table says so. Raises ValueError for anything unrecognised.
    """
    if value is None:
        return None
    key = _SEPARATORS.sub(" ", value.strip().lower())
    allowed = set(allowed)
    if key in allowed:
        return key
    if aliases and key in aliases:
        return aliases[key]
    raise ValueError(f"Invalid {label} '{value}'. Must be one of: {sorted(allowed)}")
