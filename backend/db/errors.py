"""Database error helpers."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping

from sqlalchemy.exc import IntegrityError

UNIQUE_VIOLATION_SQLSTATE = "23505"


def _error_message(error: IntegrityError) -> str:
    return str(getattr(error, "orig", None) or error).lower()


def is_unique_violation(error: IntegrityError) -> bool:
    """Return True when the IntegrityError indicates a unique-constraint conflict."""
    original = getattr(error, "orig", None)
    sqlstate = getattr(original, "sqlstate", None) or getattr(original, "pgcode", None)
    if sqlstate == UNIQUE_VIOLATION_SQLSTATE:
        return True
    message = _error_message(error)
    return "duplicate key" in message or "unique constraint" in message


def _constraint_name(error: IntegrityError) -> str | None:
    original = getattr(error, "orig", None)
    for source in (original, getattr(original, "__cause__", None), getattr(original, "diag", None)):
        name = getattr(source, "constraint_name", None)
        if isinstance(name, str) and name:
            return name.lower()
    return None


def unique_violation_column(
    error: IntegrityError,
    markers: Mapping[str, Iterable[str]],
) -> str | None:
    """Return the key of ``markers`` whose constraint a unique violation hit.

    ``markers`` maps a result key to the names that identify its constraint:
    index or constraint names as PostgreSQL reports them, and ``table.column``
    as SQLite reports it. Only the constraint name or the first line of the
    driver message is inspected; the DETAIL line echoes the duplicate value.
    """
    if not is_unique_violation(error):
        return None
    constraint = _constraint_name(error)
    headline = next(iter(_error_message(error).splitlines()), "")
    for key, names in markers.items():
        for name in names:
            lowered = name.lower()
            if constraint is not None:
                if constraint == lowered:
                    return key
            elif re.search(rf"(?<![\w.]){re.escape(lowered)}(?![\w.])", headline):
                return key
    return None


__all__ = ["is_unique_violation", "unique_violation_column"]
