"""Classification of database errors."""
from __future__ import annotations

from typing import Set

UNIQUE_VIOLATION_CODES = {"23505", "SQLITE_CONSTRAINT", "SQLITE_CONSTRAINT_UNIQUE"}

_DUPLICATE_MARKERS = (
    "duplicate key",
    "unique constraint",
    "violates unique constraint",
    "unique constraint failed",
)


def _error_codes(exc: BaseException) -> Set[str]:
    codes: Set[str] = set()
    # SQLAlchemy wraps the driver error in ``.orig``
    for candidate in (getattr(exc, "orig", None), exc):
        if candidate is None:
            continue
        for attr in ("sqlstate", "pgcode", "code", "sqlite_errorname"):
            value = getattr(candidate, attr, None)
            if isinstance(value, str) and value:
                codes.add(value)
    return codes


def is_duplicate_key_error(exc: BaseException) -> bool:
    """True when *exc* reports a unique-constraint violation.

    Matches SQLSTATE 23505 or SQLite constraint codes first, then the driver
    message for drivers that expose no code.
    """
    if _error_codes(exc) & UNIQUE_VIOLATION_CODES:
        return True
    message = str(exc).lower()
    return any(marker in message for marker in _DUPLICATE_MARKERS)
