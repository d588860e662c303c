"""
Classification of driver errors raised by the store.

PostgreSQL drivers expose a SQLSTATE and diagnostics (constraint name), which are
used whenever available. SQLite only reports text, so its messages are parsed.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError

from fenix_accounts.infrastructure.schema_capabilities import OPTIONAL_COLUMNS

PG_UNDEFINED_COLUMN = "42703"
PG_UNIQUE_VIOLATION = "23505"
PG_CHECK_VIOLATION = "23514"

_PG_COLUMN = re.compile(r'column "(?P<column>[A-Za-z0-9_]+)"')
_SQLITE_COLUMN = re.compile(r"no column named (?P<column>[A-Za-z0-9_]+)")
_PG_CHECK = re.compile(r'violates check constraint "(?P<name>[A-Za-z0-9_]+)"')
_SQLITE_CHECK = re.compile(r"CHECK constraint failed: (?P<name>[A-Za-z0-9_]+)")


class FailureKind(str, Enum):
    MISSING_COLUMN = "missing_column"
    UNIQUE_VIOLATION = "unique_violation"
    CHECK_VIOLATION = "check_violation"
    OTHER = "other"


@dataclass(frozen=True)
class DbFailure:
    kind: FailureKind
    message: str
    constraint: Optional[str] = None
    column: Optional[str] = None


class StoreError(Exception):
    """A failed statement, already classified. Raised by the repositories."""

    def __init__(self, failure: DbFailure):
        self.failure = failure
        super().__init__(failure.message)

    @property
    def kind(self) -> FailureKind:
        return self.failure.kind


def _sqlstate(orig) -> Optional[str]:
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def _message(orig) -> str:
    text = str(orig).strip()
    # psycopg2 appends LINE/DETAIL blocks; the first line is the message proper
    return text.splitlines()[0] if text else "Database error"


def _missing_column(message: str, known: Iterable[str]) -> Optional[str]:
    for pattern in (_PG_COLUMN, _SQLITE_COLUMN):
        match = pattern.search(message)
        if match and match.group("column") in known:
            return match.group("column")
    return None


def _check_name(orig, message: str) -> Optional[str]:
    diag = getattr(orig, "diag", None)
    name = getattr(diag, "constraint_name", None) if diag is not None else None
    if name:
        return name
    for pattern in (_PG_CHECK, _SQLITE_CHECK):
        match = pattern.search(message)
        if match:
            return match.group("name")
    return None


def classify_db_error(exc: DBAPIError, known_columns: Iterable[str] = OPTIONAL_COLUMNS) -> DbFailure:
    """Map a SQLAlchemy DBAPIError onto one of the failure kinds."""
    orig = getattr(exc, "orig", None) or exc
    code = _sqlstate(orig)
    message = _message(orig)

    if code == PG_UNDEFINED_COLUMN or (code is None and isinstance(exc, OperationalError)):
        column = _missing_column(message, known_columns)
        if column:
            return DbFailure(FailureKind.MISSING_COLUMN, message, column=column)
        return DbFailure(FailureKind.OTHER, message)

    if code == PG_UNIQUE_VIOLATION or (
        code is None and isinstance(exc, IntegrityError) and "UNIQUE constraint failed" in message
    ):
        diag = getattr(orig, "diag", None)
        return DbFailure(
            FailureKind.UNIQUE_VIOLATION,
            message,
            constraint=getattr(diag, "constraint_name", None) if diag is not None else None,
        )

    if code == PG_CHECK_VIOLATION or (
        code is None and isinstance(exc, IntegrityError) and "CHECK constraint failed" in message
    ):
        return DbFailure(FailureKind.CHECK_VIOLATION, message, constraint=_check_name(orig, message))

    return DbFailure(FailureKind.OTHER, message)
