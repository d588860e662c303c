"""Login index builder — tolerant lookup forms of usernames and emails.

`norm` is the trimmed, lower-cased, diacritic-folded credential restricted to
the characters a login may contain; `flat` is `norm` with every non-alphanumeric
character removed. Both are pure functions of the credential string.
"""

import re
from typing import Any, Callable, Dict, Optional, TypeVar

from fenix_accounts.application.services.credential_service import fold_diacritics
from fenix_accounts.infrastructure.db_errors import FailureKind, StoreError
from fenix_accounts.infrastructure.schema_capabilities import LOGIN_INDEX_COLUMNS, SchemaCapabilities

T = TypeVar("T")

_NOT_LOGIN_CHAR = re.compile(r"[^a-z0-9@._+-]")
_NOT_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_login_input(raw: Optional[str]) -> str:
    folded = fold_diacritics(str(raw or "").strip().lower())
    return _NOT_LOGIN_CHAR.sub("", folded)


def flatten_login_input(normalized: str) -> str:
    return _NOT_ALNUM.sub("", normalized)


def build_login_indexes(raw: Optional[str]) -> Dict[str, str]:
    norm = normalize_login_input(raw)
    return {"norm": norm, "flat": flatten_login_input(norm)}


def build_login_index_values(username: Optional[str] = None, email: Optional[str] = None) -> Dict[str, str]:
    """Index column values for whichever of username/email is given."""
    values: Dict[str, str] = {}
    if username:
        indexes = build_login_indexes(username)
        values["username_norm"] = indexes["norm"]
        values["username_flat"] = indexes["flat"]
    if email:
        indexes = build_login_indexes(email)
        values["email_norm"] = indexes["norm"]
        values["email_flat"] = indexes["flat"]
    return values


def run_with_login_index_fallback(
    capabilities: SchemaCapabilities,
    base_payload: Dict[str, Any],
    index_values: Dict[str, str],
    execute: Callable[[Dict[str, Any]], T],
) -> T:
    """Run a write with the login index columns the table supports.

    When the store rejects one of the index columns that was sent, the column
    is disabled (warning once) and the write is retried without it. Any other
    failure propagates untouched.
    """
    while True:
        selected = {key: value for key, value in index_values.items() if value and capabilities.supports(key)}
        try:
            return execute({**base_payload, **selected})
        except StoreError as exc:
            failure = exc.failure
            if (
                failure.kind is FailureKind.MISSING_COLUMN
                and failure.column in LOGIN_INDEX_COLUMNS
                and failure.column in selected
            ):
                # Marked already when a concurrent write hit the same column
                capabilities.mark_missing(failure.column)
                continue
            raise
