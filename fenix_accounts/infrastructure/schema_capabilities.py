"""
Schema capability descriptor for the people table.

Some columns arrive through incremental migrations and may not exist yet on a
given deployment. The descriptor is probed once at startup; payload fields for
missing columns are stripped before they reach the store. A column that the
store still rejects at runtime (stale probe) is marked missing on the fly.
"""

import threading
from typing import Any, Dict, Iterable, Optional

import structlog
from sqlalchemy import inspect
from sqlalchemy.engine import Engine

logger = structlog.get_logger(__name__)

PASSWORD_COLUMNS = ("password_hash", "password", "initial_password_plain_text")
LOGIN_INDEX_COLUMNS = ("username_norm", "username_flat", "email_norm", "email_flat")
OPTIONAL_COLUMNS = PASSWORD_COLUMNS + LOGIN_INDEX_COLUMNS


class SchemaCapabilities:
    """Tracks which optional columns the underlying table actually has."""

    def __init__(self, table: str = "people", columns: Optional[Iterable[str]] = None):
        self.table = table
        self._lock = threading.Lock()
        self._missing: set[str] = set()
        if columns is not None:
            present = set(columns)
            for column in OPTIONAL_COLUMNS:
                if column not in present:
                    self.mark_missing(column)

    @classmethod
    def probe(cls, engine: Engine, table: str = "people") -> "SchemaCapabilities":
        inspector = inspect(engine)
        if not inspector.has_table(table):
            # Table will be created from the models; assume the full schema
            return cls(table)
        columns = [column["name"] for column in inspector.get_columns(table)]
        capabilities = cls(table, columns)
        logger.info(
            "Schema capabilities probed",
            table=table,
            missing_optional_columns=sorted(capabilities.missing),
        )
        return capabilities

    @property
    def missing(self) -> frozenset[str]:
        return frozenset(self._missing)

    def supports(self, column: str) -> bool:
        return column not in self._missing

    def mark_missing(self, column: str) -> bool:
        """Record a missing optional column. Returns False if it was already known."""
        if column not in OPTIONAL_COLUMNS:
            return False
        with self._lock:
            if column in self._missing:
                return False
            self._missing.add(column)
        logger.warning(
            "Optional column missing, writes proceed without it",
            table=self.table,
            column=column,
        )
        return True

    def strip(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Copy of payload without fields for columns the table lacks."""
        return {key: value for key, value in payload.items() if key not in self._missing}
