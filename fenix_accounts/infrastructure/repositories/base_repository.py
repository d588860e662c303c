"""
SQLAlchemy implementation of the Base Repository.

Writes go through Core statements built from plain dict payloads, so a payload
only ever names the columns it carries. Driver failures are rolled back and
re-raised as classified StoreErrors.
"""

from typing import Any, Dict, List, Optional, Type

from sqlalchemy import delete, insert, update
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session

from fenix_accounts.infrastructure.database import Base
from fenix_accounts.infrastructure.db_errors import StoreError, classify_db_error
from fenix_accounts.infrastructure.schema_capabilities import SchemaCapabilities


class SQLAlchemyRepository:
    """Generic row repository for a declarative model with a string id."""

    def __init__(self, db: Session, model: Type[Base], capabilities: SchemaCapabilities):
        self.db = db
        self.model = model
        self.table = model.__table__
        self.capabilities = capabilities

    def row_columns(self) -> List[Any]:
        """Table columns the underlying schema is known to have."""
        return [column for column in self.table.c if self.capabilities.supports(column.name)]

    def _execute(self, statement):
        try:
            result = self.db.execute(statement)
            self.db.commit()
            return result
        except DBAPIError as exc:
            self.db.rollback()
            raise StoreError(classify_db_error(exc)) from exc

    def _read(self, query):
        try:
            return query.all()
        except DBAPIError as exc:
            self.db.rollback()
            raise StoreError(classify_db_error(exc)) from exc

    def _count(self, query) -> int:
        try:
            return query.count()
        except DBAPIError as exc:
            self.db.rollback()
            raise StoreError(classify_db_error(exc)) from exc

    def get_by_id(self, id: str) -> Optional[Dict[str, Any]]:
        rows = self._read(self.db.query(*self.row_columns()).filter(self.table.c.id == id).limit(1))
        return rows[0]._asdict() if rows else None

    def insert(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        self._execute(insert(self.table).values(**payload))
        return self.get_by_id(payload["id"])

    def update(self, id: str, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        result = self._execute(update(self.table).where(self.table.c.id == id).values(**payload))
        if result.rowcount == 0:
            return None
        return self.get_by_id(id)

    def delete(self, id: str) -> bool:
        result = self._execute(delete(self.table).where(self.table.c.id == id))
        return result.rowcount > 0
