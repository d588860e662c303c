"""Tests for driver error classification (PostgreSQL codes and SQLite messages)."""

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, ProgrammingError

from fenix_accounts.infrastructure.db_errors import FailureKind, classify_db_error


class FakeDiag:
    def __init__(self, constraint_name=None):
        self.constraint_name = constraint_name


class FakePgError(Exception):
    """Mimics psycopg2 errors: pgcode plus diagnostics."""

    def __init__(self, message, pgcode, constraint_name=None):
        super().__init__(message)
        self.pgcode = pgcode
        self.diag = FakeDiag(constraint_name)


def wrap(cls, orig):
    return cls("INSERT INTO people ...", {}, orig)


class TestPostgres:
    def test_undefined_optional_column(self):
        orig = FakePgError(
            'column "initial_password_plain_text" of relation "people" does not exist\nLINE 1: ...',
            "42703",
        )

        failure = classify_db_error(wrap(ProgrammingError, orig))

        assert failure.kind is FailureKind.MISSING_COLUMN
        assert failure.column == "initial_password_plain_text"
        assert "LINE 1" not in failure.message

    def test_undefined_unknown_column_is_other(self):
        orig = FakePgError('column "nickname" of relation "people" does not exist', "42703")

        assert classify_db_error(wrap(ProgrammingError, orig)).kind is FailureKind.OTHER

    def test_unique_violation(self):
        orig = FakePgError(
            'duplicate key value violates unique constraint "people_username_key"', "23505", "people_username_key"
        )

        failure = classify_db_error(wrap(IntegrityError, orig))

        assert failure.kind is FailureKind.UNIQUE_VIOLATION
        assert failure.constraint == "people_username_key"

    def test_check_violation_uses_diagnostics(self):
        orig = FakePgError('new row for relation "people" violates check constraint', "23514", "people_role_check")

        failure = classify_db_error(wrap(IntegrityError, orig))

        assert failure.kind is FailureKind.CHECK_VIOLATION
        assert failure.constraint == "people_role_check"

    def test_check_violation_parses_message_without_diagnostics(self):
        orig = FakePgError(
            'new row for relation "people" violates check constraint "people_site_required_except_promotor"',
            "23514",
        )

        assert classify_db_error(wrap(IntegrityError, orig)).constraint == "people_site_required_except_promotor"

    def test_foreign_key_is_other(self):
        orig = FakePgError('insert or update on table "people" violates foreign key constraint', "23503")

        failure = classify_db_error(wrap(IntegrityError, orig))

        assert failure.kind is FailureKind.OTHER
        assert "foreign key" in failure.message


class TestSqlite:
    @pytest.fixture
    def conn(self):
        engine = create_engine("sqlite://")
        with engine.connect() as connection:
            connection.execute(
                text(
                    "CREATE TABLE people (id TEXT PRIMARY KEY, username TEXT UNIQUE, fenix_role TEXT,"
                    " CONSTRAINT people_role_check CHECK (fenix_role IN ('ADMIN', 'ASESOR')))"
                )
            )
            yield connection

    def capture(self, conn, sql):
        with pytest.raises(DBAPIError) as excinfo:
            conn.execute(text(sql))
        return classify_db_error(excinfo.value)

    def test_missing_column(self, conn):
        failure = self.capture(conn, "INSERT INTO people (id, password_hash) VALUES ('1', 'x')")

        assert failure.kind is FailureKind.MISSING_COLUMN
        assert failure.column == "password_hash"

    def test_unique(self, conn):
        conn.execute(text("INSERT INTO people (id, username, fenix_role) VALUES ('1', 'ana', 'ADMIN')"))

        failure = self.capture(conn, "INSERT INTO people (id, username, fenix_role) VALUES ('2', 'ana', 'ADMIN')")

        assert failure.kind is FailureKind.UNIQUE_VIOLATION

    def test_check(self, conn):
        failure = self.capture(conn, "INSERT INTO people (id, username, fenix_role) VALUES ('1', 'ana', 'USER')")

        assert failure.kind is FailureKind.CHECK_VIOLATION
        assert failure.constraint == "people_role_check"

    def test_missing_table_is_other(self, conn):
        failure = self.capture(conn, "SELECT * FROM sites")

        assert failure.kind is FailureKind.OTHER


def test_operational_error_without_column_is_other():
    exc = wrap(OperationalError, Exception("database is locked"))

    assert classify_db_error(exc).kind is FailureKind.OTHER
