"""Tests for the optional-column capability descriptor."""

from sqlalchemy import create_engine, text

from fenix_accounts.infrastructure.schema_capabilities import OPTIONAL_COLUMNS, SchemaCapabilities


def test_default_assumes_full_schema():
    capabilities = SchemaCapabilities()

    assert capabilities.missing == frozenset()
    assert all(capabilities.supports(column) for column in OPTIONAL_COLUMNS)


def test_probe_detects_missing_optional_columns():
    engine = create_engine("sqlite://")
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE people (id TEXT PRIMARY KEY, username TEXT, password_hash TEXT)"))

    capabilities = SchemaCapabilities.probe(engine)

    assert capabilities.supports("password_hash")
    assert capabilities.missing == frozenset(OPTIONAL_COLUMNS) - {"password_hash"}


def test_probe_without_table_assumes_full_schema():
    capabilities = SchemaCapabilities.probe(create_engine("sqlite://"))

    assert capabilities.missing == frozenset()


def test_mark_missing_reports_first_time_only():
    capabilities = SchemaCapabilities()

    assert capabilities.mark_missing("initial_password_plain_text") is True
    assert capabilities.mark_missing("initial_password_plain_text") is False
    assert not capabilities.supports("initial_password_plain_text")


def test_required_columns_are_never_marked():
    capabilities = SchemaCapabilities()

    assert capabilities.mark_missing("username") is False
    assert capabilities.supports("username")


def test_strip_removes_only_missing_columns():
    capabilities = SchemaCapabilities(columns=["id", "username", "password_hash"])

    payload = {"id": "1", "username": "ana", "password_hash": "h", "initial_password_plain_text": "p"}

    assert capabilities.strip(payload) == {"id": "1", "username": "ana", "password_hash": "h"}
