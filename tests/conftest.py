"""
Pytest configuration and fixtures for the accounts service.

The app runs against a shared in-memory SQLite database; every test gets
fresh tables through the application lifespan.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOGIN_DOMAIN"] = "fenix.test"
os.environ["PASSWORD_HASH_ROUNDS"] = "4"
os.environ["CREATE_TABLES"] = "true"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func

from fenix_accounts.domain.models.account import Account
from fenix_accounts.domain.models.site import Site
from fenix_accounts.infrastructure.database import Base, SessionLocal, engine
from fenix_accounts.interfaces.deps import get_credential_generator
from fenix_accounts.main import app


@pytest.fixture
def client():
    """Test client with freshly created tables."""
    Base.metadata.drop_all(bind=engine)
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.state.schema_capabilities = None
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(client):
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def generator():
    return get_credential_generator()


@pytest.fixture
def site(db):
    """A canonical branch."""
    site = Site(name="Sucursal Centro")
    db.add(site)
    db.commit()
    db.refresh(site)
    return site


@pytest.fixture
def create_user(client):
    """POST /endpoints/users with sensible defaults; returns the response."""

    def _create(**overrides):
        body = {"full_name": "Ana Gómez", "fenix_role": "ASESOR", "branch_label": "Centro"}
        body.update(overrides)
        return client.post("/endpoints/users", json=body)

    return _create


@pytest.fixture
def count_accounts(db):
    def _count():
        db.expire_all()
        return db.query(func.count(Account.id)).scalar()

    return _count
