"""
API Dependencies.
"""

from functools import lru_cache

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from fenix_accounts.application.services.account_service import AccountService
from fenix_accounts.application.services.credential_service import CredentialGenerator
from fenix_accounts.config import get_settings
from fenix_accounts.domain.models.account import Account
from fenix_accounts.domain.repositories.account_repository import AccountRepository
from fenix_accounts.infrastructure.database import engine, get_db
from fenix_accounts.infrastructure.repositories.account_repository import SQLAlchemyAccountRepository
from fenix_accounts.infrastructure.schema_capabilities import SchemaCapabilities


def get_schema_capabilities(request: Request) -> SchemaCapabilities:
    """Descriptor probed at startup; probed lazily if the lifespan did not run."""
    capabilities = getattr(request.app.state, "schema_capabilities", None)
    if capabilities is None:
        capabilities = SchemaCapabilities.probe(engine, Account.__tablename__)
        request.app.state.schema_capabilities = capabilities
    return capabilities


@lru_cache
def get_credential_generator() -> CredentialGenerator:
    settings = get_settings()
    return CredentialGenerator(settings.login_domain, rounds=settings.PASSWORD_HASH_ROUNDS)


def get_account_repository(
    db: Session = Depends(get_db),
    capabilities: SchemaCapabilities = Depends(get_schema_capabilities),
) -> AccountRepository:
    """Get account repository instance."""
    return SQLAlchemyAccountRepository(db, Account, capabilities)


def get_account_service(
    repo: AccountRepository = Depends(get_account_repository),
    generator: CredentialGenerator = Depends(get_credential_generator),
    capabilities: SchemaCapabilities = Depends(get_schema_capabilities),
) -> AccountService:
    settings = get_settings()
    return AccountService(
        repo,
        generator,
        capabilities,
        attempts=settings.CREDENTIAL_ATTEMPTS,
        max_page_size=settings.MAX_PAGE_SIZE,
    )
