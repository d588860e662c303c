"""FastAPI application — main entry point."""

import structlog
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fenix_accounts.config import get_settings
from fenix_accounts.infrastructure.database import engine, Base
from fenix_accounts.infrastructure.schema_capabilities import SchemaCapabilities
from fenix_accounts.core.logging import configure_logging
from fenix_accounts.core.middleware import setup_middleware
from fenix_accounts.core.exceptions import setup_exception_handlers

# Import all models so SQLAlchemy knows about them
from fenix_accounts.domain.models.site import Site  # noqa: F401
from fenix_accounts.domain.models.account import Account

# Import routers
from fenix_accounts.interfaces.api.users import router as users_router

settings = get_settings()

# Configure logging immediately
configure_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan — startup and shutdown events."""
    logger.info("Starting Fenix Accounts...", env=settings.ENVIRONMENT)

    if settings.CREATE_TABLES:
        # Dev only; existing deployments migrate through scripts/
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created/verified")

    app.state.schema_capabilities = SchemaCapabilities.probe(engine, Account.__tablename__)

    yield

    logger.info("Fenix Accounts stopped")


app = FastAPI(
    title="Fenix Accounts",
    description="Operator account provisioning and directory",
    version="1.0.0",
    lifespan=lifespan,
)

setup_middleware(app)
setup_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(users_router)


@app.get("/")
def root():
    return {
        "name": "Fenix Accounts",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs",
    }


@app.get("/health")
def health():
    return {"status": "healthy"}
