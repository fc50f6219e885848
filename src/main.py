"""Report sharing FastAPI application."""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from src.config import settings, validate_secret_key
from src.database import close_database, create_schema, get_engine
from src.logging_config import get_logger, setup_logging
from src.middleware import CorrelationIdMiddleware, SecurityHeadersMiddleware
from src.middleware.rate_limit import limiter, rate_limit_exceeded_handler
from src.routers import bearer_links, grants, health, tokens

setup_logging(
    log_format=settings.log_format,
    log_level=settings.log_level,
    service_name=settings.service_name,
)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    validate_secret_key()
    # PostgreSQL is migrated with `alembic upgrade head` before startup
    if settings.database_url.startswith("sqlite"):
        await create_schema(get_engine())
        logger.info("SQLite development schema ready")
    logger.info("Report sharing API started")

    yield

    logger.info("Shutting down report sharing API...")
    await close_database()
    logger.info("Report sharing API shutdown complete")


app = FastAPI(
    title="CareLink Share API",
    description="Delegated, time-bounded access to patient health reports",
    version="0.1.0",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Middleware (order matters: first added = last executed)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(CorrelationIdMiddleware)

app.include_router(health.router)
app.include_router(tokens.router)
app.include_router(grants.router)
app.include_router(bearer_links.router)


@app.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint."""
    return {
        "name": "CareLink Share API",
        "version": "0.1.0",
        "docs": "/docs",
    }
