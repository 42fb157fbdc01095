"""
FastAPI application entry point.

This module configures logging and middleware, owns the database
repository's lifecycle and registers the API routers.
"""
import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routers import dashboard, deliveries, families, imports, visits
from .core.config import settings
from .core.logging_config import configure_logging
from .db.repository import CaseRepository
from .db.session import get_engine
from .db.tables import create_case_tables

# Ensure logging is configured before the application starts serving requests.
configure_logging(settings.log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the repository on startup and release the engine on shutdown."""
    engine = get_engine()

    if os.getenv("SKIP_DB_INIT") == "1":
        logger.info("SKIP_DB_INIT=1 detected; skipping table creation during startup")
    else:
        try:
            create_case_tables(engine)
            logger.info("Case tables ready")
        except Exception as e:
            logger.exception("Failed to initialize database tables: %s", e)
            raise  # Re-raise to prevent app from starting with broken database

    app.state.repository = CaseRepository(engine)

    yield  # Application runs here

    engine.dispose()


app = FastAPI(
    title="Famcare API",
    version="1.0.0",
    description="Family registry, home visits and delivery tracking for social assistance conferences",
    lifespan=lifespan,
)

allowed_origins = [origin.strip() for origin in settings.allowed_origins.split(",") if origin.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],  # Allow all headers including Authorization
)

app.include_router(families.router)
app.include_router(visits.router)
app.include_router(deliveries.router)
app.include_router(imports.router)
app.include_router(dashboard.router)


@app.get("/")
async def root():
    """Root endpoint returning API information."""
    return {
        "message": "Famcare API",
        "version": "1.0.0"
    }


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "service": "famcare-api"
    }
