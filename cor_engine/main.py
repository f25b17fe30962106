"""
Main FastAPI application entry point.
"""
import logging
import os
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from cor_engine.api.v1.router import api_router
from cor_engine.core.config import settings
from cor_engine.core.database import Base, SessionLocal, engine
from cor_engine.core.exceptions import register_exception_handlers
from cor_engine.core.logging_config import setup_logging
from cor_engine.middleware.request_logging import RequestLoggingMiddleware

# Import all models so they register with Base.metadata
from cor_engine.models import ActivityLog, Audit, AuditNumberSequence, Auditor, Certificate, Deficiency  # noqa: F401

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    logger.info(f"Starting up {settings.APP_NAME} ({settings.APP_ENV})...")

    # Managed databases are migrated with Alembic; local SQLite falls through to create_all
    if os.getenv("DATABASE_URL"):
        try:
            from alembic import command
            from alembic.config import Config

            logger.info("[MIGRATION] DATABASE_URL detected, running Alembic migrations...")
            command.upgrade(Config("alembic.ini"), "head")
            logger.info("[MIGRATION] Alembic migrations completed (or already up-to-date)")
        except Exception as e:
            trace_id = str(uuid.uuid4())
            logger.warning(
                f"[MIGRATION] [{trace_id}] Alembic migration failed: {e}. "
                "Continuing with create_all; check logs if you see database errors."
            )
            logger.debug(f"[MIGRATION] [{trace_id}] Migration error details:", exc_info=True)
    else:
        logger.info("[MIGRATION] DATABASE_URL not set, skipping migrations (local dev mode)")

    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created/verified successfully")
    except SQLAlchemyError as e:
        logger.error(f"Failed to create database tables: {e}", exc_info=True)

    try:
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
            logger.info("Database connectivity verified")
        finally:
            db.close()
    except SQLAlchemyError as e:
        trace_id = str(uuid.uuid4())
        logger.error(f"[{trace_id}] Database connectivity test failed: {e}", exc_info=True)

    yield
    logger.info(f"Shutting down {settings.APP_NAME}...")


app = FastAPI(
    title="COR Audit Engine API",
    description="Certificate of Recognition audits, certificates, auditors and deficiencies",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    redirect_slashes=False,
)

# Request logging middleware (must be added before other middleware)
app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(api_router, prefix="/api/v1")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": settings.APP_NAME,
        "version": "1.0.0",
        "docs": "/docs",
    }
