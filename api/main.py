"""
FastAPI application exposing migration health and checkpoint progress
"""

from fastapi import FastAPI
from api.routes import health, progress
from api.middleware import RequestContextMiddleware
from core.config import load_settings
from core.database import create_source_engine
from core.logging import setup_logging
from migration.gateway import D1Gateway
from migration.scheduler import MigrationScheduler
from migration.source import PostgresSource
import logging

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="D1 Migration Status API",
    description="Health and checkpoint progress of PostgreSQL to D1 migrations",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(RequestContextMiddleware)

# Include routers
app.include_router(health.router)
app.include_router(progress.router)


@app.on_event("startup")
async def startup_event():
    """Build settings, connections and the optional scheduler"""
    settings = load_settings()
    setup_logging(settings)

    logger.info("Starting D1 Migration Status API")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Database: {settings.masked_database_url}")

    engine = create_source_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.gateway = D1Gateway(settings)
    app.state.source = PostgresSource(engine)
    app.state.scheduler = None

    if settings.SCHEDULER_ENABLED:
        app.state.scheduler = MigrationScheduler(settings)
        app.state.scheduler.start()


@app.on_event("shutdown")
async def shutdown_event():
    """Application shutdown event"""
    logger.info("Shutting down D1 Migration Status API")

    # Startup may have failed before every component was created
    scheduler = getattr(app.state, "scheduler", None)
    if scheduler is not None:
        scheduler.stop()
    source = getattr(app.state, "source", None)
    if source is not None:
        await source.close()
    gateway = getattr(app.state, "gateway", None)
    if gateway is not None:
        await gateway.close()
    engine = getattr(app.state, "engine", None)
    if engine is not None:
        await engine.dispose()


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "D1 Migration Status API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "progress": "/progress/{table_name}"
        }
    }
