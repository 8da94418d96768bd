"""
SignalBoard - Customer feedback signals for product teams
Main FastAPI Application
"""
import logging
from contextlib import asynccontextmanager
from urllib.parse import urlparse

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from signalboard import __version__
from signalboard.api.analytics import router as analytics_router
from signalboard.api.benchmarks import router as benchmarks_router
from signalboard.api.events import router as events_router
from signalboard.api.signals import router as signals_router
from signalboard.core.config import settings
from signalboard.core.database import Base, SessionLocal, engine
from signalboard.services.store import ensure_default_benchmark

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting SignalBoard API...")
    logger.info(
        "Config: db=%s env=%s timezone=%s",
        urlparse(settings.DATABASE_URL).scheme,
        settings.ENVIRONMENT,
        settings.REPORTING_TIMEZONE,
    )
    # Migrations are the source of truth; create_all keeps the SQLite demo usable without them.
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        ensure_default_benchmark(db)
    finally:
        db.close()
    yield
    logger.info("Shutting down SignalBoard API...")


app = FastAPI(
    title="SignalBoard API",
    description="Customer feedback signals, funnels, retention, anomalies and forecasts",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL, "http://localhost:3000", "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(signals_router, prefix="/api/signals", tags=["signals"])
app.include_router(events_router, prefix="/api/events", tags=["events"])
app.include_router(benchmarks_router, prefix="/api/benchmarks", tags=["benchmarks"])
app.include_router(analytics_router, prefix="/api/analytics", tags=["analytics"])


@app.get("/health")
async def health_check():
    """Liveness check (should be fast and not depend on external services)."""
    return {
        "status": "ok",
        "service": "signalboard-backend",
        "environment": settings.ENVIRONMENT,
    }


@app.get("/ready")
def readiness_check():
    """Readiness check (verifies the database)."""
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning("Readiness check failed: %s", e)
        return JSONResponse(status_code=503, content={"status": "not_ready", "error": str(e)})
    finally:
        db.close()
    return {"status": "ready", "db": "ok"}


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "SignalBoard API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }
