"""Main FastAPI application entry point."""

import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from .core.config import settings
from .core.database import init_db, close_db
from .core.maintenance_service import VisitorDataMaintenanceService
from .core.startup_tasks import startup_tasks
from .api import tracking_router, stats_router, system_router

logging.basicConfig(level=logging.DEBUG if settings.DEBUG else logging.INFO)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    init_db()

    # Start background tasks
    async with startup_tasks(app.state.maintenance_service):
        yield

    # Shutdown
    close_db()


app = FastAPI(
    title=settings.APP_NAME,
    description="Unique visitor identification, page view counting and retention for a website.",
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

# One maintainer per process, owned by the application
app.state.maintenance_service = VisitorDataMaintenanceService()

# The tracking snippet runs on the site's own origin(s)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(tracking_router)
app.include_router(stats_router)
app.include_router(system_router)


@app.get("/", tags=["Root"])
async def root() -> dict:
    """Root endpoint."""
    return {
        "message": "Welcome to Visitrack API",
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/system/health"
    }
