"""FastAPI main application."""

import logging
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from apps.api.api.admin import router as admin_router
from apps.api.api.customers import router as customers_router
from apps.api.api.health import router as health_router
from apps.api.api.segments import router as segments_router
from apps.api.config import get_settings
from apps.api.core.errors import register_error_handlers

# Configure structured logging
structlog.configure(
    processors=[
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ]
)

settings = get_settings()
logging.basicConfig(level=settings.log_level)
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting Back-office Segments API", version="1.0.0", demo_mode=settings.demo_mode)
    logger.info(
        "Segment engine configured",
        active_window_days=settings.segment_active_window_days,
        engagement_thresholds=settings.engagement_thresholds,
        location_tie_break=settings.segment_location_tie_break,
        parallel_workers=settings.segment_parallel_workers,
        sync_schedule_enabled=settings.segment_sync_schedule_enabled,
    )
    yield
    logger.info("Shutting down Back-office Segments API")


# Create FastAPI app
app = FastAPI(
    title="Back-office Segments API",
    description="Customer segmentation and aggregate analytics for the retail back-office",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict to specific origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Include routers
app.include_router(health_router, tags=["Health"])
app.include_router(segments_router, prefix="/segments", tags=["Segments"])
app.include_router(customers_router, tags=["Customers"])
app.include_router(admin_router, prefix="/admin", tags=["Admin"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Back-office Segments API",
        "version": "1.0.0",
        "demo_mode": settings.demo_mode,
        "docs": "/docs",
    }
