"""Health check endpoint."""

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from apps.api.database import get_db
from apps.api.models import Customer, Segment

logger = structlog.get_logger()
router = APIRouter()


@router.get("/healthz")
async def health_check(db: Session = Depends(get_db)):
    """Health check endpoint, with the record source and segment table sizes."""
    try:
        # Test database connection
        db.execute(text("SELECT 1"))
        customers = db.query(func.count(Customer.id)).scalar()
        segments = db.query(func.count(Segment.id)).scalar()
    except SQLAlchemyError as e:
        logger.error("Health check failed", error=str(e))
        return {"status": "error", "database": "disconnected", "error": str(e)}

    return {
        "status": "ok",
        "database": "connected",
        "customers": customers,
        "segments": segments,
    }
