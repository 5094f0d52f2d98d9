"""Map segmentation errors to JSON HTTP responses."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import structlog

from packages.shared.exceptions import (
    InvalidCondition,
    InvalidSegment,
    SegmentationError,
    SegmentNotFound,
    SegmentVersionConflict,
    SourceUnavailable,
)

logger = structlog.get_logger(__name__)

STATUS_CODES = {
    SourceUnavailable: 503,
    InvalidCondition: 422,
    InvalidSegment: 422,
    SegmentNotFound: 404,
    SegmentVersionConflict: 409,
}


def status_for(exc: SegmentationError) -> int:
    for exc_type, status_code in STATUS_CODES.items():
        if isinstance(exc, exc_type):
            return status_code
    return 500


async def segmentation_error_handler(request: Request, exc: SegmentationError) -> JSONResponse:
    """Render a SegmentationError as {"error", "message", "details"}."""
    status_code = status_for(exc)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "Segmentation request failed",
        path=request.url.path,
        error_code=exc.error_code,
        message=exc.message,
        status_code=status_code,
    )
    return JSONResponse(
        status_code=status_code,
        content={
            "error": exc.error_code,
            "message": exc.message,
            "details": exc.details,
            # Clients show a retry affordance for transient source failures
            "retryable": isinstance(exc, SourceUnavailable),
        },
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SegmentationError, segmentation_error_handler)
