"""Conversion of route failures into the JSON error shape clients rely on."""
import logging
import traceback

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from shared.utils.exceptions import ValidationError
from shared.utils.validation import errors_by_field

logger = logging.getLogger(__name__)


def internal_error(action: str, error: Exception) -> HTTPException:
    """Log ``error`` with its traceback and build the 500 response for it."""
    logger.error(f"Error {action}: {str(error)}\n{traceback.format_exc()}")
    return HTTPException(
        status_code=500,
        detail={"error": f"Error {action}", "type": type(error).__name__},
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Answer FastAPI's request parsing failures as a 400 ValidationError."""
    error = ValidationError(errors_by_field(exc.errors()))
    logger.info(f"Rejected {request.method} {request.url.path}: {error.message}")
    return JSONResponse(status_code=error.status_code, content={"detail": error.detail()})
