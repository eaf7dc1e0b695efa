"""
API Error Handling

Every failure leaves the health app as a JSON ErrorResponse. Keyhost
errors keep their code and details; anything else is reported as
INTERNAL_ERROR with only the exception type.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from api.models.responses import ErrorDetail, ErrorResponse
from core.schemas.errors import KeyhostException


logger = logging.getLogger(__name__)


def _error_response(status_code: int, detail: ErrorDetail) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=detail).model_dump(),
    )


async def keyhost_error_handler(request: Request, exc: KeyhostException) -> JSONResponse:
    """Retryable errors answer 503, the rest 500."""
    logger.warning(f"{request.url.path}: {exc.code}: {exc.message}")
    return _error_response(
        503 if exc.retryable else 500,
        ErrorDetail.from_error(exc.to_error_model()),
    )


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error serving {request.url.path}")
    return _error_response(
        500,
        ErrorDetail(
            code="INTERNAL_ERROR",
            message="An unexpected error occurred",
            details={"type": type(exc).__name__},
        ),
    )
