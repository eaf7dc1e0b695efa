"""API response models."""

from api.models.responses import (
    ErrorDetail,
    ErrorResponse,
    HealthResponse,
)

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "HealthResponse",
]
