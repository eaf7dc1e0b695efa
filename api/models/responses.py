"""
API Response Models

Bodies returned by the health app.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field

from core.schemas.errors import KeyhostError


class ErrorDetail(BaseModel):
    """A keyhost error as exposed over HTTP (retryability is left out)."""

    code: str = Field(..., description="Error code, see core.schemas.errors.ErrorCodes")
    message: str
    details: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_error(cls, error: KeyhostError) -> "ErrorDetail":
        return cls(code=error.code, message=error.message, details=error.details)


class ErrorResponse(BaseModel):
    ok: bool = False
    error: ErrorDetail


class HealthResponse(BaseModel):
    """Body of GET /health."""

    ok: bool = Field(..., description="True only once self-attestation has passed")
    service: str = "keyhost"
    status: str = Field(..., description="bootstrapping, running or failed")
    image_id: str = Field("", description="Expected image id; empty in development mode")
    dev_mode: bool = False
    error: Optional[ErrorDetail] = None
