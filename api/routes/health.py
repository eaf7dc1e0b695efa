"""
Health Check Routes

Liveness/readiness for load balancers and operators. The plain-text
healthcheck answers 200 only once attestation has passed.
"""

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from api.models.responses import ErrorDetail, HealthResponse
from orchestrator.bootstrap import AppState, ServiceStatus


router = APIRouter(tags=["health"])

_STATUS_CODES = {
    ServiceStatus.BOOTSTRAPPING: 503,
    ServiceStatus.RUNNING: 200,
    ServiceStatus.FAILED: 503,
}


def _state(request: Request) -> AppState:
    return request.app.state.keyhost


@router.get("/REST/v1/healthcheck", response_class=PlainTextResponse)
async def healthcheck(request: Request) -> PlainTextResponse:
    """
    Plain-text status for load balancers.

    200 "running" once attested; 503 "bootstrapping" or "failed" otherwise.
    """
    status = _state(request).status
    return PlainTextResponse(status.value, status_code=_STATUS_CODES[status])


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    """Structured status, including the failure reason if bootstrap failed."""
    state = _state(request)
    error = ErrorDetail.from_error(state.failure) if state.failure is not None else None
    return HealthResponse(
        ok=state.status == ServiceStatus.RUNNING,
        status=state.status.value,
        image_id=state.image_id,
        dev_mode=state.dev_mode,
        error=error,
    )
