"""Liveness and readiness endpoints."""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Request, Response, status
from pydantic import BaseModel, Field

from edu_gateway import __version__
from edu_gateway.domain.errors import StoreUnavailable

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="healthy, ready or not_ready")
    timestamp: str = Field(..., description="ISO 8601 timestamp")
    version: str = Field(default=__version__, description="API version")
    detail: str | None = Field(default=None, description="Why the service is not ready")


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Report that the process answers requests."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC).isoformat(),
    )


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={status.HTTP_503_SERVICE_UNAVAILABLE: {"model": HealthResponse}},
)
async def readiness_check(request: Request, response: Response) -> HealthResponse:
    """Report whether the credential store answers queries.

    Returns 503 with status "not_ready" while the database is unreachable.
    """
    timestamp = datetime.now(UTC).isoformat()
    try:
        await request.app.state.store.ping()
    except StoreUnavailable as e:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="not_ready", timestamp=timestamp, detail=e.message)

    return HealthResponse(status="ready", timestamp=timestamp)
