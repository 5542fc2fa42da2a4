"""Health check endpoints.

Provides endpoints for monitoring service health and readiness.
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from backoffice.api.dependencies import Container

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    service: str
    version: str


@router.get("/health", response_model=HealthResponse)
async def health_check(container: Container) -> HealthResponse:
    """Check service health.

    Returns:
        Health status with service name and version.
    """
    return HealthResponse(
        status="healthy",
        service="backoffice-api",
        version=container.settings.api_version,
    )


@router.get("/ready")
async def readiness_check(container: Container) -> JSONResponse:
    """Check that the configured store answers."""
    if not await container.is_ready():
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unavailable", "storage": container.settings.storage_backend},
        )
    return JSONResponse(content={"status": "ready", "storage": container.settings.storage_backend})
