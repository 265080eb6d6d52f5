"""Health check endpoints."""

from datetime import UTC, datetime

import httpx
from circuitbreaker import CircuitBreakerError
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from codecoach import __version__
from codecoach.api.app_state import AppState
from codecoach.api.dependencies import get_app_state

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health(
    state: AppState = Depends(get_app_state),
) -> dict[str, str]:
    """Basic health check for load balancers."""
    return {
        "status": "healthy",
        "version": __version__,
        "quality_service": state.settings.sonarqube_url,
        "timestamp": datetime.now(UTC).isoformat(),
    }


@router.get("/health/quality-service", response_model=None)
async def quality_service_health(
    state: AppState = Depends(get_app_state),
) -> dict[str, str] | JSONResponse:
    """Probe the quality service's system status endpoint."""
    try:
        status = await state.sonar.system_status()
    except (httpx.HTTPError, CircuitBreakerError, ValueError) as exc:
        return JSONResponse(
            status_code=503,
            content={
                "status": "disconnected",
                "error": str(exc) or type(exc).__name__,
            },
        )
    return {
        "status": "connected",
        "server_status": status["status"],
        "version": status["version"],
    }
