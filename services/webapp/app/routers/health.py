# =============================================================================
# Health Check Router
# =============================================================================
# Endpoints for container health checks and readiness probes.
# =============================================================================

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from pymongo.errors import PyMongoError

from app.services.mongodb_service import get_mongodb_service

router = APIRouter(tags=["health"])

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str


class ReadyResponse(BaseModel):
    """Readiness check response model."""

    status: str
    services: dict[str, str]


@router.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """
    Basic health check endpoint.

    Returns 200 if the service is running.
    """
    from app import __version__

    return HealthResponse(status="healthy", version=__version__)


@router.get("/ready", response_model=ReadyResponse)
def readiness_check():
    """
    Readiness check endpoint.

    Pings the MongoDB catalog store; returns 503 when it is unreachable.
    """
    try:
        get_mongodb_service().ping()
    except PyMongoError as exc:
        logger.error("MongoDB readiness check failed: %s", exc)
        return JSONResponse(
            status_code=503,
            content=ReadyResponse(
                status="unavailable", services={"mongodb": "unreachable"}
            ).model_dump(),
        )
    return ReadyResponse(status="ready", services={"mongodb": "ok"})
