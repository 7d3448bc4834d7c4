"""Health and keep-alive endpoints for monitoring service status."""

from fastapi import APIRouter, status
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from relay.registry import connection_registry
from relay.schemas.events import iso_timestamp
from relay.uptime import uptime_seconds

router = APIRouter()

SERVICE_NAME = "room-relay"


class ConnectionStats(BaseModel):
    active: int
    total: int


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    service: str
    timestamp: str
    uptime: int
    connections: ConnectionStats
    rooms: int


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check endpoint",
    tags=["health"],
)
@router.get("/", response_model=HealthResponse, include_in_schema=False)
async def health_check() -> HealthResponse:
    """
    Report service status and relay counters.

    The relay has no external dependencies, so a responding process is
    healthy; the counters come straight from the connection registry.
    """
    return HealthResponse(
        status="healthy",
        service=SERVICE_NAME,
        timestamp=iso_timestamp(),
        uptime=int(uptime_seconds()),
        connections=ConnectionStats(
            active=connection_registry.connection_count(),
            total=connection_registry.total_connections_ever(),
        ),
        rooms=connection_registry.room_count(),
    )


@router.get(
    "/ping",
    response_class=PlainTextResponse,
    summary="Keep-alive endpoint",
    tags=["health"],
)
async def ping() -> str:
    return "pong"
