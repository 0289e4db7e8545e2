"""Health check endpoint for monitoring service status."""

from fastapi import APIRouter, status
from pydantic import BaseModel

from relay.dependencies import HubDep

router = APIRouter()


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    participants: int


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check endpoint",
    tags=["health"],
)
async def health_check(hub: HubDep) -> HealthResponse:
    """
    Check health status of the relay.

    The relay has no external dependencies, so it is healthy whenever it can
    answer. The participant count is read under the registry lock, so a
    response also shows the hub is not stuck in a broadcast.

    Returns:
        HealthResponse: Status and number of joined participants.
    """
    participants = await hub.participants()
    return HealthResponse(status="healthy", participants=len(participants))
