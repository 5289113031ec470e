"""
Health check router.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from .. import __version__
from ..dependencies import get_tasks_repository
from ..repositories.tasks_repository import TasksRepository

router = APIRouter(prefix="/api/v1", tags=["health"])


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    timestamp: str
    service: str = "tasks-service"
    version: str = __version__
    cache: dict


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
    description="Returns 200 if the service is running, with in-memory cache statistics",
)
async def health_check(repository: TasksRepository = Depends(get_tasks_repository)):
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        cache=repository.get_cache_stats(),
    )
