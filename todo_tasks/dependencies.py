"""
Shared dependencies for the routers.

The repository is built once by the application lifespan (or by a test)
and kept on ``app.state``; handlers receive it through this dependency.
"""

from fastapi import Request

from .repositories.tasks_repository import TasksRepository


async def get_tasks_repository(request: Request) -> TasksRepository:
    """
    Get the application's tasks repository.

    Raises:
        RuntimeError: If the application has not finished starting up
    """
    repository = getattr(request.app.state, "tasks_repository", None)
    if repository is None:
        raise RuntimeError("Tasks repository not initialized")
    return repository
