"""
Tasks router.

Exposes the repository operations over REST. The HTTP remote store
speaks exactly this API, so one service instance can be another's remote.
"""

from typing import List

import structlog
from fastapi import APIRouter, Depends, HTTPException, Response, status

from ..dependencies import get_tasks_repository
from ..domain.entities import Task
from ..repositories.tasks_repository import TasksRepository
from .schemas import ErrorResponse, TaskPayload, TaskResponse

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/v1/tasks", tags=["tasks"])


@router.get(
    "",
    response_model=List[TaskResponse],
    responses={503: {"model": ErrorResponse}},
    summary="List all tasks",
)
async def list_tasks(repository: TasksRepository = Depends(get_tasks_repository)):
    """
    List all tasks.

    Returns 503 when neither the cache nor any store can provide data.
    """
    tasks = await repository.get_tasks()
    if tasks is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Task data not available",
        )
    return [TaskResponse.from_entity(task) for task in tasks]


@router.post(
    "",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a task",
)
async def create_task(
    payload: TaskPayload, repository: TasksRepository = Depends(get_tasks_repository)
):
    task = Task(
        title=payload.title,
        description=payload.description,
        completed=payload.completed,
    )
    _reject_empty(task)
    await repository.save_task(task)
    logger.info("Task created", task_id=task.id)
    return TaskResponse.from_entity(task)


@router.post(
    "/clear-completed",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete all completed tasks",
)
async def clear_completed_tasks(
    repository: TasksRepository = Depends(get_tasks_repository),
):
    await repository.clear_completed_tasks()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/refresh",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Force the next listing to come from the remote store",
)
async def refresh_tasks(repository: TasksRepository = Depends(get_tasks_repository)):
    await repository.refresh_tasks()
    # Drop the remote store's own response cache as well
    await repository.remote_data_source.refresh_tasks()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete(
    "",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete all tasks",
)
async def delete_all_tasks(repository: TasksRepository = Depends(get_tasks_repository)):
    await repository.delete_all_tasks()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{task_id}",
    response_model=TaskResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get a task",
)
async def get_task(task_id: str, repository: TasksRepository = Depends(get_tasks_repository)):
    task = await repository.get_task(task_id)
    if task is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=f"Task not found: {task_id}"
        )
    return TaskResponse.from_entity(task)


@router.put(
    "/{task_id}",
    response_model=TaskResponse,
    summary="Create or replace a task",
)
async def save_task(
    task_id: str,
    payload: TaskPayload,
    repository: TasksRepository = Depends(get_tasks_repository),
):
    task = Task(
        title=payload.title,
        description=payload.description,
        id=task_id,
        completed=payload.completed,
    )
    _reject_empty(task)
    await repository.save_task(task)
    return TaskResponse.from_entity(task)


@router.post(
    "/{task_id}/complete",
    response_model=TaskResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Mark a task as completed",
)
async def complete_task(
    task_id: str, repository: TasksRepository = Depends(get_tasks_repository)
):
    # Loading first puts the task in the cache when it is only in a store
    task = await _load_task_or_404(repository, task_id)
    await repository.complete_task(task)
    return TaskResponse.from_entity(task.as_completed())


@router.post(
    "/{task_id}/activate",
    response_model=TaskResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Mark a task as active",
)
async def activate_task(
    task_id: str, repository: TasksRepository = Depends(get_tasks_repository)
):
    task = await _load_task_or_404(repository, task_id)
    await repository.activate_task(task)
    return TaskResponse.from_entity(task.as_active())


@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a task",
)
async def delete_task(task_id: str, repository: TasksRepository = Depends(get_tasks_repository)):
    await repository.delete_task(task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


async def _load_task_or_404(repository: TasksRepository, task_id: str) -> Task:
    task = await repository.get_task(task_id)
    if task is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=f"Task not found: {task_id}"
        )
    return task


def _reject_empty(task: Task) -> None:
    if task.is_empty:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="A task needs a title or a description",
        )
