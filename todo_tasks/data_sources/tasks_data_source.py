"""
Tasks data source interface (Abstract Base Class).

Defines the contract every task store (local, remote, or the repository
that composes them) must honour, independent of the storage mechanism.

Reads are coroutines that complete exactly once, either with data or with
``None`` meaning "data not available". Writes are fire-and-forget from the
contract's point of view: they return nothing.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional, Protocol

from ..domain.entities import Task
from ..domain.exceptions import InvalidArgumentException


class LoadTasksCallback(Protocol):
    """Receiver for the outcome of a full-list fetch."""

    def on_tasks_loaded(self, tasks: List[Task]) -> None: ...

    def on_data_not_available(self) -> None: ...


class GetTaskCallback(Protocol):
    """Receiver for the outcome of a single-task fetch."""

    def on_task_loaded(self, task: Task) -> None: ...

    def on_data_not_available(self) -> None: ...


def check_not_none(value: Any, argument: str) -> Any:
    """
    Fail fast on a missing required argument.

    Args:
        value: Argument value
        argument: Argument name used in the error

    Returns:
        The value, unchanged

    Raises:
        InvalidArgumentException: If value is None or an empty string
    """
    if value is None or (isinstance(value, str) and not value):
        raise InvalidArgumentException(argument, value)
    return value


class TasksDataSource(ABC):
    """
    Abstract interface for task data operations.

    Implemented by the local store, the remote stores and by
    TasksRepository itself, so callers cannot tell them apart.
    """

    @abstractmethod
    async def get_tasks(self) -> Optional[List[Task]]:
        """
        Fetch all tasks.

        Returns:
            List of tasks, or None if no data is available
        """
        pass

    @abstractmethod
    async def get_task(self, task_id: str) -> Optional[Task]:
        """
        Fetch a single task by id.

        Args:
            task_id: Task identifier

        Returns:
            The task, or None if it is not available
        """
        pass

    @abstractmethod
    async def save_task(self, task: Task) -> None:
        """Insert or replace a task."""
        pass

    @abstractmethod
    async def complete_task(self, task: Task) -> None:
        """Mark the given task as completed."""
        pass

    @abstractmethod
    async def complete_task_by_id(self, task_id: str) -> None:
        """Mark the task with this id as completed."""
        pass

    @abstractmethod
    async def activate_task(self, task: Task) -> None:
        """Mark the given task as active."""
        pass

    @abstractmethod
    async def activate_task_by_id(self, task_id: str) -> None:
        """Mark the task with this id as active."""
        pass

    @abstractmethod
    async def clear_completed_tasks(self) -> None:
        """Delete every completed task."""
        pass

    @abstractmethod
    async def refresh_tasks(self) -> None:
        """Discard any caching the store does on its own."""
        pass

    @abstractmethod
    async def delete_all_tasks(self) -> None:
        """Delete every task."""
        pass

    @abstractmethod
    async def delete_task(self, task_id: str) -> None:
        """Delete the task with this id."""
        pass

    async def load_tasks(self, callback: LoadTasksCallback) -> None:
        """
        Fetch all tasks and report the outcome through a callback.

        Exactly one of the callback methods is invoked, exactly once.
        """
        check_not_none(callback, "callback")
        tasks = await self.get_tasks()
        if tasks is None:
            callback.on_data_not_available()
        else:
            callback.on_tasks_loaded(tasks)

    async def load_task(self, task_id: str, callback: GetTaskCallback) -> None:
        """
        Fetch one task and report the outcome through a callback.

        Exactly one of the callback methods is invoked, exactly once.
        """
        check_not_none(task_id, "task_id")
        check_not_none(callback, "callback")
        task = await self.get_task(task_id)
        if task is None:
            callback.on_data_not_available()
        else:
            callback.on_task_loaded(task)
