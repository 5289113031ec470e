"""
In-memory remote task store.

Stands in for a backend server when none is configured. Every operation
waits for a fixed latency first, to behave like a network round trip.
"""

import asyncio
import logging
from typing import Dict, Iterable, List, Optional

from ..domain.entities import Task
from .tasks_data_source import TasksDataSource, check_not_none

logger = logging.getLogger(__name__)


class InMemoryTasksRemoteDataSource(TasksDataSource):
    """Dict-backed remote store with simulated service latency."""

    def __init__(self, latency_ms: int = 0, seed_tasks: Optional[Iterable[Task]] = None):
        self.latency_ms = latency_ms
        self.tasks: Dict[str, Task] = {}
        for task in seed_tasks or ():
            self.tasks[task.id] = task

    async def get_tasks(self) -> Optional[List[Task]]:
        await self._simulate_latency()
        if not self.tasks:
            return None
        return list(self.tasks.values())

    async def get_task(self, task_id: str) -> Optional[Task]:
        check_not_none(task_id, "task_id")
        await self._simulate_latency()
        return self.tasks.get(task_id)

    async def save_task(self, task: Task) -> None:
        check_not_none(task, "task")
        await self._simulate_latency()
        self.tasks[task.id] = task

    async def complete_task(self, task: Task) -> None:
        check_not_none(task, "task")
        await self._simulate_latency()
        self.tasks[task.id] = task.as_completed()

    async def complete_task_by_id(self, task_id: str) -> None:
        check_not_none(task_id, "task_id")
        await self._simulate_latency()
        if task_id in self.tasks:
            self.tasks[task_id] = self.tasks[task_id].as_completed()

    async def activate_task(self, task: Task) -> None:
        check_not_none(task, "task")
        await self._simulate_latency()
        self.tasks[task.id] = task.as_active()

    async def activate_task_by_id(self, task_id: str) -> None:
        check_not_none(task_id, "task_id")
        await self._simulate_latency()
        if task_id in self.tasks:
            self.tasks[task_id] = self.tasks[task_id].as_active()

    async def clear_completed_tasks(self) -> None:
        await self._simulate_latency()
        self.tasks = {k: v for k, v in self.tasks.items() if not v.completed}

    async def refresh_tasks(self) -> None:
        # Nothing cached besides the data itself
        pass

    async def delete_all_tasks(self) -> None:
        await self._simulate_latency()
        self.tasks.clear()

    async def delete_task(self, task_id: str) -> None:
        check_not_none(task_id, "task_id")
        await self._simulate_latency()
        self.tasks.pop(task_id, None)

    async def _simulate_latency(self) -> None:
        if self.latency_ms > 0:
            await asyncio.sleep(self.latency_ms / 1000)
