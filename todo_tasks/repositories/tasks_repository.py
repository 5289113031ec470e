"""
Tasks repository.

Loads tasks from the backing stores into an in-memory cache and keeps the
three in step. The remote store is only read when the local store has
nothing or when a refresh was requested.
"""

import asyncio
from typing import Dict, List, Optional

import structlog

from ..data_sources.tasks_data_source import TasksDataSource, check_not_none
from ..domain.entities import Task
from ..domain.exceptions import StoreWriteException, TaskNotFoundException
from ..metrics import repository_cache_size, track_read, track_write

logger = structlog.get_logger(__name__)


class TasksRepository(TasksDataSource):
    """
    Task repository with an in-memory cache over a local and a remote store.

    Read strategy for the full list:
    1. Serve the cache if it holds a full list and is not dirty
    2. If dirty, go straight to the remote store
    3. Otherwise try the local store, then the remote store
    4. A remote result also rewrites the local store

    Writes go to both stores and to the cache in the same call.

    The repository must be used from a single event loop. Cache and dirty
    flag are only mutated between awaits, so no lock is held.

    Attributes:
        cached_tasks: Cache keyed by task id, in insertion order. None until
            the first write or the first successful fetch
        cache_is_dirty: True when the cache must be refetched before serving
            a full-list read
        cache_is_complete: True once the cache holds the full task list, from
            a fetch or a delete-all. Single-task reads and writes alone never
            set it
    """

    def __init__(
        self,
        remote_data_source: TasksDataSource,
        local_data_source: TasksDataSource,
        raise_on_write_failure: bool = True,
    ):
        """
        Initialize repository.

        Args:
            remote_data_source: Backend (server) store
            local_data_source: Device (persistent) store
            raise_on_write_failure: Raise StoreWriteException when a store
                rejects a write; otherwise only log it
        """
        self.remote_data_source = check_not_none(remote_data_source, "remote_data_source")
        self.local_data_source = check_not_none(local_data_source, "local_data_source")
        self.raise_on_write_failure = raise_on_write_failure

        self.cached_tasks: Optional[Dict[str, Task]] = None
        self.cache_is_dirty = False
        self.cache_is_complete = False

    async def get_tasks(self) -> Optional[List[Task]]:
        """
        Get tasks from cache, local store or remote store, whichever answers first.

        Returns:
            All tasks, or None if neither store has data
        """
        if self.cache_is_complete and not self.cache_is_dirty:
            track_read("get_tasks", "cache")
            return list(self.cached_tasks.values())

        if self.cache_is_dirty:
            logger.debug("Cache is dirty, fetching tasks from remote store")
            return await self._get_tasks_from_remote_data_source()

        tasks = await self.local_data_source.get_tasks()
        if tasks is not None:
            self._refresh_cache(tasks)
            track_read("get_tasks", "local")
            logger.info("Loaded tasks from local store", count=len(tasks))
            return list(self.cached_tasks.values())

        logger.debug("Local store has no tasks, fetching from remote store")
        return await self._get_tasks_from_remote_data_source()

    async def get_task(self, task_id: str) -> Optional[Task]:
        """
        Get one task from cache, local store or remote store.

        Never consults the dirty flag.

        Args:
            task_id: Task identifier

        Returns:
            The task, or None if neither store has it
        """
        check_not_none(task_id, "task_id")

        cached_task = self._get_task_with_id(task_id)
        if cached_task is not None:
            track_read("get_task", "cache")
            return cached_task

        task = await self.local_data_source.get_task(task_id)
        if task is not None:
            self._put_in_cache(task)
            track_read("get_task", "local")
            return task

        task = await self.remote_data_source.get_task(task_id)
        if task is not None:
            self._put_in_cache(task)
            track_read("get_task", "remote")
            return task

        track_read("get_task", "unavailable")
        logger.info("Task not available in any store", task_id=task_id)
        return None

    async def save_task(self, task: Task) -> None:
        check_not_none(task, "task")
        failures = await self._write_through(
            "save_task",
            self.remote_data_source.save_task(task),
            self.local_data_source.save_task(task),
        )
        self._put_in_cache(task)
        self._report_write("save_task", failures)

    async def complete_task(self, task: Task) -> None:
        check_not_none(task, "task")
        failures = await self._write_through(
            "complete_task",
            self.remote_data_source.complete_task(task),
            self.local_data_source.complete_task(task),
        )
        self._put_in_cache(task.as_completed())
        self._report_write("complete_task", failures)

    async def complete_task_by_id(self, task_id: str) -> None:
        """
        Complete a task known only by id.

        Raises:
            TaskNotFoundException: If the id is not in the cache. Nothing is
                written in that case
        """
        check_not_none(task_id, "task_id")
        await self.complete_task(self._require_cached_task(task_id, "complete"))

    async def activate_task(self, task: Task) -> None:
        check_not_none(task, "task")
        failures = await self._write_through(
            "activate_task",
            self.remote_data_source.activate_task(task),
            self.local_data_source.activate_task(task),
        )
        self._put_in_cache(task.as_active())
        self._report_write("activate_task", failures)

    async def activate_task_by_id(self, task_id: str) -> None:
        """
        Activate a task known only by id.

        Raises:
            TaskNotFoundException: If the id is not in the cache. Nothing is
                written in that case
        """
        check_not_none(task_id, "task_id")
        await self.activate_task(self._require_cached_task(task_id, "activate"))

    async def clear_completed_tasks(self) -> None:
        failures = await self._write_through(
            "clear_completed_tasks",
            self.remote_data_source.clear_completed_tasks(),
            self.local_data_source.clear_completed_tasks(),
        )
        cache = self._ensure_cache()
        for task_id in [t.id for t in cache.values() if t.completed]:
            del cache[task_id]
        self._update_cache_gauge()
        self._report_write("clear_completed_tasks", failures)

    async def refresh_tasks(self) -> None:
        """Mark the cache dirty so the next full-list read goes to the remote store."""
        self.cache_is_dirty = True
        logger.info("Tasks cache marked dirty")

    async def delete_all_tasks(self) -> None:
        failures = await self._write_through(
            "delete_all_tasks",
            self.remote_data_source.delete_all_tasks(),
            self.local_data_source.delete_all_tasks(),
        )
        self._ensure_cache().clear()
        self.cache_is_complete = True
        self._update_cache_gauge()
        self._report_write("delete_all_tasks", failures)

    async def delete_task(self, task_id: str) -> None:
        check_not_none(task_id, "task_id")
        failures = await self._write_through(
            "delete_task",
            self.remote_data_source.delete_task(task_id),
            self.local_data_source.delete_task(task_id),
        )
        if self.cached_tasks is not None:
            self.cached_tasks.pop(task_id, None)
            self._update_cache_gauge()
        self._report_write("delete_task", failures)

    def get_cache_stats(self) -> dict:
        """
        Get in-memory cache statistics.

        Returns:
            Dictionary with cache size, whether it exists, whether it holds the
            full list and the dirty flag
        """
        return {
            "initialized": self.cached_tasks is not None,
            "complete": self.cache_is_complete,
            "size": len(self.cached_tasks) if self.cached_tasks is not None else 0,
            "dirty": self.cache_is_dirty,
        }

    async def _get_tasks_from_remote_data_source(self) -> Optional[List[Task]]:
        tasks = await self.remote_data_source.get_tasks()
        if tasks is None:
            track_read("get_tasks", "unavailable")
            logger.warning("Remote store has no tasks available")
            return None

        self._refresh_cache(tasks)
        await self._refresh_local_data_source(tasks)
        track_read("get_tasks", "remote")
        logger.info("Loaded tasks from remote store", count=len(tasks))
        return list(self.cached_tasks.values())

    def _refresh_cache(self, tasks: List[Task]) -> None:
        """Replace cache contents with a freshly fetched full list and clear dirty."""
        cache = self._ensure_cache()
        cache.clear()
        for task in tasks:
            cache[task.id] = task
        self.cache_is_dirty = False
        self.cache_is_complete = True
        self._update_cache_gauge()

    async def _refresh_local_data_source(self, tasks: List[Task]) -> None:
        """Rewrite the local store with the remote result, one task at a time."""
        try:
            await self.local_data_source.delete_all_tasks()
            for task in tasks:
                await self.local_data_source.save_task(task)
        except Exception as e:
            # Remote result is still served when the local rewrite fails
            logger.error("Failed to rewrite local store", error=str(e), exc_info=True)

    async def _write_through(self, operation: str, remote_write, local_write) -> List[tuple]:
        """
        Apply one write to both stores concurrently.

        Returns:
            List of (store name, exception) pairs for the stores that failed
        """
        results = await asyncio.gather(remote_write, local_write, return_exceptions=True)

        failures = []
        for store, result in zip(("remote", "local"), results):
            if isinstance(result, Exception):
                logger.error(
                    "Store rejected write",
                    operation=operation,
                    store=store,
                    error=str(result),
                )
                failures.append((store, result))
            elif isinstance(result, BaseException):
                raise result
        return failures

    def _report_write(self, operation: str, failures: List[tuple]) -> None:
        track_write(operation, success=not failures)
        if failures and self.raise_on_write_failure:
            raise StoreWriteException(operation, failures)

    def _ensure_cache(self) -> Dict[str, Task]:
        if self.cached_tasks is None:
            self.cached_tasks = {}
        return self.cached_tasks

    def _put_in_cache(self, task: Task) -> None:
        self._ensure_cache()[task.id] = task
        self._update_cache_gauge()

    def _get_task_with_id(self, task_id: str) -> Optional[Task]:
        if not self.cached_tasks:
            return None
        return self.cached_tasks.get(task_id)

    def _require_cached_task(self, task_id: str, operation: str) -> Task:
        task = self._get_task_with_id(task_id)
        if task is None:
            logger.warning("Task id not in cache", task_id=task_id, operation=operation)
            raise TaskNotFoundException(task_id, operation)
        return task

    def _update_cache_gauge(self) -> None:
        repository_cache_size.set(len(self.cached_tasks or {}))
