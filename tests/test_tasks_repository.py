"""
Tests for the tasks repository.

Covers:
- Full-list reads through cache, local and remote stores
- Dirty flag handling
- Single-task reads
- Write fan-out and cache updates
- Argument validation and not-found handling
- Write error channel
- Callback adapters
"""

from unittest.mock import call

import pytest

from todo_tasks.data_sources.in_memory_remote_data_source import InMemoryTasksRemoteDataSource
from todo_tasks.domain.entities import Task
from todo_tasks.domain.exceptions import (
    ExternalServiceException,
    InvalidArgumentException,
    StorageException,
    StoreWriteException,
    TaskNotFoundException,
)
from todo_tasks.repositories.tasks_repository import TasksRepository


class RecordingCallback:
    """Callback double that records every invocation."""

    def __init__(self):
        self.loaded = []
        self.not_available = 0

    def on_tasks_loaded(self, tasks):
        self.loaded.append(tasks)

    def on_task_loaded(self, task):
        self.loaded.append(task)

    def on_data_not_available(self):
        self.not_available += 1


class TestRepositoryInitialization:
    """Test repository initialization."""

    def test_initialization(self, repository, mock_stores):
        remote, local = mock_stores

        assert repository.remote_data_source is remote
        assert repository.local_data_source is local
        assert repository.cached_tasks is None
        assert repository.cache_is_dirty is False

    def test_missing_store_raises(self, mock_stores):
        remote, _ = mock_stores

        with pytest.raises(InvalidArgumentException):
            TasksRepository(remote_data_source=remote, local_data_source=None)


class TestGetTasks:
    """Test full-list reads."""

    @pytest.mark.asyncio
    async def test_cold_cache_loads_from_local(self, repository, mock_stores, task_a, task_b):
        """Test local store answers when the cache was never filled."""
        remote, local = mock_stores
        local.get_tasks.return_value = [task_a, task_b]

        result = await repository.get_tasks()

        assert result == [task_a, task_b]
        assert list(repository.cached_tasks.values()) == [task_a, task_b]
        assert repository.cache_is_dirty is False
        remote.get_tasks.assert_not_called()

    @pytest.mark.asyncio
    async def test_clean_cache_is_served_without_touching_stores(
        self, repository, mock_stores, task_a
    ):
        remote, local = mock_stores
        local.get_tasks.return_value = [task_a]

        await repository.get_tasks()
        result = await repository.get_tasks()

        assert result == [task_a]
        local.get_tasks.assert_awaited_once()
        remote.get_tasks.assert_not_called()

    @pytest.mark.asyncio
    async def test_local_unavailable_falls_back_to_remote(
        self, repository, mock_stores, task_a, task_b
    ):
        """Test remote result fills the cache and rewrites the local store."""
        remote, local = mock_stores
        remote.get_tasks.return_value = [task_a, task_b]

        result = await repository.get_tasks()

        assert result == [task_a, task_b]
        assert repository.cached_tasks == {"task-a": task_a, "task-b": task_b}
        assert repository.cache_is_dirty is False
        assert local.mock_calls == [
            call.get_tasks(),
            call.delete_all_tasks(),
            call.save_task(task_a),
            call.save_task(task_b),
        ]

    @pytest.mark.asyncio
    async def test_both_stores_unavailable(self, repository, mock_stores):
        """Test unavailable result leaves cache and dirty flag untouched."""
        remote, local = mock_stores

        result = await repository.get_tasks()

        assert result is None
        assert repository.cached_tasks is None
        assert repository.cache_is_dirty is False
        local.get_tasks.assert_awaited_once()
        remote.get_tasks.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_refresh_forces_remote_even_with_clean_cache(
        self, repository, mock_stores, task_a, task_b
    ):
        remote, local = mock_stores
        local.get_tasks.return_value = [task_a]
        remote.get_tasks.return_value = [task_b]
        await repository.get_tasks()

        await repository.refresh_tasks()
        result = await repository.get_tasks()

        assert result == [task_b]
        assert repository.cache_is_dirty is False
        local.get_tasks.assert_awaited_once()
        remote.get_tasks.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_refresh_with_remote_unavailable_keeps_state(
        self, repository, mock_stores, task_a
    ):
        remote, local = mock_stores
        local.get_tasks.return_value = [task_a]
        await repository.get_tasks()

        await repository.refresh_tasks()
        result = await repository.get_tasks()

        assert result is None
        assert repository.cache_is_dirty is True
        assert repository.cached_tasks == {"task-a": task_a}

    @pytest.mark.asyncio
    async def test_dirty_cache_skips_local_store(self, repository, mock_stores, task_a):
        remote, local = mock_stores
        remote.get_tasks.return_value = [task_a]

        await repository.refresh_tasks()
        await repository.get_tasks()

        local.get_tasks.assert_not_called()

    @pytest.mark.asyncio
    async def test_fetch_replaces_cache_instead_of_merging(
        self, repository, mock_stores, task_a, task_b
    ):
        remote, _ = mock_stores
        await repository.save_task(task_a)
        remote.get_tasks.return_value = [task_b]

        await repository.refresh_tasks()
        result = await repository.get_tasks()

        assert result == [task_b]
        assert "task-a" not in repository.cached_tasks

    @pytest.mark.asyncio
    async def test_result_keeps_insertion_order(self, repository, mock_stores):
        _, local = mock_stores
        tasks = [Task(title=f"Task {i}", id=f"id-{i}") for i in (3, 1, 2)]
        local.get_tasks.return_value = tasks

        result = await repository.get_tasks()

        assert [t.id for t in result] == ["id-3", "id-1", "id-2"]

    @pytest.mark.asyncio
    async def test_local_rewrite_failure_still_returns_tasks(
        self, repository, mock_stores, task_a
    ):
        remote, local = mock_stores
        remote.get_tasks.return_value = [task_a]
        local.delete_all_tasks.side_effect = StorageException("delete_all", "disk full")

        result = await repository.get_tasks()

        assert result == [task_a]
        assert repository.cached_tasks == {"task-a": task_a}

    @pytest.mark.asyncio
    async def test_delete_all_then_get_tasks_returns_empty_list(self, repository, mock_stores):
        """Test an emptied cache answers with an empty list, not unavailable."""
        remote, local = mock_stores

        await repository.delete_all_tasks()
        result = await repository.get_tasks()

        assert result == []
        local.get_tasks.assert_not_called()
        remote.get_tasks.assert_not_called()

    @pytest.mark.asyncio
    async def test_single_task_read_does_not_shadow_full_list(
        self, local_data_source, task_a, task_b
    ):
        """Test a cache filled by get_task still loads the full list from local."""
        await local_data_source.save_task(task_a)
        await local_data_source.save_task(task_b)
        repository = TasksRepository(InMemoryTasksRemoteDataSource(), local_data_source)

        assert await repository.get_task("task-a") == task_a
        result = await repository.get_tasks()

        assert result == [task_a, task_b]
        assert repository.cache_is_complete is True

    @pytest.mark.asyncio
    async def test_single_task_writes_do_not_mark_cache_complete(
        self, repository, mock_stores, task_a, task_b, completed_task
    ):
        _, local = mock_stores
        await repository.save_task(task_a)
        await repository.complete_task(completed_task)
        await repository.clear_completed_tasks()
        local.get_tasks.return_value = [task_a, task_b]

        result = await repository.get_tasks()

        assert result == [task_a, task_b]
        local.get_tasks.assert_awaited_once()


class TestGetTask:
    """Test single-task reads."""

    @pytest.mark.asyncio
    async def test_cache_hit_touches_no_store(self, repository, mock_stores, task_a):
        remote, local = mock_stores
        await repository.save_task(task_a)

        result = await repository.get_task("task-a")

        assert result == task_a
        local.get_task.assert_not_called()
        remote.get_task.assert_not_called()

    @pytest.mark.asyncio
    async def test_local_hit_is_cached(self, repository, mock_stores, task_a):
        remote, local = mock_stores
        local.get_task.return_value = task_a

        result = await repository.get_task("task-a")

        assert result == task_a
        assert repository.cached_tasks == {"task-a": task_a}
        remote.get_task.assert_not_called()

    @pytest.mark.asyncio
    async def test_remote_hit_is_cached(self, repository, mock_stores, task_a):
        remote, local = mock_stores
        remote.get_task.return_value = task_a

        result = await repository.get_task("task-a")

        assert result == task_a
        assert repository.cached_tasks == {"task-a": task_a}
        local.get_task.assert_awaited_once_with("task-a")
        remote.get_task.assert_awaited_once_with("task-a")

    @pytest.mark.asyncio
    async def test_not_found_anywhere(self, repository):
        assert await repository.get_task("missing") is None

    @pytest.mark.asyncio
    async def test_ignores_dirty_flag(self, repository, mock_stores, task_a):
        remote, local = mock_stores
        await repository.save_task(task_a)
        await repository.refresh_tasks()

        result = await repository.get_task("task-a")

        assert result == task_a
        remote.get_tasks.assert_not_called()
        remote.get_task.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_id_rejected(self, repository, mock_stores):
        remote, local = mock_stores

        with pytest.raises(InvalidArgumentException):
            await repository.get_task("")

        local.get_task.assert_not_called()


class TestWrites:
    """Test write fan-out and cache updates."""

    @pytest.mark.asyncio
    async def test_save_writes_both_stores_and_cache(self, repository, mock_stores, task_a):
        remote, local = mock_stores

        await repository.save_task(task_a)

        remote.save_task.assert_awaited_once_with(task_a)
        local.save_task.assert_awaited_once_with(task_a)
        assert repository.cached_tasks == {"task-a": task_a}

    @pytest.mark.asyncio
    async def test_save_none_rejected_before_any_store(self, repository, mock_stores):
        remote, local = mock_stores

        with pytest.raises(InvalidArgumentException):
            await repository.save_task(None)

        remote.save_task.assert_not_called()
        local.save_task.assert_not_called()

    @pytest.mark.asyncio
    async def test_complete_task_caches_completed_copy(self, repository, mock_stores, task_a):
        remote, local = mock_stores

        await repository.complete_task(task_a)

        cached = repository.cached_tasks["task-a"]
        assert cached.completed is True
        assert (cached.id, cached.title, cached.description) == (
            task_a.id,
            task_a.title,
            task_a.description,
        )
        remote.complete_task.assert_awaited_once_with(task_a)
        local.complete_task.assert_awaited_once_with(task_a)

    @pytest.mark.asyncio
    async def test_activate_task_caches_active_copy(
        self, repository, mock_stores, completed_task
    ):
        remote, local = mock_stores

        await repository.activate_task(completed_task)

        assert repository.cached_tasks["task-c"].completed is False
        remote.activate_task.assert_awaited_once_with(completed_task)
        local.activate_task.assert_awaited_once_with(completed_task)

    @pytest.mark.asyncio
    async def test_complete_by_id_resolves_from_cache(self, repository, mock_stores, task_a):
        remote, local = mock_stores
        await repository.save_task(task_a)

        await repository.complete_task_by_id("task-a")

        assert repository.cached_tasks["task-a"].completed is True
        remote.complete_task.assert_awaited_once_with(task_a)

    @pytest.mark.asyncio
    async def test_activate_by_id_resolves_from_cache(
        self, repository, mock_stores, completed_task
    ):
        _, local = mock_stores
        await repository.save_task(completed_task)

        await repository.activate_task_by_id("task-c")

        assert repository.cached_tasks["task-c"].completed is False
        local.activate_task.assert_awaited_once_with(completed_task)

    @pytest.mark.asyncio
    async def test_complete_by_id_not_cached_raises(self, repository, mock_stores):
        """Test unknown id fails explicitly without any store write."""
        remote, local = mock_stores
        active = Task(title="A", id="A")
        await repository.save_task(active)
        remote.reset_mock()
        local.reset_mock()

        with pytest.raises(TaskNotFoundException) as exc_info:
            await repository.complete_task_by_id("B")

        assert "B" in str(exc_info.value)
        assert repository.cached_tasks == {"A": active}
        remote.complete_task.assert_not_called()
        local.complete_task.assert_not_called()

    @pytest.mark.asyncio
    async def test_activate_by_id_on_uninitialized_cache_raises(self, repository):
        with pytest.raises(TaskNotFoundException):
            await repository.activate_task_by_id("task-a")

        assert repository.cached_tasks is None

    @pytest.mark.asyncio
    async def test_clear_completed_drops_only_completed(
        self, repository, mock_stores, task_a, completed_task
    ):
        remote, local = mock_stores
        await repository.save_task(task_a)
        await repository.save_task(completed_task)

        await repository.clear_completed_tasks()

        assert repository.cached_tasks == {"task-a": task_a}
        remote.clear_completed_tasks.assert_awaited_once()
        local.clear_completed_tasks.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_delete_all_clears_cache(self, repository, mock_stores, task_a):
        remote, local = mock_stores
        await repository.save_task(task_a)

        await repository.delete_all_tasks()

        assert repository.cached_tasks == {}
        remote.delete_all_tasks.assert_awaited_once()
        local.delete_all_tasks.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_delete_task_removes_from_cache(self, repository, mock_stores, task_a, task_b):
        remote, local = mock_stores
        await repository.save_task(task_a)
        await repository.save_task(task_b)

        await repository.delete_task("task-a")

        assert repository.cached_tasks == {"task-b": task_b}
        remote.delete_task.assert_awaited_once_with("task-a")
        local.delete_task.assert_awaited_once_with("task-a")

    @pytest.mark.asyncio
    async def test_delete_task_on_uninitialized_cache(self, repository, mock_stores):
        remote, local = mock_stores

        await repository.delete_task("task-a")

        assert repository.cached_tasks is None
        remote.delete_task.assert_awaited_once_with("task-a")
        local.delete_task.assert_awaited_once_with("task-a")

    @pytest.mark.asyncio
    async def test_refresh_touches_no_store(self, repository, mock_stores):
        remote, local = mock_stores

        await repository.refresh_tasks()

        assert repository.cache_is_dirty is True
        remote.refresh_tasks.assert_not_called()
        local.refresh_tasks.assert_not_called()


class TestWriteFailures:
    """Test the write error channel."""

    @pytest.mark.asyncio
    async def test_store_failure_raises_after_cache_update(
        self, repository, mock_stores, task_a
    ):
        remote, local = mock_stores
        remote.save_task.side_effect = ExternalServiceException("remote-tasks", "timeout")

        with pytest.raises(StoreWriteException) as exc_info:
            await repository.save_task(task_a)

        assert exc_info.value.operation == "save_task"
        assert exc_info.value.details["stores"] == ["remote"]
        assert repository.cached_tasks == {"task-a": task_a}
        local.save_task.assert_awaited_once_with(task_a)

    @pytest.mark.asyncio
    async def test_both_stores_failing_are_reported(self, repository, mock_stores):
        remote, local = mock_stores
        remote.delete_all_tasks.side_effect = ExternalServiceException("remote-tasks")
        local.delete_all_tasks.side_effect = StorageException("delete_all")

        with pytest.raises(StoreWriteException) as exc_info:
            await repository.delete_all_tasks()

        assert exc_info.value.details["stores"] == ["remote", "local"]
        assert repository.cached_tasks == {}

    @pytest.mark.asyncio
    async def test_failures_only_logged_when_disabled(self, mock_stores, task_a):
        remote, local = mock_stores
        remote.save_task.side_effect = ExternalServiceException("remote-tasks")
        repository = TasksRepository(remote, local, raise_on_write_failure=False)

        await repository.save_task(task_a)

        assert repository.cached_tasks == {"task-a": task_a}


class TestCallbacks:
    """Test callback adapters on the repository."""

    @pytest.mark.asyncio
    async def test_load_tasks_reports_loaded_once(self, repository, mock_stores, task_a):
        _, local = mock_stores
        local.get_tasks.return_value = [task_a]
        callback = RecordingCallback()

        await repository.load_tasks(callback)

        assert callback.loaded == [[task_a]]
        assert callback.not_available == 0

    @pytest.mark.asyncio
    async def test_load_tasks_reports_not_available_once(self, repository):
        callback = RecordingCallback()

        await repository.load_tasks(callback)

        assert callback.loaded == []
        assert callback.not_available == 1

    @pytest.mark.asyncio
    async def test_load_task(self, repository, task_a):
        await repository.save_task(task_a)
        callback = RecordingCallback()

        await repository.load_task("task-a", callback)

        assert callback.loaded == [task_a]
        assert callback.not_available == 0


class TestWithInMemoryRemote:
    """Test the repository against a real in-memory remote store."""

    @pytest.mark.asyncio
    async def test_remote_fetch_populates_local_store(self, local_data_source, task_a, task_b):
        remote = InMemoryTasksRemoteDataSource(seed_tasks=[task_a, task_b])
        repository = TasksRepository(remote, local_data_source)

        result = await repository.get_tasks()

        assert result == [task_a, task_b]
        assert await local_data_source.get_tasks() == [task_a, task_b]

    @pytest.mark.asyncio
    async def test_save_then_refresh_round_trip(self, local_data_source, task_a):
        remote = InMemoryTasksRemoteDataSource()
        repository = TasksRepository(remote, local_data_source)

        await repository.save_task(task_a)
        await repository.complete_task_by_id("task-a")
        await repository.refresh_tasks()
        result = await repository.get_tasks()

        assert result == [task_a.as_completed()]
        assert await local_data_source.get_task("task-a") == task_a.as_completed()

    def test_cache_stats(self, repository):
        assert repository.get_cache_stats() == {"initialized": False, "complete": False, "size": 0, "dirty": False}
