"""
Test configuration and fixtures
"""

from unittest.mock import AsyncMock

import pytest

from todo_tasks.data_sources.local_data_source import SqlTasksLocalDataSource
from todo_tasks.data_sources.tasks_data_source import TasksDataSource
from todo_tasks.database import create_db_engine, create_session_factory
from todo_tasks.domain.entities import Task
from todo_tasks.models import Base
from todo_tasks.repositories.tasks_repository import TasksRepository


@pytest.fixture
def task_a():
    """Active task used across tests."""
    return Task(title="Buy milk", description="Two litres", id="task-a")


@pytest.fixture
def task_b():
    """Second active task."""
    return Task(title="Walk dog", description="Around the park", id="task-b")


@pytest.fixture
def completed_task():
    """Task that is already completed."""
    return Task(title="File taxes", description="", id="task-c", completed=True)


def _mock_data_source() -> AsyncMock:
    data_source = AsyncMock(spec=TasksDataSource)
    data_source.get_tasks.return_value = None
    data_source.get_task.return_value = None
    return data_source


@pytest.fixture
def mock_stores():
    """Create mock remote and local stores that report no data by default."""
    return _mock_data_source(), _mock_data_source()


@pytest.fixture
def repository(mock_stores):
    """Create tasks repository over mock stores."""
    remote, local = mock_stores
    return TasksRepository(remote_data_source=remote, local_data_source=local)


@pytest.fixture
def db_engine():
    """Create a fresh in-memory SQLite database for each test"""
    engine = create_db_engine("sqlite:///:memory:")
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def local_data_source(db_engine):
    """SQL local store bound to the in-memory database."""
    return SqlTasksLocalDataSource(create_session_factory(db_engine))
