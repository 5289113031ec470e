"""
Data source layer - Task store contract and its local/remote implementations.
"""

from .in_memory_remote_data_source import InMemoryTasksRemoteDataSource
from .local_data_source import SqlTasksLocalDataSource
from .remote_data_source import HttpTasksRemoteDataSource
from .tasks_data_source import (
    GetTaskCallback,
    LoadTasksCallback,
    TasksDataSource,
    check_not_none,
)

__all__ = [
    "TasksDataSource",
    "LoadTasksCallback",
    "GetTaskCallback",
    "check_not_none",
    "SqlTasksLocalDataSource",
    "HttpTasksRemoteDataSource",
    "InMemoryTasksRemoteDataSource",
]
