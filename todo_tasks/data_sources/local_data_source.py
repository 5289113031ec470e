"""
SQL implementation of the local task store.

Persists the per-device copy of the task list through SQLAlchemy.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..domain.entities import Task
from ..domain.exceptions import StorageException
from ..models import TaskRecord
from .tasks_data_source import TasksDataSource, check_not_none

logger = logging.getLogger(__name__)


class SqlTasksLocalDataSource(TasksDataSource):
    """
    Local task store backed by a SQL database.

    Reads report "not available" when the table is empty or the query
    fails. Writes raise StorageException on database errors.
    """

    def __init__(self, session_factory: sessionmaker):
        """
        Initialize local store.

        Args:
            session_factory: SQLAlchemy session factory bound to the task database
        """
        self.session_factory = check_not_none(session_factory, "session_factory")

    async def get_tasks(self) -> Optional[List[Task]]:
        try:
            with self.session_factory() as session:
                records = session.query(TaskRecord).order_by(TaskRecord.id).all()
                tasks = [record.to_entity() for record in records]
        except SQLAlchemyError as e:
            logger.error(f"Error loading tasks from local store: {e}")
            return None

        if not tasks:
            logger.debug("Local store is empty")
            return None
        return tasks

    async def get_task(self, task_id: str) -> Optional[Task]:
        check_not_none(task_id, "task_id")
        try:
            with self.session_factory() as session:
                record = self._find(session, task_id)
                return record.to_entity() if record else None
        except SQLAlchemyError as e:
            logger.error(f"Error loading task {task_id} from local store: {e}")
            return None

    async def save_task(self, task: Task) -> None:
        check_not_none(task, "task")
        with self._transaction("save") as session:
            record = self._find(session, task.id)
            if record is None:
                record = TaskRecord(task_id=task.id)
                session.add(record)
            record.title = task.title
            record.description = task.description
            record.completed = task.completed

    async def complete_task(self, task: Task) -> None:
        check_not_none(task, "task")
        await self._set_completed(task.id, True)

    async def complete_task_by_id(self, task_id: str) -> None:
        check_not_none(task_id, "task_id")
        await self._set_completed(task_id, True)

    async def activate_task(self, task: Task) -> None:
        check_not_none(task, "task")
        await self._set_completed(task.id, False)

    async def activate_task_by_id(self, task_id: str) -> None:
        check_not_none(task_id, "task_id")
        await self._set_completed(task_id, False)

    async def clear_completed_tasks(self) -> None:
        with self._transaction("clear_completed") as session:
            deleted = (
                session.query(TaskRecord)
                .filter(TaskRecord.completed.is_(True))
                .delete(synchronize_session=False)
            )
        logger.info(f"Cleared {deleted} completed tasks from local store")

    async def refresh_tasks(self) -> None:
        # The repository owns refresh logic; the database has no cache of its own.
        pass

    async def delete_all_tasks(self) -> None:
        with self._transaction("delete_all") as session:
            session.query(TaskRecord).delete(synchronize_session=False)

    async def delete_task(self, task_id: str) -> None:
        check_not_none(task_id, "task_id")
        with self._transaction("delete") as session:
            session.query(TaskRecord).filter(TaskRecord.task_id == task_id).delete(
                synchronize_session=False
            )

    async def _set_completed(self, task_id: str, completed: bool) -> None:
        with self._transaction("complete" if completed else "activate") as session:
            session.query(TaskRecord).filter(TaskRecord.task_id == task_id).update(
                {TaskRecord.completed: completed}, synchronize_session=False
            )

    def _find(self, session: Session, task_id: str) -> Optional[TaskRecord]:
        return session.query(TaskRecord).filter(TaskRecord.task_id == task_id).first()

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[Session]:
        """Session scope that commits on success and maps database errors to StorageException."""
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Error during {operation} in local store: {e}")
            raise StorageException(operation, str(e)) from e
        finally:
            session.close()
