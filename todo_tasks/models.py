"""
Database models for the local task store.

This module defines the SQLAlchemy ORM model backing the local, per-device
copy of the task list.
"""

from typing import Any

from sqlalchemy import Boolean, Column, DateTime, Integer, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

from .domain.entities import Task

Base: Any = declarative_base()


class TaskRecord(Base):
    """
    Persisted task row.

    Attributes:
        id: Surrogate key, also gives rows their insertion order
        task_id: Task identifier shared with the remote store
        title: Task title
        description: Task description
        completed: Completion flag
        created_at: Timestamp of row creation
        updated_at: Timestamp of last row update
    """

    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    task_id = Column(Text, unique=True, index=True, nullable=False)
    title = Column(Text, nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    completed = Column(Boolean, nullable=False, default=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def to_entity(self) -> Task:
        return Task(
            title=self.title or "",
            description=self.description or "",
            id=self.task_id,
            completed=bool(self.completed),
        )

    def __repr__(self) -> str:
        return f"<TaskRecord(task_id='{self.task_id}', completed={self.completed})>"
