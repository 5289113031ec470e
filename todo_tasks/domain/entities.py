"""
Domain entities for to-do tasks.

Tasks are immutable value objects: completing or activating a task
produces a new Task carrying the same identifier.
"""

import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Dict


def _new_task_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Task:
    """
    Immutable model for a single to-do task.

    Attributes:
        title: Short title, may be empty
        description: Longer description, may be empty
        id: Identifier, unique and stable across local and remote stores
        completed: Whether the task has been completed
    """

    title: str = ""
    description: str = ""
    id: str = field(default_factory=_new_task_id)
    completed: bool = False

    def __post_init__(self):
        """Validate identifier on creation."""
        if not self.id:
            raise ValueError("Task id cannot be empty")

    @property
    def title_for_list(self) -> str:
        """Title if present, otherwise the description."""
        if self.title:
            return self.title
        return self.description

    @property
    def is_active(self) -> bool:
        return not self.completed

    @property
    def is_empty(self) -> bool:
        return not self.title and not self.description

    def as_completed(self) -> "Task":
        """Return a copy of this task with the completion flag set."""
        return replace(self, completed=True)

    def as_active(self) -> "Task":
        """Return a copy of this task with the completion flag cleared."""
        return replace(self, completed=False)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses and remote payloads."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "completed": self.completed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        """
        Build a task from a dictionary payload.

        Missing title/description are treated as empty strings; a missing
        id raises KeyError. A completed flag that is not a JSON boolean
        raises ValueError.
        """
        completed = data.get("completed", False)
        if not isinstance(completed, bool):
            raise ValueError(f"Task completed flag must be a boolean, got {completed!r}")
        return cls(
            title=data.get("title") or "",
            description=data.get("description") or "",
            id=data["id"],
            completed=completed,
        )
