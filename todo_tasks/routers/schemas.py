"""
API request and response models for the tasks endpoints.
"""

from typing import Optional

from pydantic import BaseModel, Field

from ..domain.entities import Task


class TaskPayload(BaseModel):
    """Body for creating or replacing a task."""

    title: str = Field(default="", max_length=255, description="Task title")
    description: str = Field(default="", description="Task description")
    completed: bool = Field(default=False, description="Completion flag")


class TaskResponse(BaseModel):
    """A single task as returned by the API."""

    id: str = Field(..., description="Task identifier")
    title: str = Field(..., description="Task title")
    description: str = Field(..., description="Task description")
    completed: bool = Field(..., description="Completion flag")
    title_for_list: Optional[str] = Field(
        default=None, description="Title if present, otherwise the description"
    )

    @classmethod
    def from_entity(cls, task: Task) -> "TaskResponse":
        return cls(
            id=task.id,
            title=task.title,
            description=task.description,
            completed=task.completed,
            title_for_list=task.title_for_list,
        )


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Human-readable error message")
