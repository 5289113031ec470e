"""
Custom exceptions for the tasks data domain.

These exceptions represent domain-level errors and are independent
of infrastructure concerns (HTTP, database, etc.). A store that simply
has no data is not an error: reads report that as an unavailable
(``None``) result instead of raising.
"""

from typing import Any, List, Optional


class TaskDataException(Exception):
    """Base exception for all tasks data errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class InvalidArgumentException(TaskDataException):
    """Raised when a required argument is missing or empty."""

    def __init__(self, argument: str, value: Any = None):
        message = f"Invalid argument '{argument}': value is required"
        super().__init__(
            message=message, details={"argument": argument, "value": repr(value)}
        )


class TaskNotFoundException(TaskDataException):
    """Raised when a task id cannot be resolved against the in-memory cache."""

    def __init__(self, task_id: str, operation: Optional[str] = None):
        message = f"Task not found: {task_id}"
        if operation:
            message = f"Task not found for {operation}: {task_id}"
        super().__init__(
            message=message, details={"task_id": task_id, "operation": operation}
        )


class ExternalServiceException(TaskDataException):
    """Raised when the remote tasks service fails."""

    def __init__(self, service: str, reason: Optional[str] = None):
        message = f"External service '{service}' unavailable"
        if reason:
            message += f": {reason}"
        super().__init__(
            message=message, details={"service": service, "reason": reason}
        )


class StoreWriteException(TaskDataException):
    """
    Raised when a write could not be applied to one or more backing stores.

    The in-memory cache already reflects the write when this is raised.

    Attributes:
        operation: Name of the write operation
        failures: List of (store name, exception) pairs
    """

    def __init__(self, operation: str, failures: List[tuple]):
        self.operation = operation
        self.failures = failures
        stores = ", ".join(name for name, _ in failures)
        message = f"Write '{operation}' failed on: {stores}"
        super().__init__(
            message=message,
            details={
                "operation": operation,
                "stores": [name for name, _ in failures],
                "errors": [str(error) for _, error in failures],
            },
        )


class StorageException(TaskDataException):
    """Raised when the local task database rejects an operation."""

    def __init__(self, operation: str, reason: Optional[str] = None):
        message = f"Storage {operation} failed"
        if reason:
            message += f": {reason}"
        super().__init__(
            message=message, details={"operation": operation, "reason": reason}
        )
