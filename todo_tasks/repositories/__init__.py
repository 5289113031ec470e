"""
Repository layer - Cached access to tasks across local and remote stores.
"""

from .tasks_repository import TasksRepository

__all__ = ["TasksRepository"]
