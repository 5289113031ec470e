"""
API routers for tasks service endpoints.
"""

from . import health_router, tasks_router

__all__ = ["tasks_router", "health_router"]
