"""
Tasks data service.

A repository that reconciles an in-memory cache, a local SQL store and a
remote store behind one data-access contract, plus the FastAPI service
that hosts it.
"""

__version__ = "1.0.0"
