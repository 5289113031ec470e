"""
Database configuration and connection management for the local task store.
"""

import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base

logger = logging.getLogger(__name__)


def get_connect_args(db_url: str) -> dict:
    """
    Get database-specific connection arguments.

    Args:
        db_url: Database connection URL

    Returns:
        Connection arguments dict
    """
    if db_url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


def create_db_engine(db_url: str) -> Engine:
    """
    Create a SQLAlchemy engine for the local store.

    In-memory SQLite databases share one connection so every session sees
    the same data.

    Args:
        db_url: Database connection URL

    Returns:
        Configured engine
    """
    kwargs = {"connect_args": get_connect_args(db_url)}
    if db_url.startswith("sqlite") and ":memory:" in db_url:
        kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True

    # Sanitize for logging
    safe_url = db_url.split("@")[0] + "@..." if "@" in db_url else db_url
    logger.info(f"Using local task database: {safe_url}")

    return create_engine(db_url, **kwargs)


def create_session_factory(engine: Engine) -> sessionmaker:
    """Build the session factory used by the local data source."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, class_=Session)


def init_db(engine: Engine) -> None:
    """Create the task tables if they do not exist."""
    Base.metadata.create_all(bind=engine)
    logger.info("Local task database initialized")
