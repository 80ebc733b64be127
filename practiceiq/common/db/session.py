"""
Database Session Management

This module provides SQLAlchemy engine creation and transactional session
scopes for the synchronous repositories.
"""

from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from practiceiq.common.db.connection import get_database_settings, infer_db_type
from practiceiq.common.logger import app_logger

# Set up logging
logger = app_logger.getChild("db.session")


def get_engine_kwargs(database_url: str, echo: bool = False, pool_size: int = 5,
                      pool_pre_ping: bool = True) -> Dict[str, Any]:
    """
    Get engine keyword arguments based on database type.
    Different databases support different connection options.
    """
    kwargs: Dict[str, Any] = {"echo": echo}

    db_type = infer_db_type(database_url)
    if db_type == "postgresql":
        kwargs.update({
            "pool_size": pool_size,
            "pool_pre_ping": pool_pre_ping,
            "pool_recycle": 300,  # Recycle connections every 5 minutes
        })
    elif db_type == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite+pysqlite://"):
            # One shared connection, otherwise every checkout sees a fresh empty database
            kwargs["poolclass"] = StaticPool

    return kwargs


def create_db_engine(database_url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    """
    Create an engine for ``database_url``, defaulting to the resolved database settings.

    Args:
        database_url: SQLAlchemy URL
        echo: Log emitted SQL

    Returns:
        Engine
    """
    db_settings = get_database_settings()
    url = database_url or db_settings["database_url"]
    kwargs = get_engine_kwargs(
        url,
        echo=db_settings["echo"] if echo is None else echo,
        pool_size=db_settings["pool_size"],
        pool_pre_ping=db_settings["pool_pre_ping"]
    )
    logger.info(f"Creating database engine for {infer_db_type(url)} database")
    return create_engine(url, **kwargs)


def create_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to ``engine``."""
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@contextmanager
def session_scope(session_factory: sessionmaker) -> Iterator[Session]:
    """
    Provide a transactional scope around a series of operations.

    Commits on success, rolls back and re-raises on any error.

    Example:
        with session_scope(factory) as session:
            session.add(record)
    """
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error(f"Database session error: {e}")
        raise
    finally:
        session.close()
