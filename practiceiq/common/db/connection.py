"""
Database Configuration Loading

This module resolves database connection settings from the ``database``
section of the application config, overridden by the environment
(``DATABASE_URL``, ``SQL_ECHO``, ``DB_POOL_SIZE``, optionally via ``.env``).
"""

from typing import Any, Dict, Optional

from practiceiq.common.config import DatabaseConfig, get_config
from practiceiq.common.logger import app_logger
from practiceiq.config import Settings

# Module logger
logger = app_logger.getChild("db.config")


def infer_db_type(database_url: str) -> str:
    """Database backend named by a SQLAlchemy URL."""
    if database_url.startswith("postgresql"):
        return "postgresql"
    if database_url.startswith("sqlite"):
        return "sqlite"
    return "unknown"


def get_database_settings(database_config: Optional[DatabaseConfig] = None) -> Dict[str, Any]:
    """
    Resolve database connection settings.

    The environment is re-read on every call so tests can patch it.

    Args:
        database_config: Base values, the loaded ``database`` section when omitted

    Returns:
        A dictionary containing the connection URL, backend type, echo flag,
        pool size and pre-ping flag
    """
    if database_config is None:
        database_config = get_config().database
    env = Settings()

    database_url = env.DATABASE_URL or database_config.url
    db_type = infer_db_type(database_url)
    if db_type == "unknown":
        logger.warning(f"Could not infer database type from URL scheme: {database_url.split(':', 1)[0]}")

    return {
        "database_url": database_url,
        "db_type": db_type,
        "echo": database_config.echo if env.SQL_ECHO is None else env.SQL_ECHO,
        "pool_size": database_config.pool_size if env.DB_POOL_SIZE is None else env.DB_POOL_SIZE,
        "pool_pre_ping": database_config.pool_pre_ping,
    }
