"""
Database Module

This package provides database connection settings, engine creation and
session scopes for the SQL-backed repositories.
"""

from practiceiq.common.db.connection import get_database_settings
from practiceiq.common.db.session import (
    create_db_engine,
    create_session_factory,
    session_scope,
    Session
)

__all__ = [
    'get_database_settings',
    'create_db_engine',
    'create_session_factory',
    'session_scope',
    'Session',
]
