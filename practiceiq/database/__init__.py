"""
Database package for PracticeIQ.

ORM models and SQL-backed repositories for progress records and the
response log.
"""

from practiceiq.database.base import Base, ModelBase, create_schema, drop_schema
from practiceiq.database.models import ProgressRecord, ResponseRecord
from practiceiq.database.repositories import SqlProgressStore, SqlResponseLog

__all__ = [
    'Base',
    'ModelBase',
    'create_schema',
    'drop_schema',
    'ProgressRecord',
    'ResponseRecord',
    'SqlProgressStore',
    'SqlResponseLog',
]
