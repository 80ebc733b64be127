"""
Declarative base shared by the PracticeIQ tables, plus schema helpers.
"""

from typing import Any, Dict, Iterable

from sqlalchemy import MetaData
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from practiceiq.common.logger import app_logger

logger = app_logger.getChild("database.base")

# Deterministic constraint names, e.g. uq_progress_user_id_unit_id_topic_key
metadata = MetaData(naming_convention={
    "pk": "pk_%(table_name)s",
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_N_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
})

Base = declarative_base(metadata=metadata)


class ModelBase(Base):
    """Abstract parent of every mapped record."""

    __abstract__ = True

    def column_values(self, exclude: Iterable[str] = ()) -> Dict[str, Any]:
        """Column name to value, without the ``exclude``d columns."""
        skipped = set(exclude)
        return {
            column.name: getattr(self, column.name)
            for column in self.__table__.columns
            if column.name not in skipped
        }


def create_schema(engine: Engine) -> None:
    """Create all tables that do not exist yet."""
    metadata.create_all(engine)
    logger.info(f"Database schema ready ({len(metadata.tables)} tables)")


def drop_schema(engine: Engine) -> None:
    metadata.drop_all(engine)
