"""
SQL Progress Repository Module

SQLAlchemy-backed implementations of the ProgressStore and ResponseLog
interfaces. Every SQLAlchemy failure is re-raised as ``DatabaseError``.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from practiceiq.common.db.session import session_scope
from practiceiq.common.exceptions import ConcurrentUpdateError, DatabaseError, NotFoundError
from practiceiq.common.logger import app_logger
from practiceiq.database.models import ProgressRecord, ResponseRecord
from practiceiq.domain.progress.model import Progress, ProgressKey, Response
from practiceiq.domain.progress.repository import ProgressStore, ResponseLog

logger = app_logger.getChild("database.repositories")


class SqlProgressStore(ProgressStore):
    """
    Progress store on a relational database.

    Updates with ``expected_attempts`` run as a single conditional UPDATE, so
    two writers racing on the same record cannot both succeed.
    """

    def __init__(self, session_factory: sessionmaker, default_ease_factor: float = 2.5):
        self.session_factory = session_factory
        self.default_ease_factor = default_ease_factor

    @staticmethod
    def _key_filter(key: ProgressKey):
        return (
            ProgressRecord.user_id == key.user_id,
            ProgressRecord.unit_id == key.unit_id,
            ProgressRecord.topic_key == key.topic_key,
        )

    def find(self, key: ProgressKey) -> Optional[Progress]:
        try:
            with session_scope(self.session_factory) as session:
                record = session.execute(
                    select(ProgressRecord).where(*self._key_filter(key))
                ).scalar_one_or_none()
                return record.to_domain() if record else None
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to load progress for {key}", e) from e

    def create(self, key: ProgressKey) -> Progress:
        progress = Progress.create(key, ease_factor=self.default_ease_factor)
        try:
            with session_scope(self.session_factory) as session:
                session.add(ProgressRecord.from_domain(progress))
        except IntegrityError:
            # Another writer created the record first
            existing = self.find(key)
            if existing is None:
                raise DatabaseError(f"Could not create progress for {key}")
            logger.debug(f"Progress for {key} already existed, reusing {existing.id}")
            return existing
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to create progress for {key}", e) from e

        logger.debug(f"Created progress {progress.id} for {key}")
        return progress

    def update(self, progress_id: str, changes: Dict[str, Any],
               expected_attempts: Optional[int] = None) -> Progress:
        unknown = set(changes) - Progress.updatable_fields()
        if unknown:
            raise KeyError(f"Cannot update progress fields: {sorted(unknown)}")

        values = dict(changes)
        values.setdefault("updated_at", datetime.now())

        statement = update(ProgressRecord).where(ProgressRecord.id == progress_id)
        if expected_attempts is not None:
            statement = statement.where(ProgressRecord.total_attempts == expected_attempts)
        statement = statement.values(**values).execution_options(synchronize_session=False)

        try:
            with session_scope(self.session_factory) as session:
                result = session.execute(statement)
                if result.rowcount == 1:
                    return session.get(ProgressRecord, progress_id).to_domain()
                current = session.get(ProgressRecord, progress_id)
                actual_attempts = current.total_attempts if current is not None else None
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to update progress {progress_id}", e) from e

        if actual_attempts is None:
            raise NotFoundError("Progress", progress_id)
        raise ConcurrentUpdateError(progress_id, expected_attempts, actual_attempts)

    def due_for_review(self, user_id: str, as_of: datetime) -> List[Progress]:
        try:
            with session_scope(self.session_factory) as session:
                records = session.execute(
                    select(ProgressRecord)
                    .where(
                        ProgressRecord.user_id == user_id,
                        ProgressRecord.next_review_date.is_not(None),
                        ProgressRecord.next_review_date <= as_of,
                    )
                    .order_by(ProgressRecord.created_at, ProgressRecord.id)
                ).scalars().all()
                return [record.to_domain() for record in records]
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to query reviews for user {user_id}", e) from e


class SqlResponseLog(ResponseLog):
    """Append-only response log on a relational database."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def append(self, response: Response) -> Response:
        try:
            with session_scope(self.session_factory) as session:
                session.add(ResponseRecord.from_domain(response))
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to record response {response.id}", e) from e
        return response

    def recent(self, user_id: str, unit_id: str, limit: int) -> List[Response]:
        if limit <= 0:
            return []
        try:
            with session_scope(self.session_factory) as session:
                records = session.execute(
                    select(ResponseRecord)
                    .where(ResponseRecord.user_id == user_id, ResponseRecord.unit_id == unit_id)
                    .order_by(ResponseRecord.created_at.desc(), ResponseRecord.seq.desc())
                    .limit(limit)
                ).scalars().all()
                return [record.to_domain() for record in records]
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to load responses for user {user_id}", e) from e
