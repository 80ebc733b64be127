"""
Database models for progress records and the response log.

"No topic" is stored as an empty ``topic_key`` next to a nullable
``topic_id`` so the unique constraint on (user, unit, topic) treats it as a
single value; most databases consider NULLs distinct in unique indexes.
"""

from dataclasses import fields
from datetime import datetime

from sqlalchemy import (
    Boolean, Column, DateTime, Enum, Float, Index, Integer, JSON, String, UniqueConstraint
)

from practiceiq.database.base import ModelBase
from practiceiq.domain.progress.model import DifficultyLevel, Progress, Response

difficulty_enum = Enum(DifficultyLevel, name="difficulty_level")


class ProgressRecord(ModelBase):
    """Mastery and scheduling state for one (user, unit, topic) key."""
    __tablename__ = "progress"
    __table_args__ = (
        UniqueConstraint("user_id", "unit_id", "topic_key"),
    )

    id = Column(String(36), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    unit_id = Column(String(64), nullable=False)
    topic_id = Column(String(64), nullable=True)
    topic_key = Column(String(64), nullable=False, default="")

    current_difficulty = Column(difficulty_enum, nullable=False, default=DifficultyLevel.EASY)
    consecutive_correct = Column(Integer, nullable=False, default=0)
    consecutive_wrong = Column(Integer, nullable=False, default=0)
    total_attempts = Column(Integer, nullable=False, default=0)
    correct_attempts = Column(Integer, nullable=False, default=0)
    mastery_level = Column(Integer, nullable=False, default=0)

    ease_factor = Column(Float, nullable=False, default=2.5)
    interval = Column(Integer, nullable=False, default=0)
    next_review_date = Column(DateTime, nullable=True, index=True)

    total_time_spent = Column(Float, nullable=False, default=0.0)
    average_time_per_question = Column(Float, nullable=False, default=0.0)

    # Cached from the response log
    struggling_topics = Column(JSON, nullable=True)
    common_mistakes = Column(JSON, nullable=True)

    last_practiced = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now)

    @classmethod
    def from_domain(cls, progress: Progress) -> "ProgressRecord":
        record = cls(topic_key=progress.key.topic_key)
        for f in fields(progress):
            setattr(record, f.name, getattr(progress, f.name))
        return record

    def to_domain(self) -> Progress:
        values = self.column_values(exclude=("topic_key",))
        # JSON columns may come back as shared mutable structures
        values["struggling_topics"] = list(self.struggling_topics) if self.struggling_topics else None
        values["common_mistakes"] = dict(self.common_mistakes) if self.common_mistakes else None
        return Progress(**values)


class ResponseRecord(ModelBase):
    """One answered question. Rows are only ever inserted."""
    __tablename__ = "question_responses"
    __table_args__ = (
        Index("ix_question_responses_user_unit_created", "user_id", "unit_id", "created_at"),
    )

    # Insertion order breaks ties between equal timestamps
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(36), nullable=False, unique=True)
    user_id = Column(String(64), nullable=False)
    question_id = Column(String(64), nullable=False)
    unit_id = Column(String(64), nullable=False)
    topic_id = Column(String(64), nullable=True)
    topic_name = Column(String(255), nullable=True)
    is_correct = Column(Boolean, nullable=False)
    difficulty_at_time = Column(difficulty_enum, nullable=False)
    time_spent = Column(Float, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    @classmethod
    def from_domain(cls, response: Response) -> "ResponseRecord":
        return cls(
            id=response.id,
            user_id=response.user_id,
            question_id=response.question_id,
            unit_id=response.unit_id,
            topic_id=response.topic_id,
            topic_name=response.topic_name,
            is_correct=response.is_correct,
            difficulty_at_time=response.difficulty_at_time,
            time_spent=response.time_spent,
            created_at=response.created_at,
        )

    def to_domain(self) -> Response:
        return Response(**self.column_values(exclude=("seq",)))
