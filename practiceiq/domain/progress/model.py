"""
Progress Domain Model Module

This module defines the core entities of the adaptive learning engine: the
difficulty scale, the composite progress key, the per-key progress record and
the immutable response record.
"""

import enum
import uuid
from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Set

from practiceiq.common.utils import percentage

GENERAL_TOPIC = "General"

# Fields fixed when a progress record is created
IMMUTABLE_FIELDS = frozenset({"id", "user_id", "unit_id", "topic_id", "created_at"})


class DifficultyLevel(enum.Enum):
    """
    Difficulty of a question, totally ordered EASY < MEDIUM < HARD < EXPERT.

    Moving along the scale goes through ``successor``/``predecessor`` which
    return None past either end, so callers cannot index off the scale.
    """
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"
    EXPERT = "EXPERT"

    @property
    def ordinal(self) -> int:
        """Position on the scale, 0 for EASY through 3 for EXPERT."""
        return _ORDER.index(self)

    @classmethod
    def from_ordinal(cls, ordinal: int) -> 'DifficultyLevel':
        """Convert a 0-3 position back to a level."""
        if not 0 <= ordinal < len(_ORDER):
            raise ValueError(f"Difficulty ordinal out of range: {ordinal}")
        return _ORDER[ordinal]

    def successor(self) -> Optional['DifficultyLevel']:
        """The next harder level, or None at EXPERT."""
        index = self.ordinal + 1
        return _ORDER[index] if index < len(_ORDER) else None

    def predecessor(self) -> Optional['DifficultyLevel']:
        """The next easier level, or None at EASY."""
        index = self.ordinal - 1
        return _ORDER[index] if index >= 0 else None

    def step_up(self) -> 'DifficultyLevel':
        """One level harder, saturating at EXPERT."""
        return self.successor() or self

    def step_down(self) -> 'DifficultyLevel':
        """One level easier, saturating at EASY."""
        return self.predecessor() or self

    def __lt__(self, other: 'DifficultyLevel') -> bool:
        if not isinstance(other, DifficultyLevel):
            return NotImplemented
        return self.ordinal < other.ordinal


_ORDER: List[DifficultyLevel] = [
    DifficultyLevel.EASY,
    DifficultyLevel.MEDIUM,
    DifficultyLevel.HARD,
    DifficultyLevel.EXPERT,
]


@dataclass(frozen=True)
class ProgressKey:
    """
    Composite key of a progress record.

    ``topic_id`` of None means the unit-level aggregate. An empty string is
    normalised to None so "no topic" has a single canonical value.
    """
    user_id: str
    unit_id: str
    topic_id: Optional[str] = None

    def __post_init__(self):
        if self.topic_id == "":
            object.__setattr__(self, "topic_id", None)

    @property
    def topic_key(self) -> str:
        """Non-null form of the topic for unique constraints ("" = no topic)."""
        return self.topic_id or ""


@dataclass
class ProgressMetrics:
    """Read-only view of a progress record returned to callers."""
    current_difficulty: DifficultyLevel
    consecutive_correct: int
    consecutive_wrong: int
    total_attempts: int
    correct_attempts: int
    mastery_level: int
    ease_factor: float
    next_review_date: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_difficulty": self.current_difficulty.value,
            "consecutive_correct": self.consecutive_correct,
            "consecutive_wrong": self.consecutive_wrong,
            "total_attempts": self.total_attempts,
            "correct_attempts": self.correct_attempts,
            "mastery_level": self.mastery_level,
            "ease_factor": self.ease_factor,
            "next_review_date": self.next_review_date.isoformat() if self.next_review_date else None,
        }


@dataclass
class Progress:
    """
    Mastery and scheduling state for one (user, unit, topic) key.

    ``mastery_level``, ``struggling_topics`` and ``common_mistakes`` are a
    cache derived from the response log, which stays the source of truth.

    Attributes:
        id: Store-assigned identifier
        user_id: Learner the record belongs to
        unit_id: Unit the record belongs to
        topic_id: Topic within the unit, None for the unit-level aggregate
        current_difficulty: Difficulty the learner is currently served
        consecutive_correct: Current run of correct answers
        consecutive_wrong: Current run of wrong answers
        total_attempts: Answers submitted for this key
        correct_attempts: Correct answers submitted for this key
        mastery_level: 0-100 mastery estimate
        ease_factor: SM-2 ease factor
        interval: Current review interval in days
        next_review_date: When the key is due for review
        total_time_spent: Cumulative answer time in seconds
        average_time_per_question: total_time_spent / total_attempts
        struggling_topics: Weak topics at the last submission, None if none
        common_mistakes: Mistake counts by difficulty, None if none
        last_practiced: Time of the last submission
    """
    id: str
    user_id: str
    unit_id: str
    topic_id: Optional[str] = None
    current_difficulty: DifficultyLevel = DifficultyLevel.EASY
    consecutive_correct: int = 0
    consecutive_wrong: int = 0
    total_attempts: int = 0
    correct_attempts: int = 0
    mastery_level: int = 0
    ease_factor: float = 2.5
    interval: int = 0
    next_review_date: Optional[datetime] = None
    total_time_spent: float = 0.0
    average_time_per_question: float = 0.0
    struggling_topics: Optional[List[str]] = None
    common_mistakes: Optional[Dict[str, int]] = None
    last_practiced: Optional[datetime] = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def create(cls, key: ProgressKey, ease_factor: float = 2.5) -> 'Progress':
        """Create a default record for ``key`` with a generated ID."""
        return cls(
            id=str(uuid.uuid4()),
            user_id=key.user_id,
            unit_id=key.unit_id,
            topic_id=key.topic_id,
            ease_factor=ease_factor,
        )

    @classmethod
    def updatable_fields(cls) -> Set[str]:
        """Names of the fields an update may change."""
        return {f.name for f in fields(cls)} - IMMUTABLE_FIELDS

    @property
    def key(self) -> ProgressKey:
        return ProgressKey(self.user_id, self.unit_id, self.topic_id)

    @property
    def accuracy(self) -> int:
        """Lifetime accuracy as a whole percentage."""
        return percentage(self.correct_attempts, self.total_attempts)

    def is_due(self, now: Optional[datetime] = None) -> bool:
        """Whether the key is due for review at ``now``."""
        if self.next_review_date is None:
            return False
        return self.next_review_date <= (now or datetime.now())

    def with_changes(self, changes: Dict[str, Any]) -> 'Progress':
        """
        Return a copy with ``changes`` applied.

        Raises:
            KeyError: If a change names an unknown or immutable field
        """
        unknown = set(changes) - self.updatable_fields()
        if unknown:
            raise KeyError(f"Cannot update progress fields: {sorted(unknown)}")
        return replace(self, **changes)

    def to_metrics(self) -> ProgressMetrics:
        return ProgressMetrics(
            current_difficulty=self.current_difficulty,
            consecutive_correct=self.consecutive_correct,
            consecutive_wrong=self.consecutive_wrong,
            total_attempts=self.total_attempts,
            correct_attempts=self.correct_attempts,
            mastery_level=self.mastery_level,
            ease_factor=self.ease_factor,
            next_review_date=self.next_review_date,
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the record to a dictionary.

        Returns:
            Dictionary representation with enum and datetime values flattened
        """
        return {
            'id': self.id,
            'user_id': self.user_id,
            'unit_id': self.unit_id,
            'topic_id': self.topic_id,
            'current_difficulty': self.current_difficulty.value,
            'consecutive_correct': self.consecutive_correct,
            'consecutive_wrong': self.consecutive_wrong,
            'total_attempts': self.total_attempts,
            'correct_attempts': self.correct_attempts,
            'mastery_level': self.mastery_level,
            'ease_factor': self.ease_factor,
            'interval': self.interval,
            'next_review_date': self.next_review_date.isoformat() if self.next_review_date else None,
            'total_time_spent': self.total_time_spent,
            'average_time_per_question': self.average_time_per_question,
            'struggling_topics': list(self.struggling_topics) if self.struggling_topics else None,
            'common_mistakes': dict(self.common_mistakes) if self.common_mistakes else None,
            'last_practiced': self.last_practiced.isoformat() if self.last_practiced else None,
            'created_at': self.created_at.isoformat(),
            'updated_at': self.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class Response:
    """
    One answered question. Immutable once created.

    ``difficulty_at_time`` is the difficulty of the question that was
    answered, not the learner's difficulty at that moment.
    """
    id: str
    user_id: str
    question_id: str
    unit_id: str
    is_correct: bool
    difficulty_at_time: DifficultyLevel
    topic_id: Optional[str] = None
    topic_name: Optional[str] = None
    time_spent: Optional[float] = None
    created_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def create(cls,
               user_id: str,
               question_id: str,
               unit_id: str,
               is_correct: bool,
               difficulty_at_time: DifficultyLevel,
               topic_id: Optional[str] = None,
               topic_name: Optional[str] = None,
               time_spent: Optional[float] = None,
               created_at: Optional[datetime] = None) -> 'Response':
        """Create a new response with a generated ID."""
        return cls(
            id=str(uuid.uuid4()),
            user_id=user_id,
            question_id=question_id,
            unit_id=unit_id,
            is_correct=is_correct,
            difficulty_at_time=difficulty_at_time,
            topic_id=topic_id or None,
            topic_name=topic_name,
            time_spent=time_spent,
            created_at=created_at or datetime.now(),
        )

    @property
    def topic_label(self) -> str:
        """Topic name used for pattern analysis."""
        return self.topic_name or GENERAL_TOPIC
