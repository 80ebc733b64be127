"""
Boundary schemas for answer submissions.

The question-answering collaborator resolves the question metadata and
correctness before calling the engine; these models validate what it hands
over.
"""

import math
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from practiceiq.domain.progress.model import DifficultyLevel, ProgressKey


class AnswerSubmission(BaseModel):
    """An evaluated answer, ready to be folded into the learner's progress."""

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(min_length=1)
    question_id: str = Field(min_length=1)
    unit_id: str = Field(min_length=1)
    topic_id: Optional[str] = None
    topic_name: Optional[str] = None
    difficulty: DifficultyLevel
    is_correct: bool
    time_spent: Optional[float] = Field(default=None, ge=0)

    @field_validator('topic_id')
    @classmethod
    def normalise_topic(cls, v: Optional[str]) -> Optional[str]:
        """Treat an empty topic as no topic"""
        return v or None

    @field_validator('time_spent')
    @classmethod
    def validate_time(cls, v: Optional[float]) -> Optional[float]:
        """Reject NaN and infinite durations"""
        if v is not None and not math.isfinite(v):
            raise ValueError("time_spent must be a finite number of seconds")
        return v

    @property
    def key(self) -> ProgressKey:
        return ProgressKey(self.user_id, self.unit_id, self.topic_id)
