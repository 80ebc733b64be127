"""
Progress domain module for PracticeIQ.

This module contains the domain model for per-learner progress, the
response log entries it is derived from, and the storage contracts for both.
"""

from .model import (
    DifficultyLevel,
    GENERAL_TOPIC,
    Progress,
    ProgressKey,
    ProgressMetrics,
    Response,
)
from .schemas import AnswerSubmission
from .repository import ProgressStore, ResponseLog
from .memory_repository import MemoryProgressStore, MemoryResponseLog

__all__ = [
    'DifficultyLevel',
    'GENERAL_TOPIC',
    'Progress',
    'ProgressKey',
    'ProgressMetrics',
    'Response',
    'AnswerSubmission',
    'ProgressStore',
    'ResponseLog',
    'MemoryProgressStore',
    'MemoryResponseLog',
]
