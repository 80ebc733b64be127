"""
Adaptive Difficulty Management

This module decides which difficulty a learner should be served next from
their streaks, mastery and recent accuracy, keeping them in a zone that is
neither too easy nor too hard.
"""

import enum
import datetime
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from practiceiq.common.logger import app_logger
from practiceiq.domain.progress.model import DifficultyLevel

# Module logger
logger = app_logger.getChild("performance.difficulty")


@enum.unique
class AdjustmentReason(enum.Enum):
    """Which rule produced a difficulty decision."""
    INSUFFICIENT_DATA = "insufficient_data"
    ADVANCE = "advance"
    DECREASE = "decrease"
    EXPERT_RELIEF = "expert_relief"
    EASY_FAST_TRACK = "easy_fast_track"
    HOLD = "hold"


@dataclass
class DifficultyAdjustment:
    """
    Outcome of one advisor evaluation.

    Tracks the previous and new difficulty levels and the rule that decided.
    """
    previous_level: DifficultyLevel
    new_level: DifficultyLevel
    reason: AdjustmentReason
    recent_accuracy: Optional[float] = None
    timestamp: datetime.datetime = field(default_factory=datetime.datetime.now)

    @property
    def magnitude(self) -> int:
        """Signed number of levels moved (-1, 0 or +1)."""
        return self.new_level.ordinal - self.previous_level.ordinal

    @property
    def changed(self) -> bool:
        return self.new_level is not self.previous_level

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "previous_level": self.previous_level.value,
            "new_level": self.new_level.value,
            "reason": self.reason.value,
            "recent_accuracy": self.recent_accuracy,
            "timestamp": self.timestamp.isoformat(),
            "magnitude": self.magnitude
        }


class DifficultyAdvisor:
    """
    Rule-based difficulty policy.

    Rules are evaluated against the difficulty passed in, in this order, and
    the first match wins:

    1. Advance one level on a correct streak with high mastery and recent accuracy.
    2. Decrease one level on a wrong streak or sustained poor performance.
    3. Drop EXPERT to HARD when recent accuracy sags.
    4. Fast-track EASY to MEDIUM when recent accuracy is excellent.
    5. Otherwise hold.

    Advance is checked before decrease, so a call never moves more than one level.
    """

    ADVANCE_RECENT_ACCURACY = 75
    ADVANCE_MIN_ATTEMPTS = 5
    DECREASE_RECENT_ACCURACY = 50
    DECREASE_MIN_ATTEMPTS = 10
    UPPER_LEVEL_RECENT_ACCURACY = 60
    UPPER_LEVEL_MIN_ATTEMPTS = 8
    EXPERT_RELIEF_ACCURACY = 65
    EXPERT_RELIEF_MIN_ATTEMPTS = 6
    FAST_TRACK_ACCURACY = 90
    FAST_TRACK_MIN_ATTEMPTS = 4

    def __init__(
        self,
        min_attempts: int = 3,
        correct_streak_to_advance: int = 3,
        wrong_streak_to_decrease: int = 2,
        mastery_to_advance: int = 70,
        mastery_floor: int = 55
    ):
        """
        Initialize the advisor.

        Args:
            min_attempts: Attempts required before any change is considered
            correct_streak_to_advance: Correct streak required to advance
            wrong_streak_to_decrease: Wrong streak that forces a decrease
            mastery_to_advance: Mastery required to advance
            mastery_floor: Mastery below which a seasoned learner is eased down
        """
        self.min_attempts = min_attempts
        self.correct_streak_to_advance = correct_streak_to_advance
        self.wrong_streak_to_decrease = wrong_streak_to_decrease
        self.mastery_to_advance = mastery_to_advance
        self.mastery_floor = mastery_floor

    def next_difficulty(
        self,
        current: DifficultyLevel,
        consecutive_correct: int,
        consecutive_wrong: int,
        mastery_level: int,
        total_attempts: int,
        recent_accuracy: float
    ) -> DifficultyLevel:
        """Return the difficulty to serve next. See ``evaluate`` for the rules."""
        return self.evaluate(
            current, consecutive_correct, consecutive_wrong,
            mastery_level, total_attempts, recent_accuracy
        ).new_level

    def evaluate(
        self,
        current: DifficultyLevel,
        consecutive_correct: int,
        consecutive_wrong: int,
        mastery_level: int,
        total_attempts: int,
        recent_accuracy: float
    ) -> DifficultyAdjustment:
        """
        Evaluate the rules and describe the decision.

        Args:
            current: Difficulty currently served
            consecutive_correct: Current correct streak
            consecutive_wrong: Current wrong streak
            mastery_level: Mastery level (0-100)
            total_attempts: Attempts so far, including the latest
            recent_accuracy: Accuracy over the recent window (0-100)

        Returns:
            Adjustment holding the new level and the deciding rule
        """
        def decide(level: DifficultyLevel, reason: AdjustmentReason) -> DifficultyAdjustment:
            return DifficultyAdjustment(
                previous_level=current,
                new_level=level,
                reason=reason,
                recent_accuracy=recent_accuracy
            )

        if total_attempts < self.min_attempts:
            return decide(current, AdjustmentReason.INSUFFICIENT_DATA)

        index = current.ordinal

        should_advance = (
            consecutive_correct >= self.correct_streak_to_advance and
            mastery_level >= self.mastery_to_advance and
            recent_accuracy >= self.ADVANCE_RECENT_ACCURACY and
            total_attempts >= self.ADVANCE_MIN_ATTEMPTS
        )
        harder = current.successor()
        if should_advance and harder is not None:
            logger.info(
                f"Advancing difficulty: {current.value} -> {harder.value} "
                f"(streak={consecutive_correct}, mastery={mastery_level}, recent={recent_accuracy})"
            )
            return decide(harder, AdjustmentReason.ADVANCE)

        should_decrease = (
            consecutive_wrong >= self.wrong_streak_to_decrease or
            (recent_accuracy < self.DECREASE_RECENT_ACCURACY and total_attempts >= self.DECREASE_MIN_ATTEMPTS) or
            (mastery_level < self.mastery_floor and total_attempts >= self.DECREASE_MIN_ATTEMPTS) or
            (index >= DifficultyLevel.HARD.ordinal and
             recent_accuracy < self.UPPER_LEVEL_RECENT_ACCURACY and
             total_attempts >= self.UPPER_LEVEL_MIN_ATTEMPTS)
        )
        easier = current.predecessor()
        if should_decrease and easier is not None:
            logger.info(
                f"Decreasing difficulty: {current.value} -> {easier.value} "
                f"(wrong streak={consecutive_wrong}, mastery={mastery_level}, recent={recent_accuracy})"
            )
            return decide(easier, AdjustmentReason.DECREASE)

        if (current is DifficultyLevel.EXPERT and
                recent_accuracy < self.EXPERT_RELIEF_ACCURACY and
                total_attempts >= self.EXPERT_RELIEF_MIN_ATTEMPTS):
            logger.info(f"Dropping from EXPERT after recent struggles (recent={recent_accuracy})")
            return decide(DifficultyLevel.HARD, AdjustmentReason.EXPERT_RELIEF)

        if (current is DifficultyLevel.EASY and
                recent_accuracy >= self.FAST_TRACK_ACCURACY and
                total_attempts >= self.FAST_TRACK_MIN_ATTEMPTS):
            logger.info(f"Fast-tracking from EASY (recent={recent_accuracy})")
            return decide(DifficultyLevel.MEDIUM, AdjustmentReason.EASY_FAST_TRACK)

        return decide(current, AdjustmentReason.HOLD)
