"""
Spaced Repetition Scheduling

This module implements an SM-2 style scheduler that turns each answer into a
recall quality grade and derives the next review interval and ease factor.
"""

import datetime
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

from practiceiq.common.exceptions import InvalidInputError
from practiceiq.common.logger import app_logger
from practiceiq.common.utils import clamp, round_half_up

# Module logger
logger = app_logger.getChild("performance.spaced_repetition")

MIN_QUALITY = 0
MAX_QUALITY = 5
PASSING_QUALITY = 3


def derive_quality(
    is_correct: bool,
    time_spent: Optional[float] = None,
    average_time: Optional[float] = None
) -> int:
    """
    Grade an answer on the SM-2 0-5 quality scale.

    A wrong answer is 0. A correct answer is graded by how its time compares
    with the learner's average: under half is 5, under 0.8 is 4, over 1.5 is
    3 and anything else is 4. Without both times the grade is 4.

    Args:
        is_correct: Whether the answer was correct
        time_spent: Seconds taken on this answer
        average_time: Learner's average seconds per answer

    Returns:
        Quality grade between 0 and 5

    Raises:
        InvalidInputError: If a time is negative or not finite
    """
    errors = {
        name: "must be a finite, non-negative number of seconds"
        for name, value in (("time_spent", time_spent), ("average_time", average_time))
        if value is not None and not (math.isfinite(value) and value >= 0)
    }
    if errors:
        raise InvalidInputError("invalid answer time", errors)

    if not is_correct:
        return 0
    if not time_spent or not average_time:
        return 4

    ratio = time_spent / average_time
    if ratio < 0.5:
        return 5
    if ratio < 0.8:
        return 4
    if ratio > 1.5:
        return 3
    return 4


@dataclass(frozen=True)
class ReviewSchedule:
    """Interval, ease factor and due date produced by one scheduling step."""
    next_interval: int
    ease_factor: float
    next_review_date: datetime.datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "next_interval": self.next_interval,
            "ease_factor": self.ease_factor,
            "next_review_date": self.next_review_date.isoformat()
        }


class SpacedRepetitionScheduler:
    """
    SM-2 scheduler with bounded ease factor and interval.

    A failed recall (quality below 3) resets the interval to one day. A
    successful one walks 1 -> 6 -> interval * ease, capped at
    ``max_interval_days`` so due dates never run away.
    """

    def __init__(
        self,
        min_ease_factor: float = 1.3,
        max_ease_factor: float = 3.0,
        max_interval_days: int = 365
    ):
        """
        Initialize the scheduler.

        Args:
            min_ease_factor: Lower bound of the ease factor
            max_ease_factor: Upper bound of the ease factor
            max_interval_days: Longest interval ever scheduled
        """
        self.min_ease_factor = min_ease_factor
        self.max_ease_factor = max_ease_factor
        self.max_interval_days = max_interval_days

    def update_ease(self, ease_factor: float, quality: int) -> float:
        """Apply the SM-2 ease adjustment and clamp it to the configured range."""
        shortfall = MAX_QUALITY - quality
        new_ease = ease_factor + (0.1 - shortfall * (0.08 + shortfall * 0.02))
        return clamp(new_ease, self.min_ease_factor, self.max_ease_factor)

    def next_interval(self, current_interval: int, new_ease: float, quality: int) -> int:
        """Interval in days to the next review."""
        if quality < PASSING_QUALITY:
            return 1
        if current_interval == 0:
            interval = 1
        elif current_interval == 1:
            interval = 6
        else:
            interval = round_half_up(current_interval * new_ease)
        return min(interval, self.max_interval_days)

    def schedule(
        self,
        current_interval: int,
        ease_factor: float,
        quality: int,
        now: Optional[datetime.datetime] = None
    ) -> ReviewSchedule:
        """
        Compute the next review after an answer.

        Args:
            current_interval: Current interval in days
            ease_factor: Current ease factor
            quality: Recall quality between 0 and 5
            now: Reference time, defaults to the current time

        Returns:
            The new interval, ease factor and review date

        Raises:
            InvalidInputError: If quality or the interval is out of range
        """
        if isinstance(quality, bool) or not MIN_QUALITY <= quality <= MAX_QUALITY:
            raise InvalidInputError(
                f"quality must be an integer between {MIN_QUALITY} and {MAX_QUALITY}",
                {"quality": f"got {quality!r}"}
            )
        if current_interval < 0:
            raise InvalidInputError(
                "interval cannot be negative",
                {"current_interval": f"got {current_interval}"}
            )

        new_ease = self.update_ease(ease_factor, quality)
        interval = self.next_interval(current_interval, new_ease, quality)
        now = now or datetime.datetime.now()

        logger.debug(
            f"Scheduled review in {interval} days "
            f"(quality={quality}, ease {ease_factor:.2f} -> {new_ease:.2f})"
        )

        return ReviewSchedule(
            next_interval=interval,
            ease_factor=new_ease,
            next_review_date=now + datetime.timedelta(days=interval)
        )
