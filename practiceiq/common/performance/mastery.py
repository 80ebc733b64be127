"""
Mastery Estimation

Blends lifetime accuracy with an exponential moving average of recent
answers into a single 0-100 mastery score. The moving average is carried in
the previous mastery value, so no rolling window has to be stored.
"""

from practiceiq.common.exceptions import InvalidInputError
from practiceiq.common.logger import app_logger
from practiceiq.common.utils import clamp, round_half_up

# Module logger
logger = app_logger.getChild("performance.mastery")


class MasteryEstimator:
    """
    Computes mastery from cumulative accuracy and a recency-weighted average.

    mastery = w * accuracy + (1 - w) * (alpha * last + (1 - alpha) * previous)

    where ``last`` is 100 for a correct answer and 0 otherwise.
    """

    def __init__(self, alpha: float = 0.3, accuracy_weight: float = 0.6):
        """
        Initialize the estimator.

        Args:
            alpha: Smoothing factor of the moving average (weight of the last answer)
            accuracy_weight: Weight of lifetime accuracy in the blend
        """
        if not 0 < alpha <= 1:
            raise ValueError(f"alpha must be in (0, 1], got {alpha}")
        if not 0 <= accuracy_weight <= 1:
            raise ValueError(f"accuracy_weight must be in [0, 1], got {accuracy_weight}")
        self.alpha = alpha
        self.accuracy_weight = accuracy_weight

    def estimate(
        self,
        current_mastery: float,
        correct_attempts: int,
        total_attempts: int,
        is_correct: bool
    ) -> int:
        """
        Compute the mastery level after an attempt.

        Args:
            current_mastery: Mastery before this attempt (0-100)
            correct_attempts: Correct attempts including this one
            total_attempts: Total attempts including this one
            is_correct: Whether this attempt was correct

        Returns:
            Mastery level as an integer in [0, 100]

        Raises:
            InvalidInputError: If the counters are negative or inconsistent
        """
        if total_attempts < 0 or correct_attempts < 0:
            raise InvalidInputError(
                "attempt counters must be non-negative",
                {"correct_attempts": f"got {correct_attempts}", "total_attempts": f"got {total_attempts}"}
            )
        if correct_attempts > total_attempts:
            raise InvalidInputError(
                "correct_attempts cannot exceed total_attempts",
                {"correct_attempts": f"{correct_attempts} is more than total_attempts {total_attempts}"}
            )
        if total_attempts == 0:
            return 0

        overall_accuracy = correct_attempts / total_attempts * 100
        recent_impact = 100 if is_correct else 0
        moving_average = self.alpha * recent_impact + (1 - self.alpha) * current_mastery
        blended = self.accuracy_weight * overall_accuracy + (1 - self.accuracy_weight) * moving_average

        return round_half_up(clamp(blended, 0, 100))
