"""
Tests for the rule-based difficulty advisor.
"""

import itertools

import pytest

from practiceiq.common.performance.difficulty import AdjustmentReason, DifficultyAdvisor
from practiceiq.domain.progress.model import DifficultyLevel

EASY = DifficultyLevel.EASY
MEDIUM = DifficultyLevel.MEDIUM
HARD = DifficultyLevel.HARD
EXPERT = DifficultyLevel.EXPERT


@pytest.fixture
def advisor():
    return DifficultyAdvisor()


def advise(advisor, current, consecutive_correct=0, consecutive_wrong=0,
           mastery_level=60, total_attempts=5, recent_accuracy=70):
    return advisor.next_difficulty(
        current, consecutive_correct, consecutive_wrong,
        mastery_level, total_attempts, recent_accuracy
    )


class TestGuard:
    """Tests for the minimum-attempts guard"""

    @pytest.mark.parametrize("total_attempts", [0, 1, 2])
    def test_never_changes_with_too_few_attempts(self, advisor, total_attempts):
        for level in DifficultyLevel:
            assert advise(advisor, level, consecutive_correct=5, mastery_level=100,
                          total_attempts=total_attempts, recent_accuracy=100) is level
            assert advise(advisor, level, consecutive_wrong=5, mastery_level=0,
                          total_attempts=total_attempts, recent_accuracy=0) is level

    def test_reason_is_insufficient_data(self, advisor):
        adjustment = advisor.evaluate(MEDIUM, 2, 0, 90, 2, 100)
        assert adjustment.reason is AdjustmentReason.INSUFFICIENT_DATA
        assert not adjustment.changed


class TestAdvance:
    """Tests for moving up a level"""

    def test_easy_to_medium_on_strong_streak(self, advisor):
        assert advise(advisor, EASY, consecutive_correct=3, mastery_level=75,
                      total_attempts=5, recent_accuracy=80) is MEDIUM

    def test_requires_five_attempts(self, advisor):
        assert advise(advisor, MEDIUM, consecutive_correct=4, mastery_level=90,
                      total_attempts=4, recent_accuracy=100) is MEDIUM

    def test_requires_mastery(self, advisor):
        assert advise(advisor, MEDIUM, consecutive_correct=3, mastery_level=69,
                      total_attempts=6, recent_accuracy=80) is MEDIUM

    def test_requires_recent_accuracy(self, advisor):
        assert advise(advisor, MEDIUM, consecutive_correct=3, mastery_level=80,
                      total_attempts=6, recent_accuracy=74) is MEDIUM

    def test_expert_is_the_ceiling(self, advisor):
        assert advise(advisor, EXPERT, consecutive_correct=6, mastery_level=95,
                      total_attempts=20, recent_accuracy=100) is EXPERT

    def test_advance_wins_over_decrease(self, advisor):
        adjustment = advisor.evaluate(MEDIUM, 3, 2, 80, 5, 80)
        assert adjustment.new_level is HARD
        assert adjustment.reason is AdjustmentReason.ADVANCE


class TestDecrease:
    """Tests for moving down a level"""

    def test_wrong_streak_drops_a_level_regardless_of_mastery(self, advisor):
        assert advise(advisor, HARD, consecutive_wrong=2, mastery_level=95,
                      total_attempts=5, recent_accuracy=80) is MEDIUM

    def test_low_recent_accuracy_after_ten_attempts(self, advisor):
        assert advise(advisor, MEDIUM, total_attempts=10, recent_accuracy=40) is EASY
        assert advise(advisor, MEDIUM, total_attempts=9, recent_accuracy=40) is MEDIUM

    def test_low_mastery_after_ten_attempts(self, advisor):
        assert advise(advisor, MEDIUM, mastery_level=50, total_attempts=10, recent_accuracy=70) is EASY
        assert advise(advisor, MEDIUM, mastery_level=50, total_attempts=9, recent_accuracy=70) is MEDIUM

    def test_upper_levels_need_sixty_percent(self, advisor):
        assert advise(advisor, HARD, mastery_level=70, total_attempts=8, recent_accuracy=55) is MEDIUM
        assert advise(advisor, MEDIUM, mastery_level=70, total_attempts=8, recent_accuracy=55) is MEDIUM

    def test_easy_is_the_floor(self, advisor):
        assert advise(advisor, EASY, consecutive_wrong=4, mastery_level=0,
                      total_attempts=12, recent_accuracy=0) is EASY


class TestReliefAndFastTrack:
    """Tests for the EXPERT relief and EASY fast-track rules"""

    def test_expert_relief_without_wrong_streak(self, advisor):
        adjustment = advisor.evaluate(EXPERT, 1, 0, 80, 6, 62)
        assert adjustment.new_level is HARD
        assert adjustment.reason is AdjustmentReason.EXPERT_RELIEF

    def test_expert_relief_needs_six_attempts(self, advisor):
        assert advise(advisor, EXPERT, consecutive_correct=1, mastery_level=80,
                      total_attempts=5, recent_accuracy=62) is EXPERT

    def test_easy_fast_track(self, advisor):
        adjustment = advisor.evaluate(EASY, 2, 0, 60, 4, 90)
        assert adjustment.new_level is MEDIUM
        assert adjustment.reason is AdjustmentReason.EASY_FAST_TRACK

    def test_easy_fast_track_needs_four_attempts(self, advisor):
        assert advise(advisor, EASY, consecutive_correct=2, mastery_level=60,
                      total_attempts=3, recent_accuracy=100) is EASY

    def test_hold_otherwise(self, advisor):
        adjustment = advisor.evaluate(MEDIUM, 1, 0, 65, 7, 70)
        assert adjustment.new_level is MEDIUM
        assert adjustment.reason is AdjustmentReason.HOLD


class TestProperties:
    """Properties that hold across the input space"""

    def test_never_moves_more_than_one_level(self, advisor):
        grid = itertools.product(
            DifficultyLevel,
            range(0, 5),
            range(0, 4),
            (0, 50, 60, 70, 90),
            (0, 3, 5, 8, 10, 20),
            (0, 40, 55, 62, 75, 90, 100),
        )
        for current, correct, wrong, mastery, total, recent in grid:
            if correct and wrong:
                continue
            adjustment = advisor.evaluate(current, correct, wrong, mastery, total, recent)
            assert abs(adjustment.magnitude) <= 1

    def test_same_inputs_same_output(self, advisor):
        args = (HARD, 0, 1, 58, 9, 57)
        assert advisor.next_difficulty(*args) is advisor.next_difficulty(*args)

    def test_adjustment_to_dict(self, advisor):
        data = advisor.evaluate(EASY, 3, 0, 75, 5, 80).to_dict()
        assert data["previous_level"] == "EASY"
        assert data["new_level"] == "MEDIUM"
        assert data["reason"] == "advance"
        assert data["magnitude"] == 1
