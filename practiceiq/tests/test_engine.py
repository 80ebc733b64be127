"""
Tests for the adaptive learning engine running on in-memory collaborators.
"""

import logging
from datetime import timedelta
from unittest.mock import patch

import pytest

from practiceiq.common.config import AdaptiveConfig
from practiceiq.common.exceptions import (
    ConcurrentUpdateError,
    DatabaseError,
    InvalidInputError,
    NotFoundError,
    SubmissionFailedError,
)
from practiceiq.common.performance.engine import NEW_LEARNER_MESSAGE, build_engine
from practiceiq.domain.progress import AnswerSubmission, DifficultyLevel, ProgressKey

UNIT_KEY = ProgressKey("user-1", "unit-1")


@pytest.fixture
def submit(engine, clock, answer):
    """Submit an answer one minute after the previous one."""
    def _submit(**kwargs):
        clock.advance(minutes=1)
        return engine.submit_answer(answer(**kwargs))
    return _submit


class TestSubmitAnswer:
    """Tests for folding answers into progress"""

    def test_first_answer_creates_record(self, submit, store, clock):
        result = submit(is_correct=True, time_spent=30)

        metrics = result.metrics
        assert metrics.current_difficulty is DifficultyLevel.EASY
        assert (metrics.consecutive_correct, metrics.consecutive_wrong) == (1, 0)
        assert (metrics.total_attempts, metrics.correct_attempts) == (1, 1)
        assert metrics.mastery_level == 72
        assert metrics.ease_factor == pytest.approx(2.5)
        assert metrics.next_review_date == clock.now + timedelta(days=1)
        assert result.recent_accuracy == 100
        assert result.quality == 4
        assert result.previous_difficulty is DifficultyLevel.EASY
        assert not result.difficulty_changed

        stored = store.find(UNIT_KEY)
        assert stored.interval == 1
        assert stored.total_time_spent == 30
        assert stored.average_time_per_question == 30
        assert stored.last_practiced == clock.now
        assert stored.struggling_topics is None
        assert stored.common_mistakes is None

    def test_first_wrong_answer(self, submit):
        result = submit(is_correct=False)
        assert result.metrics.mastery_level == 0
        assert result.metrics.consecutive_wrong == 1
        assert result.recent_accuracy == 0
        assert result.quality == 0
        assert result.metrics.ease_factor == pytest.approx(1.7)

    def test_difficulty_progression(self, submit):
        levels = [submit(is_correct=True).metrics.current_difficulty for _ in range(5)]
        assert levels == [
            DifficultyLevel.EASY,
            DifficultyLevel.EASY,
            DifficultyLevel.EASY,
            DifficultyLevel.MEDIUM,
            DifficultyLevel.HARD,
        ]

        first_miss = submit(is_correct=False)
        assert first_miss.metrics.current_difficulty is DifficultyLevel.HARD
        assert first_miss.metrics.mastery_level == 78
        assert first_miss.recent_accuracy == 83

        second_miss = submit(is_correct=False)
        assert second_miss.metrics.current_difficulty is DifficultyLevel.MEDIUM
        assert second_miss.previous_difficulty is DifficultyLevel.HARD
        assert second_miss.difficulty_changed

    def test_streaks_are_mutually_exclusive(self, submit):
        for is_correct in [True, True, False, True, False, False, True]:
            metrics = submit(is_correct=is_correct).metrics
            assert (metrics.consecutive_correct > 0) != (metrics.consecutive_wrong > 0)
            assert metrics.correct_attempts <= metrics.total_attempts

    def test_quality_compares_with_previous_average(self, submit, store):
        submit(time_spent=30)
        slow = submit(time_spent=60)
        assert slow.quality == 3
        assert slow.metrics.ease_factor == pytest.approx(2.36)

        stored = store.find(UNIT_KEY)
        assert stored.interval == 6
        assert stored.total_time_spent == 90
        assert stored.average_time_per_question == 45

    def test_fast_answer_gets_top_quality(self, submit):
        submit(time_spent=40)
        assert submit(time_spent=10).quality == 5

    def test_topics_have_separate_records(self, submit, store):
        submit(topic_id="loops")
        submit(topic_id=None)
        submit(topic_id="")

        assert store.find(ProgressKey("user-1", "unit-1", "loops")).total_attempts == 1
        assert store.find(UNIT_KEY).total_attempts == 2
        assert len(store) == 2

    def test_recent_accuracy_spans_the_unit(self, submit):
        submit(is_correct=False, topic_id="a")
        assert submit(is_correct=True, topic_id="b").recent_accuracy == 50

    def test_recent_accuracy_ignores_other_units(self, submit):
        submit(is_correct=False, unit_id="unit-2")
        assert submit(is_correct=True).recent_accuracy == 100

    def test_recent_accuracy_window(self, store, response_log, clock, answer):
        engine = build_engine(AdaptiveConfig(recent_accuracy_window=2), store, response_log, clock)
        for is_correct in (False, False):
            clock.advance(minutes=1)
            engine.submit_answer(answer(is_correct=is_correct))
        clock.advance(minutes=1)
        assert engine.submit_answer(answer(is_correct=True)).recent_accuracy == 50

    def test_pattern_snapshot_is_cached(self, submit, store):
        for _ in range(3):
            result = submit(is_correct=False, topic_name="Loops", difficulty="MEDIUM")

        assert result.pattern.weak_topics == ["Loops"]
        stored = store.find(UNIT_KEY)
        assert stored.struggling_topics == ["Loops"]
        assert stored.common_mistakes == {"MEDIUM": 3}

    def test_accepts_submission_model(self, engine):
        submission = AnswerSubmission(
            user_id="user-1", unit_id="unit-1", question_id="q-9",
            difficulty=DifficultyLevel.HARD, is_correct=True
        )
        result = engine.submit_answer(submission)
        assert result.metrics.total_attempts == 1

    def test_logs_difficulty_changes(self, submit, caplog):
        caplog.set_level(logging.INFO, logger="practiceiq")
        for _ in range(4):
            submit(is_correct=True)
        assert any("Fast-tracking from EASY" in record.getMessage() for record in caplog.records)

    def test_result_to_dict(self, submit):
        data = submit(is_correct=True).to_dict()
        assert data["metrics"]["current_difficulty"] == "EASY"
        assert data["recent_accuracy"] == 100
        assert data["pattern"]["sample_size"] == 1


class TestInvalidSubmissions:
    """Malformed submissions are rejected before anything is stored"""

    @pytest.mark.parametrize("overrides,field", [
        ({"user_id": ""}, "user_id"),
        ({"time_spent": -5}, "time_spent"),
        ({"difficulty": "IMPOSSIBLE"}, "difficulty"),
    ])
    def test_rejects_bad_fields(self, engine, store, response_log, answer, overrides, field):
        with pytest.raises(InvalidInputError) as excinfo:
            engine.submit_answer(answer(**overrides))
        assert field in excinfo.value.errors
        assert len(store) == 0
        assert len(response_log) == 0

    def test_rejects_missing_correctness(self, engine, answer):
        payload = answer()
        del payload["is_correct"]
        with pytest.raises(InvalidInputError) as excinfo:
            engine.submit_answer(payload)
        assert "is_correct" in excinfo.value.errors

    def test_rejects_infinite_time(self, engine, answer):
        with pytest.raises(InvalidInputError):
            engine.submit_answer(answer(time_spent=float("inf")))


class TestPersistenceFailures:
    """A submission that cannot be saved must not look saved"""

    def test_store_failure_fails_submission(self, engine, store, answer):
        with patch.object(store, "update", side_effect=DatabaseError("disk full")):
            with pytest.raises(SubmissionFailedError) as excinfo:
                engine.submit_answer(answer())

        assert isinstance(excinfo.value.original_exception, DatabaseError)
        assert excinfo.value.question_id == "q-1"
        assert store.find(UNIT_KEY).total_attempts == 0

    def test_stale_read_is_rejected(self, submit, store):
        submit()
        stale = store.find(UNIT_KEY)
        submit()

        with patch.object(store, "find", return_value=stale):
            with pytest.raises(SubmissionFailedError) as excinfo:
                submit()

        error = excinfo.value.original_exception
        assert isinstance(error, ConcurrentUpdateError)
        assert error.expected_attempts == 1
        assert error.actual_attempts == 2
        assert store.find(UNIT_KEY).total_attempts == 2


class TestQueries:
    """Tests for the read-side operations"""

    def test_get_progress(self, engine, submit):
        assert engine.get_progress("user-1", "unit-1") is None
        submit(topic_id="loops")
        assert engine.get_progress("user-1", "unit-1") is None
        assert engine.get_progress("user-1", "unit-1", "loops").total_attempts == 1

    def test_recommended_difficulty_for_new_key(self, engine):
        assert engine.get_recommended_difficulty("user-1", "unit-1") is DifficultyLevel.EASY

    def test_recommended_difficulty_eases_overdue_topics(self, engine, submit, clock, store):
        for _ in range(4):
            submit(is_correct=True)
        assert engine.get_recommended_difficulty("user-1", "unit-1") is DifficultyLevel.MEDIUM

        clock.advance(days=400)
        assert engine.get_recommended_difficulty("user-1", "unit-1") is DifficultyLevel.EASY
        assert store.find(UNIT_KEY).current_difficulty is DifficultyLevel.MEDIUM

    def test_recommended_difficulty_never_below_easy(self, engine, submit, clock):
        submit(is_correct=True)
        review_at = clock.now + timedelta(days=2)
        assert engine.get_recommended_difficulty("user-1", "unit-1", as_of=review_at) is DifficultyLevel.EASY

    def test_insights_for_new_learner(self, engine, submit):
        submit(topic_id="loops")
        insights = engine.get_learning_insights("user-1", "unit-1")
        assert insights.is_new
        assert insights.to_dict() == {"status": "new", "message": NEW_LEARNER_MESSAGE}

    def test_insights(self, engine, submit, store):
        submit(is_correct=True, time_spent=30)
        submit(is_correct=False, time_spent=100)
        submit(is_correct=True, time_spent=47)

        insights = engine.get_learning_insights("user-1", "unit-1")
        assert insights.status == "active"
        assert insights.mastery_level == 66
        assert insights.current_difficulty is DifficultyLevel.EASY
        assert insights.accuracy == 67
        assert insights.total_attempts == 3
        assert insights.average_time_per_question == 59
        assert insights.next_review_date == store.find(UNIT_KEY).next_review_date
        assert insights.weak_topics == []
        assert insights.recommendations == ["Good progress! Practice more to solidify understanding"]

    def test_insights_call_out_weak_topics(self, engine, submit):
        for _ in range(3):
            submit(is_correct=False, topic_name="Loops")

        insights = engine.get_learning_insights("user-1", "unit-1")
        assert insights.weak_topics == ["Loops"]
        assert insights.recommendations == [
            "Focus on fundamentals - review basic concepts",
            "Review these topics: Loops",
            "Take a short break and review explanations carefully",
        ]
        assert insights.to_dict()["current_difficulty"] == "EASY"

    def test_units_needing_review(self, engine, submit, clock):
        start = clock.now
        submit(unit_id="unit-1")
        submit(unit_id="unit-1", topic_id="loops")
        submit(unit_id="unit-2")
        submit(user_id="user-2", unit_id="unit-3")

        assert engine.get_units_needing_review("user-1", as_of=start) == []
        clock.advance(days=2)
        assert engine.get_units_needing_review("user-1") == ["unit-1", "unit-2"]

    def test_pattern_window_is_independent(self, store, response_log, clock, answer):
        engine = build_engine(AdaptiveConfig(pattern_window=3), store, response_log, clock)
        for topic_name, is_correct in [("Loops", False)] * 3 + [("Arrays", True)] * 3:
            clock.advance(minutes=1)
            engine.submit_answer(answer(is_correct=is_correct, topic_name=topic_name))

        pattern = engine.analyze_performance_patterns("user-1", "unit-1")
        assert pattern.sample_size == 3
        assert pattern.weak_topics == []
        assert pattern.strong_topics == ["Arrays"]

    def test_refresh_derived_fields(self, engine, submit, store):
        for _ in range(3):
            submit(is_correct=False, topic_name="Loops")
        record = store.find(UNIT_KEY)
        store.update(record.id, {"struggling_topics": None, "common_mistakes": None})

        refreshed = engine.refresh_derived_fields("user-1", "unit-1")
        assert refreshed.struggling_topics == ["Loops"]
        assert refreshed.common_mistakes == {"EASY": 3}
        assert refreshed.total_attempts == 3
        assert refreshed.mastery_level == record.mastery_level

    def test_refresh_missing_record(self, engine):
        with pytest.raises(NotFoundError):
            engine.refresh_derived_fields("user-1", "unit-1")
