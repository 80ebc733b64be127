"""
Tests for the in-memory progress store and response log.
"""

from datetime import datetime, timedelta

import pytest

from practiceiq.common.exceptions import ConcurrentUpdateError, NotFoundError
from practiceiq.domain.progress import (
    DifficultyLevel,
    MemoryProgressStore,
    MemoryResponseLog,
    ProgressKey,
    Response,
)

NOW = datetime(2024, 3, 1, 9, 0, 0)


def response(user_id="user-1", unit_id="unit-1", minutes=0, is_correct=True):
    return Response.create(
        user_id=user_id,
        question_id=f"q-{minutes}",
        unit_id=unit_id,
        is_correct=is_correct,
        difficulty_at_time=DifficultyLevel.EASY,
        created_at=NOW + timedelta(minutes=minutes),
    )


class TestMemoryProgressStore:
    """Tests for MemoryProgressStore"""

    def test_create_uses_defaults(self, store):
        progress = store.create(ProgressKey("user-1", "unit-1"))
        assert progress.current_difficulty is DifficultyLevel.EASY
        assert progress.total_attempts == 0
        assert progress.ease_factor == 2.5
        assert progress.interval == 0
        assert progress.next_review_date is None

    def test_create_is_idempotent_per_key(self, store):
        first = store.create(ProgressKey("user-1", "unit-1"))
        second = store.create(ProgressKey("user-1", "unit-1", ""))
        assert first.id == second.id
        assert len(store) == 1

    def test_find_distinguishes_topics(self, store):
        unit_level = store.create(ProgressKey("user-1", "unit-1"))
        topic_level = store.create(ProgressKey("user-1", "unit-1", "loops"))
        assert store.find(ProgressKey("user-1", "unit-1")).id == unit_level.id
        assert store.find(ProgressKey("user-1", "unit-1", "loops")).id == topic_level.id
        assert store.find(ProgressKey("user-2", "unit-1")) is None

    def test_update(self, store):
        progress = store.create(ProgressKey("user-1", "unit-1"))
        updated = store.update(progress.id, {"total_attempts": 1, "mastery_level": 72}, expected_attempts=0)
        assert updated.total_attempts == 1
        assert store.find(progress.key).mastery_level == 72

    def test_returned_records_are_detached(self, store):
        key = ProgressKey("user-1", "unit-1")
        progress = store.create(key)
        updated = store.update(progress.id, {"struggling_topics": ["Loops"]}, expected_attempts=0)

        progress.total_attempts = 99
        updated.struggling_topics.append("Arrays")
        found = store.find(key)
        found.mastery_level = 100

        stored = store.find(key)
        assert stored.total_attempts == 0
        assert stored.struggling_topics == ["Loops"]
        assert stored.mastery_level == 0

    def test_update_rejects_stale_attempts(self, store):
        progress = store.create(ProgressKey("user-1", "unit-1"))
        store.update(progress.id, {"total_attempts": 1}, expected_attempts=0)
        with pytest.raises(ConcurrentUpdateError):
            store.update(progress.id, {"total_attempts": 1}, expected_attempts=0)

    def test_update_missing_record(self, store):
        with pytest.raises(NotFoundError):
            store.update("missing", {"total_attempts": 1})

    def test_update_rejects_key_fields(self, store):
        progress = store.create(ProgressKey("user-1", "unit-1"))
        with pytest.raises(KeyError):
            store.update(progress.id, {"user_id": "user-2"})

    def test_due_for_review(self, store):
        due = store.create(ProgressKey("user-1", "unit-1"))
        later = store.create(ProgressKey("user-1", "unit-2"))
        store.create(ProgressKey("user-1", "unit-3"))
        store.update(due.id, {"next_review_date": NOW})
        store.update(later.id, {"next_review_date": NOW + timedelta(days=3)})

        assert [p.id for p in store.due_for_review("user-1", NOW)] == [due.id]
        assert store.due_for_review("user-2", NOW) == []

    def test_custom_default_ease(self):
        store = MemoryProgressStore(default_ease_factor=2.0)
        assert store.create(ProgressKey("user-1", "unit-1")).ease_factor == 2.0


class TestMemoryResponseLog:
    """Tests for MemoryResponseLog"""

    def test_recent_is_newest_first(self, response_log):
        for minutes in (0, 2, 1):
            response_log.append(response(minutes=minutes))
        recent = response_log.recent("user-1", "unit-1", 10)
        assert [r.question_id for r in recent] == ["q-2", "q-1", "q-0"]

    def test_recent_respects_limit(self, response_log):
        for minutes in range(5):
            response_log.append(response(minutes=minutes))
        assert [r.question_id for r in response_log.recent("user-1", "unit-1", 2)] == ["q-4", "q-3"]
        assert response_log.recent("user-1", "unit-1", 0) == []

    def test_recent_filters_user_and_unit(self, response_log):
        response_log.append(response(user_id="user-2"))
        response_log.append(response(unit_id="unit-2"))
        response_log.append(response())
        assert len(response_log.recent("user-1", "unit-1", 10)) == 1

    def test_equal_timestamps_keep_append_order(self, response_log):
        first = response_log.append(response(minutes=0))
        second = response_log.append(response(minutes=0))
        assert response_log.recent("user-1", "unit-1", 2) == [second, first]
