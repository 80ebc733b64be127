"""
Adaptive Learning Engine

This module orchestrates an answer submission: it reads (or lazily creates)
the learner's progress record, appends the response to the log, runs the
mastery, difficulty, scheduling and pattern components over the result and
writes the updated record back in a single compare-and-swap update.

It also serves the read-side queries built on the same state: progress
lookups, the recommended next difficulty, learning insights and units due
for review.
"""

import datetime
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError

from practiceiq.common.config import AdaptiveConfig, get_config
from practiceiq.common.exceptions import (
    InternalError,
    InvalidInputError,
    NotFoundError,
    SubmissionFailedError,
)
from practiceiq.common.logger import app_logger, log_execution_time, with_context
from practiceiq.common.utils import percentage, round_half_up, safe_divide
from practiceiq.common.performance.difficulty import DifficultyAdvisor
from practiceiq.common.performance.mastery import MasteryEstimator
from practiceiq.common.performance.patterns import (
    PerformancePattern,
    PerformancePatternAnalyzer,
    generate_recommendations,
    snapshot_fields,
)
from practiceiq.common.performance.spaced_repetition import (
    SpacedRepetitionScheduler,
    derive_quality,
)
from practiceiq.domain.progress import (
    AnswerSubmission,
    DifficultyLevel,
    MemoryProgressStore,
    MemoryResponseLog,
    Progress,
    ProgressKey,
    ProgressMetrics,
    ProgressStore,
    Response,
    ResponseLog,
)

# Module logger
logger = app_logger.getChild("performance.engine")

NEW_LEARNER_MESSAGE = "Start practicing to see your insights!"

Clock = Callable[[], datetime.datetime]


@dataclass
class SubmissionResult:
    """
    Outcome of a persisted answer submission.

    Attributes:
        metrics: Progress metrics as stored after the submission
        previous_difficulty: Difficulty served before the submission
        recent_accuracy: Accuracy over the short response window (0-100)
        quality: SM-2 quality grade assigned to the answer
        pattern: Pattern summary the cached snapshot was taken from
        response_id: ID of the logged response
    """
    metrics: ProgressMetrics
    previous_difficulty: DifficultyLevel
    recent_accuracy: int
    quality: int
    pattern: PerformancePattern
    response_id: str

    @property
    def difficulty_changed(self) -> bool:
        return self.metrics.current_difficulty is not self.previous_difficulty

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "metrics": self.metrics.to_dict(),
            "previous_difficulty": self.previous_difficulty.value,
            "recent_accuracy": self.recent_accuracy,
            "quality": self.quality,
            "pattern": self.pattern.to_dict(),
            "response_id": self.response_id
        }


@dataclass
class LearningInsights:
    """Summary of a learner's standing in a unit."""
    status: str
    message: Optional[str] = None
    mastery_level: int = 0
    current_difficulty: Optional[DifficultyLevel] = None
    accuracy: int = 0
    total_attempts: int = 0
    average_time_per_question: int = 0
    next_review_date: Optional[datetime.datetime] = None
    weak_topics: List[str] = field(default_factory=list)
    strong_topics: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    @classmethod
    def new_learner(cls) -> 'LearningInsights':
        return cls(status="new", message=NEW_LEARNER_MESSAGE)

    @property
    def is_new(self) -> bool:
        return self.status == "new"

    def to_dict(self) -> Dict[str, Any]:
        if self.is_new:
            return {"status": self.status, "message": self.message}
        return {
            "status": self.status,
            "mastery_level": self.mastery_level,
            "current_difficulty": self.current_difficulty.value if self.current_difficulty else None,
            "accuracy": self.accuracy,
            "total_attempts": self.total_attempts,
            "average_time_per_question": self.average_time_per_question,
            "next_review_date": self.next_review_date.isoformat() if self.next_review_date else None,
            "weak_topics": list(self.weak_topics),
            "strong_topics": list(self.strong_topics),
            "recommendations": list(self.recommendations)
        }


class AdaptiveLearningEngine:
    """
    Per-(user, unit, topic) adaptive learning state machine.

    The algorithmic components are stateless and injected; the only mutable
    state lives in the progress store and the response log. The progress
    fields ``mastery_level``, ``struggling_topics`` and ``common_mistakes``
    are a cache over the log and can be rebuilt with
    ``refresh_derived_fields``.
    """

    def __init__(
        self,
        store: ProgressStore,
        log: ResponseLog,
        config: Optional[AdaptiveConfig] = None,
        mastery_estimator: Optional[MasteryEstimator] = None,
        difficulty_advisor: Optional[DifficultyAdvisor] = None,
        scheduler: Optional[SpacedRepetitionScheduler] = None,
        pattern_analyzer: Optional[PerformancePatternAnalyzer] = None,
        clock: Optional[Clock] = None
    ):
        """
        Initialize the engine.

        Args:
            store: Progress store
            log: Response log
            config: Engine parameters, the loaded ``adaptive`` section when omitted
            mastery_estimator: Overrides the estimator built from ``config``
            difficulty_advisor: Overrides the advisor built from ``config``
            scheduler: Overrides the scheduler built from ``config``
            pattern_analyzer: Overrides the analyzer built from ``config``
            clock: Source of the current time
        """
        self.config = config if config is not None else get_config().adaptive
        self.store = store
        self.log = log
        self.mastery_estimator = mastery_estimator or MasteryEstimator(
            alpha=self.config.mastery_alpha,
            accuracy_weight=self.config.accuracy_weight
        )
        self.difficulty_advisor = difficulty_advisor or DifficultyAdvisor(
            min_attempts=self.config.min_attempts_to_adjust,
            correct_streak_to_advance=self.config.correct_streak_to_advance,
            wrong_streak_to_decrease=self.config.wrong_streak_to_decrease,
            mastery_to_advance=self.config.mastery_threshold_medium,
            mastery_floor=self.config.mastery_threshold_low
        )
        self.scheduler = scheduler or SpacedRepetitionScheduler(
            min_ease_factor=self.config.min_ease_factor,
            max_ease_factor=self.config.max_ease_factor,
            max_interval_days=self.config.max_interval_days
        )
        self.pattern_analyzer = pattern_analyzer or PerformancePatternAnalyzer(
            min_samples=self.config.min_topic_samples,
            weak_threshold=self.config.weak_topic_threshold,
            strong_threshold=self.config.strong_topic_threshold
        )
        self.clock = clock or datetime.datetime.now

    @log_execution_time(logger)
    def submit_answer(self, submission: Union[AnswerSubmission, Mapping[str, Any]]) -> SubmissionResult:
        """
        Fold an evaluated answer into the learner's progress.

        Args:
            submission: The answer, as a model or a plain mapping

        Returns:
            The stored metrics and the intermediate signals behind them

        Raises:
            InvalidInputError: If the submission is malformed
            SubmissionFailedError: If the progress record could not be read or written
        """
        submission = self._validate(submission)
        key = submission.key
        context_logger = with_context(logger, user_id=key.user_id, unit_id=key.unit_id,
                           topic_id=key.topic_id, question_id=submission.question_id)

        try:
            progress = self.store.find(key) or self.store.create(key)
            context_logger = context_logger.bind(progress_id=progress.id)
            now = self.clock()
            response = self.log.append(Response.create(
                user_id=submission.user_id,
                question_id=submission.question_id,
                unit_id=submission.unit_id,
                is_correct=submission.is_correct,
                difficulty_at_time=submission.difficulty,
                topic_id=submission.topic_id,
                topic_name=submission.topic_name,
                time_spent=submission.time_spent,
                created_at=now
            ))
            window = self.log.recent(
                key.user_id, key.unit_id,
                max(self.config.recent_accuracy_window, self.config.pattern_window)
            )

            changes, recent_accuracy, quality, pattern = self._compute_changes(
                progress, submission, window, now
            )
            updated = self.store.update(progress.id, changes, expected_attempts=progress.total_attempts)
        except (InternalError, NotFoundError) as e:
            context_logger.error(f"Submission failed: {e}")
            raise SubmissionFailedError(submission.user_id, submission.question_id, e) from e

        context_logger.debug(
            f"Progress updated: mastery={updated.mastery_level}, "
            f"difficulty={updated.current_difficulty.value}, "
            f"streak={updated.consecutive_correct or updated.consecutive_wrong}, "
            f"recent_accuracy={recent_accuracy}"
        )

        return SubmissionResult(
            metrics=updated.to_metrics(),
            previous_difficulty=progress.current_difficulty,
            recent_accuracy=recent_accuracy,
            quality=quality,
            pattern=pattern,
            response_id=response.id
        )

    def _validate(self, submission: Union[AnswerSubmission, Mapping[str, Any]]) -> AnswerSubmission:
        if isinstance(submission, AnswerSubmission):
            return submission
        try:
            return AnswerSubmission.model_validate(submission)
        except ValidationError as e:
            errors = {
                ".".join(str(part) for part in error["loc"]): error["msg"]
                for error in e.errors()
            }
            raise InvalidInputError("malformed answer submission", errors) from e

    def _compute_changes(self, progress: Progress, submission: AnswerSubmission,
                         window: List[Response], now: datetime.datetime):
        """Derive the full set of progress changes for one submission."""
        is_correct = submission.is_correct

        consecutive_correct = progress.consecutive_correct + 1 if is_correct else 0
        consecutive_wrong = 0 if is_correct else progress.consecutive_wrong + 1
        total_attempts = progress.total_attempts + 1
        correct_attempts = progress.correct_attempts + (1 if is_correct else 0)

        mastery_level = self.mastery_estimator.estimate(
            progress.mastery_level, correct_attempts, total_attempts, is_correct
        )

        recent = window[:self.config.recent_accuracy_window]
        recent_accuracy = percentage(sum(1 for r in recent if r.is_correct), len(recent))

        difficulty = self.difficulty_advisor.next_difficulty(
            progress.current_difficulty,
            consecutive_correct,
            consecutive_wrong,
            mastery_level,
            total_attempts,
            recent_accuracy
        )

        # Quality compares against the average before this answer is counted.
        quality = derive_quality(is_correct, submission.time_spent, progress.average_time_per_question)
        schedule = self.scheduler.schedule(progress.interval, progress.ease_factor, quality, now)

        total_time_spent = progress.total_time_spent + (submission.time_spent or 0)
        pattern = self.pattern_analyzer.analyze(window[:self.config.pattern_window])

        changes = {
            "current_difficulty": difficulty,
            "consecutive_correct": consecutive_correct,
            "consecutive_wrong": consecutive_wrong,
            "total_attempts": total_attempts,
            "correct_attempts": correct_attempts,
            "mastery_level": mastery_level,
            "ease_factor": schedule.ease_factor,
            "interval": schedule.next_interval,
            "next_review_date": schedule.next_review_date,
            "total_time_spent": total_time_spent,
            "average_time_per_question": safe_divide(total_time_spent, total_attempts),
            "last_practiced": now,
            "updated_at": now,
        }
        changes.update(snapshot_fields(pattern))
        return changes, recent_accuracy, quality, pattern

    def get_progress(self, user_id: str, unit_id: str, topic_id: Optional[str] = None) -> Optional[ProgressMetrics]:
        """Metrics of a progress record, or None when the learner has not practiced it."""
        progress = self.store.find(ProgressKey(user_id, unit_id, topic_id))
        return progress.to_metrics() if progress else None

    def get_recommended_difficulty(
        self,
        user_id: str,
        unit_id: str,
        topic_id: Optional[str] = None,
        as_of: Optional[datetime.datetime] = None
    ) -> DifficultyLevel:
        """
        Difficulty to serve next for a key.

        New keys start at EASY. A key that is due for review is served one
        level below its stored difficulty (never below EASY) so the learner
        eases back in; the stored record is not changed.
        """
        progress = self.store.find(ProgressKey(user_id, unit_id, topic_id))
        if progress is None:
            return DifficultyLevel.EASY

        if progress.is_due(as_of or self.clock()):
            logger.info(f"Review due for user {user_id} in unit {unit_id}, easing difficulty")
            return progress.current_difficulty.step_down()

        return progress.current_difficulty

    def analyze_performance_patterns(self, user_id: str, unit_id: str) -> PerformancePattern:
        """Pattern summary over the learner's most recent responses in a unit."""
        responses = self.log.recent(user_id, unit_id, self.config.pattern_window)
        return self.pattern_analyzer.analyze(responses)

    def get_learning_insights(self, user_id: str, unit_id: str) -> LearningInsights:
        """
        Summarise a learner's standing in a unit.

        Figures come from the unit-level record; topics come from the
        pattern window over the whole unit.
        """
        progress = self.store.find(ProgressKey(user_id, unit_id))
        if progress is None:
            return LearningInsights.new_learner()

        pattern = self.analyze_performance_patterns(user_id, unit_id)
        recommendations = generate_recommendations(
            progress,
            pattern,
            slow_answer_seconds=self.config.slow_answer_seconds,
            wrong_streak_for_break=self.config.wrong_streak_to_decrease
        )

        return LearningInsights(
            status="active",
            mastery_level=progress.mastery_level,
            current_difficulty=progress.current_difficulty,
            accuracy=progress.accuracy,
            total_attempts=progress.total_attempts,
            average_time_per_question=round_half_up(progress.average_time_per_question or 0),
            next_review_date=progress.next_review_date,
            weak_topics=pattern.weak_topics,
            strong_topics=pattern.strong_topics,
            recommendations=recommendations
        )

    def get_units_needing_review(self, user_id: str, as_of: Optional[datetime.datetime] = None) -> List[str]:
        """IDs of units with at least one record due for review, without duplicates."""
        due = self.store.due_for_review(user_id, as_of or self.clock())
        return list(dict.fromkeys(progress.unit_id for progress in due))

    def refresh_derived_fields(self, user_id: str, unit_id: str, topic_id: Optional[str] = None) -> Progress:
        """
        Rebuild the cached topic snapshot of a record from the response log.

        Counters, mastery and scheduling are left as they are.

        Raises:
            NotFoundError: If there is no record for the key
        """
        key = ProgressKey(user_id, unit_id, topic_id)
        progress = self.store.find(key)
        if progress is None:
            raise NotFoundError("Progress", f"{user_id}/{unit_id}/{key.topic_key or '-'}")

        pattern = self.analyze_performance_patterns(user_id, unit_id)
        logger.info(f"Refreshing derived fields of progress {progress.id}")
        return self.store.update(progress.id, snapshot_fields(pattern), expected_attempts=progress.total_attempts)


def build_engine(
    config: Optional[AdaptiveConfig] = None,
    store: Optional[ProgressStore] = None,
    log: Optional[ResponseLog] = None,
    clock: Optional[Clock] = None
) -> AdaptiveLearningEngine:
    """
    Create an engine from configuration.

    Missing collaborators fall back to the in-memory store and log.

    Args:
        config: Engine parameters, the loaded ``adaptive`` section when omitted
        store: Progress store
        log: Response log
        clock: Source of the current time

    Returns:
        Configured engine
    """
    if config is None:
        config = get_config().adaptive
    return AdaptiveLearningEngine(
        store=store if store is not None else MemoryProgressStore(config.default_ease_factor),
        log=log if log is not None else MemoryResponseLog(),
        config=config,
        clock=clock
    )
