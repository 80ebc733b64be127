"""
Performance Pattern Analysis

This module scans a window of recent responses for a learner in a unit and
summarises it: which topics are weak or strong, which difficulties the
mistakes were made at, and how long answers take. It also turns a summary
into plain-language recommendations.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from practiceiq.common.logger import app_logger
from practiceiq.common.utils import round_half_up, safe_divide
from practiceiq.domain.progress.model import Progress, Response

# Module logger
logger = app_logger.getChild("performance.patterns")


@dataclass
class TopicStats:
    """Correct and total answers for one topic within the window."""
    correct: int = 0
    total: int = 0

    @property
    def accuracy(self) -> float:
        return safe_divide(self.correct * 100, self.total)


@dataclass
class TimePatterns:
    """Answer-time statistics in whole seconds, all 0 when no timings exist."""
    average_time_per_question: int = 0
    fastest: int = 0
    slowest: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "average_time_per_question": self.average_time_per_question,
            "fastest": self.fastest,
            "slowest": self.slowest
        }


@dataclass
class PerformancePattern:
    """
    Summary of a response window.

    Attributes:
        weak_topics: Topics answered below the weak threshold, in first-seen order
        strong_topics: Topics answered at or above the strong threshold
        common_mistakes: Wrong answers counted by the question's difficulty
        time_patterns: Mean, fastest and slowest answer times
        topic_stats: Raw per-topic counts the classification was made from
        sample_size: Number of responses analyzed
    """
    weak_topics: List[str] = field(default_factory=list)
    strong_topics: List[str] = field(default_factory=list)
    common_mistakes: Dict[str, int] = field(default_factory=dict)
    time_patterns: TimePatterns = field(default_factory=TimePatterns)
    topic_stats: Dict[str, TopicStats] = field(default_factory=dict)
    sample_size: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "weak_topics": list(self.weak_topics),
            "strong_topics": list(self.strong_topics),
            "common_mistakes": dict(self.common_mistakes),
            "time_patterns": self.time_patterns.to_dict(),
            "sample_size": self.sample_size
        }


class PerformancePatternAnalyzer:
    """
    Classifies topics and tabulates mistakes over a response window.

    A topic needs at least ``min_samples`` responses in the window before it
    can be labelled. Accuracy below ``weak_threshold`` makes it weak and
    accuracy at or above ``strong_threshold`` makes it strong; anything in
    between stays unlabelled.
    """

    def __init__(
        self,
        min_samples: int = 3,
        weak_threshold: float = 60,
        strong_threshold: float = 85
    ):
        self.min_samples = min_samples
        self.weak_threshold = weak_threshold
        self.strong_threshold = strong_threshold

    def analyze(self, responses: Sequence[Response]) -> PerformancePattern:
        """
        Analyze a window of responses.

        Args:
            responses: Responses to analyze, newest first; the caller bounds the window

        Returns:
            Pattern summary; empty with zeroed timings when there are no responses
        """
        topic_stats: Dict[str, TopicStats] = {}
        mistakes: Dict[str, int] = {}
        times: List[float] = []

        for response in responses:
            stats = topic_stats.setdefault(response.topic_label, TopicStats())
            stats.total += 1
            if response.is_correct:
                stats.correct += 1
            else:
                difficulty = response.difficulty_at_time.value
                mistakes[difficulty] = mistakes.get(difficulty, 0) + 1

            if response.time_spent is not None:
                times.append(response.time_spent)

        weak_topics = []
        strong_topics = []
        for topic, stats in topic_stats.items():
            if stats.total < self.min_samples:
                continue
            if stats.accuracy < self.weak_threshold:
                weak_topics.append(topic)
            elif stats.accuracy >= self.strong_threshold:
                strong_topics.append(topic)

        if times:
            time_patterns = TimePatterns(
                average_time_per_question=round_half_up(sum(times) / len(times)),
                fastest=round_half_up(min(times)),
                slowest=round_half_up(max(times))
            )
        else:
            time_patterns = TimePatterns()

        logger.debug(
            f"Analyzed {len(responses)} responses: weak={weak_topics}, "
            f"strong={strong_topics}, mistakes={mistakes}"
        )

        return PerformancePattern(
            weak_topics=weak_topics,
            strong_topics=strong_topics,
            common_mistakes=mistakes,
            time_patterns=time_patterns,
            topic_stats=topic_stats,
            sample_size=len(responses)
        )


def generate_recommendations(
    progress: Progress,
    pattern: PerformancePattern,
    slow_answer_seconds: float = 180,
    wrong_streak_for_break: int = 2
) -> List[str]:
    """
    Build study recommendations from a progress record and a pattern summary.

    Rules are independent of the difficulty advisor and may each add one
    message; at most one mastery message is produced.

    Args:
        progress: The learner's progress record
        pattern: Pattern summary of the recent window
        slow_answer_seconds: Average answer time above which timed practice is suggested
        wrong_streak_for_break: Wrong streak at which a break is suggested

    Returns:
        Ordered list of recommendation messages
    """
    recommendations = []

    mastery = progress.mastery_level
    if mastery < 50:
        recommendations.append("Focus on fundamentals - review basic concepts")
    elif mastery < 75:
        recommendations.append("Good progress! Practice more to solidify understanding")
    elif mastery >= 85:
        recommendations.append("Excellent mastery! Try more challenging problems")

    if pattern.weak_topics:
        recommendations.append(f"Review these topics: {', '.join(pattern.weak_topics)}")

    if pattern.time_patterns.average_time_per_question > slow_answer_seconds:
        recommendations.append("Try to improve response time with timed practice")

    if progress.consecutive_wrong >= wrong_streak_for_break:
        recommendations.append("Take a short break and review explanations carefully")

    return recommendations


def snapshot_fields(pattern: PerformancePattern) -> Dict[str, Any]:
    """Progress fields cached from a pattern; an empty list or mapping is stored as None."""
    return {
        "struggling_topics": list(pattern.weak_topics) or None,
        "common_mistakes": dict(pattern.common_mistakes) or None
    }
