"""
Adaptive Learning Components

This package provides the stateless components of the adaptive learning
engine (mastery estimation, difficulty advice, spaced repetition scheduling
and pattern analysis) and the engine that runs them against a progress store
and a response log.
"""

# Mastery estimation
from practiceiq.common.performance.mastery import MasteryEstimator

# Adaptive difficulty components
from practiceiq.common.performance.difficulty import (
    AdjustmentReason,
    DifficultyAdjustment,
    DifficultyAdvisor
)

# Spaced repetition components
from practiceiq.common.performance.spaced_repetition import (
    ReviewSchedule,
    SpacedRepetitionScheduler,
    derive_quality
)

# Pattern analysis components
from practiceiq.common.performance.patterns import (
    PerformancePattern,
    PerformancePatternAnalyzer,
    TimePatterns,
    TopicStats,
    generate_recommendations
)

# Engine
from practiceiq.common.performance.engine import (
    AdaptiveLearningEngine,
    LearningInsights,
    SubmissionResult,
    build_engine
)

# Define public API
__all__ = [
    # Mastery
    'MasteryEstimator',

    # Difficulty
    'AdjustmentReason',
    'DifficultyAdjustment',
    'DifficultyAdvisor',

    # Spaced repetition
    'ReviewSchedule',
    'SpacedRepetitionScheduler',
    'derive_quality',

    # Patterns
    'PerformancePattern',
    'PerformancePatternAnalyzer',
    'TimePatterns',
    'TopicStats',
    'generate_recommendations',

    # Engine
    'AdaptiveLearningEngine',
    'LearningInsights',
    'SubmissionResult',
    'build_engine',
]
