"""
PracticeIQ Adaptive Learning Engine

Tracks per-learner mastery of practice units and decides which difficulty
of question a learner should see next and when a unit should resurface:

1. Mastery estimation blending lifetime accuracy with recent answers
2. Rule-based difficulty progression
3. SM-2 spaced repetition scheduling
4. Weak and strong topic detection over a recent response window
"""

__version__ = "0.1.0"
