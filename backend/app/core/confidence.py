"""
ResiliNet Triage - Confidence Scorer

Heuristic confidence for a normalized analysis, plus a small bounded random
term so the displayed number is not suspiciously round or repeatable.

Scoring (each line is an independent check, bonuses and penalties for the
same signal both apply):

    base                                0.60
    urgency == Critical                +0.15
    category != Other                  +0.10
    resources non-empty                +0.10
    summary of <= 5 words              +0.05
    category == Other                  -0.20
    resources empty or absent          -0.10
    random term                 [-0.05, +0.05]

The total is clamped to [0, 1].
"""

from __future__ import annotations

import random
from abc import abstractmethod
from typing import Optional, Protocol, runtime_checkable

from app.core.types import AnalysisResult, Category, Urgency


BASE_CONFIDENCE = 0.6
CRITICAL_BONUS = 0.15
CATEGORIZED_BONUS = 0.1
RESOURCES_BONUS = 0.1
CONCISE_SUMMARY_BONUS = 0.05
OTHER_CATEGORY_PENALTY = 0.2
NO_RESOURCES_PENALTY = 0.1
RANDOM_VARIANCE = 0.05
MAX_SUMMARY_WORDS = 5


# =============================================================================
# Randomness Source
# =============================================================================

@runtime_checkable
class RandomSource(Protocol):
    """Source of the scorer's random term."""

    @abstractmethod
    def uniform(self, low: float, high: float) -> float:
        """Return a float in [low, high]."""
        ...


class SystemRandomSource:
    """Uniform randomness backed by `random.Random`."""

    def __init__(self, seed: Optional[int] = None):
        self._random = random.Random(seed)

    def uniform(self, low: float, high: float) -> float:
        return self._random.uniform(low, high)


class FixedRandomSource:
    """Always returns the same value, clamped into the requested range."""

    def __init__(self, value: float = 0.0):
        self.value = value

    def uniform(self, low: float, high: float) -> float:
        return max(low, min(self.value, high))


# =============================================================================
# Scoring
# =============================================================================

def _word_count(summary: str) -> int:
    return len(summary.split())


def calculate_confidence(
    result: AnalysisResult,
    random_source: Optional[RandomSource] = None,
) -> float:
    """
    Score a normalized analysis.

    Args:
        result: Normalized AnalysisResult
        random_source: Source of the random term (default: fresh SystemRandomSource)

    Returns:
        Confidence in [0, 1]
    """
    rng = random_source or SystemRandomSource()
    confidence = BASE_CONFIDENCE

    if result.urgency == Urgency.CRITICAL.value:
        confidence += CRITICAL_BONUS
    if result.category != Category.OTHER.value:
        confidence += CATEGORIZED_BONUS
    if result.resources:
        confidence += RESOURCES_BONUS
    if result.summary and _word_count(result.summary) <= MAX_SUMMARY_WORDS:
        confidence += CONCISE_SUMMARY_BONUS

    if result.category == Category.OTHER.value:
        confidence -= OTHER_CATEGORY_PENALTY
    if not result.resources:
        confidence -= NO_RESOURCES_PENALTY

    confidence += rng.uniform(-RANDOM_VARIANCE, RANDOM_VARIANCE)

    return max(0.0, min(confidence, 1.0))
