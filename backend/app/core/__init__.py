"""
ResiliNet Triage - Core Package

Contains the central orchestration logic and domain types:
- pipeline: Analysis orchestrator
- severity: Urgency override rules
- confidence: Confidence scorer and randomness sources
- types: Internal domain types
- history_store: Analytics event storage
"""

from .types import (
    AnalysisResult,
    AnalysisEvent,
    AnalysisAnalytics,
    Urgency,
    Category,
    confidence_to_percent,
    coerce_confidence,
)
from .severity import OVERRIDE_RULES, normalize_severity, applied_overrides
from .confidence import (
    RandomSource,
    SystemRandomSource,
    FixedRandomSource,
    calculate_confidence,
)
from .pipeline import AnalysisPipeline, create_pipeline, validate_description
from .history_store import (
    AnalysisHistoryStore,
    InMemoryAnalysisHistoryStore,
    create_history_store,
)

__all__ = [
    # Pipeline
    "AnalysisPipeline",
    "create_pipeline",
    "validate_description",
    # Types
    "AnalysisResult",
    "Urgency",
    "Category",
    "confidence_to_percent",
    "coerce_confidence",
    # Normalization & scoring
    "OVERRIDE_RULES",
    "normalize_severity",
    "applied_overrides",
    "RandomSource",
    "SystemRandomSource",
    "FixedRandomSource",
    "calculate_confidence",
    # Analytics
    "AnalysisEvent",
    "AnalysisAnalytics",
    "AnalysisHistoryStore",
    "InMemoryAnalysisHistoryStore",
    "create_history_store",
]
