"""
ResiliNet Triage - Core Domain Types

Internal type definitions for the analysis pipeline. These are domain objects
used within the core and service layers, independent of API serialization.

Design Notes:
- AnalysisResult keeps urgency/category as the literal strings the model
  emitted. The override rules compare against exact literals, so coercing
  into enums here would hide vocabulary mismatches.
- Urgency/Category are str enums so `Urgency.CRITICAL == "Critical"` holds.
- Confidence is a 0-1 float everywhere inside the backend and at the API
  boundary. The dashboard tables render percentages; see
  confidence_to_percent() and coerce_confidence().
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


# =============================================================================
# Vocabularies
# =============================================================================

class Urgency(str, Enum):
    """Canonical urgency levels compared by the severity override rules."""
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class Category(str, Enum):
    """Canonical incident categories compared by the override rules."""
    FOOD_WATER = "Food/Water"
    INFRASTRUCTURE = "Infrastructure"
    RESCUE = "Rescue"
    MEDICAL = "Medical"
    FIRE = "Fire"
    OTHER = "Other"


# =============================================================================
# Analysis Result (Core Domain Object)
# =============================================================================

@dataclass(frozen=True)
class AnalysisResult:
    """
    Structured triage analysis of one incident description.

    Attributes:
        urgency: Urgency level as emitted by the classifier (may be adjusted
            by the severity normalizer)
        category: Incident category as emitted by the classifier
        summary: Short free-text summary, ideally five words or fewer
        resources: Ordered list of resources needed; may be empty
        confidence: None until scored, then a float in [0, 1]
    """
    urgency: str
    category: str
    summary: str
    resources: List[str] = field(default_factory=list)
    confidence: Optional[float] = None

    def __post_init__(self):
        """Validate constraints."""
        if self.confidence is not None and not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be 0-1, got {self.confidence}")

    def with_urgency(self, urgency: str) -> "AnalysisResult":
        return replace(self, urgency=urgency)

    def with_confidence(self, confidence: float) -> "AnalysisResult":
        return replace(self, confidence=confidence)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the response body shape."""
        data: Dict[str, Any] = {
            "urgency": self.urgency,
            "category": self.category,
            "summary": self.summary,
            "resources": list(self.resources),
        }
        if self.confidence is not None:
            data["confidence"] = self.confidence
        return data

    @classmethod
    def fallback(cls) -> "AnalysisResult":
        """Record used when the classifier call fails or cannot be parsed."""
        return cls(
            urgency=Urgency.MEDIUM.value,
            category=Category.OTHER.value,
            summary="Manual review required",
            resources=[],
        )

    @classmethod
    def service_unavailable(cls) -> "AnalysisResult":
        """Fixed body returned with HTTP 500 on unexpected pipeline failure."""
        return cls(
            urgency=Urgency.MEDIUM.value,
            category=Category.OTHER.value,
            summary="Service unavailable",
            resources=[],
            confidence=0.4,
        )


# =============================================================================
# Confidence Scale Helpers
# =============================================================================

def confidence_to_percent(confidence: float) -> int:
    """Convert a 0-1 confidence into the 0-100 integer shown on dashboards."""
    return int(round(max(0.0, min(confidence, 1.0)) * 100))


def coerce_confidence(value: float) -> float:
    """
    Accept a confidence from either scale and return it on the 0-1 scale.

    Values in [0, 1] are taken as fractions. Values in (1, 100] are taken as
    legacy integer percentages. Anything else raises ValueError.
    """
    value = float(value)
    if 0.0 <= value <= 1.0:
        return value
    if 1.0 < value <= 100.0:
        return value / 100.0
    raise ValueError(f"confidence out of range for both scales: {value}")


# =============================================================================
# Analytics Types
# =============================================================================

@dataclass
class AnalysisEvent:
    """
    A single analysis event for analytics.

    IMPORTANT: The description snippet is only stored if
    STORE_ANALYTICS_TEXT_SNIPPETS=True.
    """
    timestamp: datetime
    urgency: str
    category: str
    confidence: float
    resource_count: int
    used_fallback: bool = False
    processing_time_ms: Optional[float] = None
    text_snippet: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to serializable dictionary."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "urgency": self.urgency,
            "category": self.category,
            "confidence": self.confidence,
            "resource_count": self.resource_count,
            "used_fallback": self.used_fallback,
            "processing_time_ms": self.processing_time_ms,
            "text_snippet": self.text_snippet,
        }

    @classmethod
    def from_analysis(
        cls,
        result: AnalysisResult,
        description: Optional[str] = None,
        used_fallback: bool = False,
        processing_time_ms: Optional[float] = None,
        store_text: bool = False,
    ) -> "AnalysisEvent":
        """Create an AnalysisEvent from a scored AnalysisResult."""
        text_snippet = None
        if store_text and description:
            text_snippet = description[:100]
            if len(description) > 100:
                text_snippet += "..."

        return cls(
            timestamp=datetime.utcnow(),
            urgency=result.urgency,
            category=result.category,
            confidence=result.confidence if result.confidence is not None else 0.0,
            resource_count=len(result.resources),
            used_fallback=used_fallback,
            processing_time_ms=processing_time_ms,
            text_snippet=text_snippet,
        )


@dataclass
class AnalysisAnalytics:
    """Aggregated analytics across stored analysis events."""
    total_events: int = 0
    events_last_hour: int = 0
    events_last_24h: int = 0
    urgency_counts: Dict[str, int] = field(default_factory=dict)
    urgency_percentages: Dict[str, float] = field(default_factory=dict)
    category_counts: Dict[str, int] = field(default_factory=dict)
    avg_confidence: float = 0.0
    fallback_count: int = 0
    avg_processing_time_ms: float = 0.0
    example_snippets: List[str] = field(default_factory=list)

    @property
    def avg_confidence_percent(self) -> int:
        return confidence_to_percent(self.avg_confidence)
