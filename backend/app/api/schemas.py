"""
ResiliNet Triage - API Schemas

Pydantic models for request/response validation.
These define the contract between the dashboard and the backend.

Confidence is a float in [0, 1] on every response. Dashboards that show
percentages multiply by 100 on their side.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ===========================================
# Analysis Schemas
# ===========================================

class AnalyzeRequest(BaseModel):
    """Incident description submitted for triage."""

    description: Optional[str] = Field(
        default=None,
        description="Free-text incident description (at least 5 characters after trimming)",
    )


class AnalysisResponse(BaseModel):
    """Normalized analysis with its confidence score."""

    urgency: str = Field(description="Critical | High | Medium | Low (as emitted by the model)")
    category: str = Field(description="Incident category")
    summary: str = Field(description="Short summary, ideally five words or fewer")
    resources: List[str] = Field(default_factory=list, description="Resources needed")
    confidence: float = Field(ge=0.0, le=1.0, description="Confidence on a 0-1 scale")


class ErrorResponse(BaseModel):
    """Input validation error body."""

    error: str


# ===========================================
# Analytics Schemas
# ===========================================

class AnalysisEventSchema(BaseModel):
    """
    A single analysis event.

    Privacy: text_snippet is only populated if STORE_ANALYTICS_TEXT_SNIPPETS=True.
    """
    model_config = ConfigDict(from_attributes=True)

    timestamp: datetime
    urgency: str
    category: str
    confidence: float = Field(ge=0.0, le=1.0)
    resource_count: int = Field(ge=0)
    used_fallback: bool = False
    processing_time_ms: Optional[float] = None
    text_snippet: Optional[str] = Field(
        default=None,
        description="Truncated description (only if privacy allows)"
    )


class AnalyticsSummarySchema(BaseModel):
    """
    Aggregated analytics across analysis events.

    Mirrors the dashboard's live-stats card: counts per urgency and the
    average AI confidence.
    """
    model_config = ConfigDict(from_attributes=True)

    # Totals
    total_events: int
    events_last_hour: int
    events_last_24h: int

    # Distributions
    urgency_counts: Dict[str, int]
    urgency_percentages: Dict[str, float]
    category_counts: Dict[str, int]

    # Averages
    avg_confidence: float
    avg_confidence_percent: int
    avg_processing_time_ms: float

    # Collaborator health
    fallback_count: int

    example_snippets: List[str] = Field(default_factory=list)


class AnalyticsDisabledResponse(BaseModel):
    """Response when analytics is disabled."""
    message: str = "Analytics is disabled in this deployment"
    enabled: bool = False


# ===========================================
# Health Schemas
# ===========================================

class HealthResponse(BaseModel):
    """System health check response."""

    status: str = Field(description="healthy | degraded | unhealthy")
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    version: str = "0.1.0"
    environment: str = "development"
    checks: Dict[str, Dict[str, str]] = Field(default_factory=dict)
