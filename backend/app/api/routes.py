"""
ResiliNet Triage - REST API Routes

Endpoints for incident analysis and service analytics.

Architecture:
    All analysis flows through the AnalysisPipeline, accessed via
    dependency injection from app.state. The route only maps pipeline
    outcomes onto HTTP:
    - InvalidDescriptionError -> 400 {"error": "Invalid description"}
    - success                 -> 200 normalized result + confidence
    - anything else           -> 500 fixed "Service unavailable" record
"""

from typing import List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse

from app.config import Settings
from app.core.exceptions import InvalidDescriptionError
from app.core.history_store import AnalysisHistoryStore
from app.core.logging import get_logger
from app.core.pipeline import AnalysisPipeline
from app.core.types import AnalysisResult

from .schemas import (
    AnalysisEventSchema,
    AnalysisResponse,
    AnalyticsDisabledResponse,
    AnalyticsSummarySchema,
    AnalyzeRequest,
    ErrorResponse,
)

logger = get_logger(__name__)

router = APIRouter(tags=["api"])

INVALID_DESCRIPTION_BODY = {"error": "Invalid description"}


# =============================================================================
# Dependencies
# =============================================================================

def get_pipeline(request: Request) -> AnalysisPipeline:
    """Dependency to get the analysis pipeline from app state."""
    return request.app.state.pipeline


def get_settings(request: Request) -> Settings:
    """Dependency to get settings from app state."""
    return request.app.state.settings


def get_history_store(request: Request) -> Optional[AnalysisHistoryStore]:
    """Dependency to get the history store from the pipeline."""
    return request.app.state.pipeline.history_store


# =============================================================================
# Analysis
# =============================================================================

@router.post(
    "/analyze",
    response_model=AnalysisResponse,
    responses={
        400: {"model": ErrorResponse},
        500: {"model": AnalysisResponse},
    },
)
async def analyze_incident(
    request: AnalyzeRequest,
    pipeline: AnalysisPipeline = Depends(get_pipeline),
):
    """
    Classify an incident description.

    The description is sent to the generative model, the returned urgency
    is adjusted by the severity override rules, and a confidence score is
    attached. A model outage does not fail the request: the fixed
    "Manual review required" record is scored and returned instead.
    """
    try:
        result = await pipeline.analyze(request.description)
    except InvalidDescriptionError:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=INVALID_DESCRIPTION_BODY,
        )
    except Exception as e:
        logger.exception("Backend error", data={"error_type": type(e).__name__})
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=AnalysisResult.service_unavailable().to_dict(),
        )

    logger.info("Sending response", data={"urgency": result.urgency})
    return AnalysisResponse(**result.to_dict())


# =============================================================================
# Analytics Endpoints
# =============================================================================

@router.get(
    "/analytics/summary",
    response_model=Union[AnalyticsSummarySchema, AnalyticsDisabledResponse],
    tags=["analytics"],
)
async def get_analytics_summary(
    settings: Settings = Depends(get_settings),
    history_store: Optional[AnalysisHistoryStore] = Depends(get_history_store),
):
    """
    Aggregated analytics across recorded analyses.

    Returns counts per urgency and category, the average confidence, and
    how many requests fell back to manual review.
    """
    if not settings.enable_analytics:
        return AnalyticsDisabledResponse()

    if history_store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Analytics store not initialized",
        )

    analytics = await history_store.get_aggregate_stats()

    return AnalyticsSummarySchema(
        total_events=analytics.total_events,
        events_last_hour=analytics.events_last_hour,
        events_last_24h=analytics.events_last_24h,
        urgency_counts=analytics.urgency_counts,
        urgency_percentages=analytics.urgency_percentages,
        category_counts=analytics.category_counts,
        avg_confidence=analytics.avg_confidence,
        avg_confidence_percent=analytics.avg_confidence_percent,
        avg_processing_time_ms=analytics.avg_processing_time_ms,
        fallback_count=analytics.fallback_count,
        example_snippets=(
            analytics.example_snippets if settings.store_analytics_text_snippets else []
        ),
    )


@router.get(
    "/analytics/recent",
    response_model=List[AnalysisEventSchema],
    tags=["analytics"],
)
async def get_recent_events(
    limit: int = Query(default=100, ge=1, le=1000, description="Maximum events to return"),
    settings: Settings = Depends(get_settings),
    history_store: Optional[AnalysisHistoryStore] = Depends(get_history_store),
):
    """Most recent analysis events, newest first."""
    if not settings.enable_analytics:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Analytics is disabled in this deployment",
        )

    if history_store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Analytics store not initialized",
        )

    events = await history_store.get_recent_events(limit=limit)

    return [
        AnalysisEventSchema(
            timestamp=event.timestamp,
            urgency=event.urgency,
            category=event.category,
            confidence=event.confidence,
            resource_count=event.resource_count,
            used_fallback=event.used_fallback,
            processing_time_ms=event.processing_time_ms,
            text_snippet=event.text_snippet if settings.store_analytics_text_snippets else None,
        )
        for event in events
    ]


@router.delete(
    "/analytics/clear",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["analytics"],
)
async def clear_analytics(
    settings: Settings = Depends(get_settings),
    history_store: Optional[AnalysisHistoryStore] = Depends(get_history_store),
):
    """
    Clear all analytics data.

    Useful for resetting between test runs.
    """
    if not settings.enable_analytics:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Analytics is disabled in this deployment",
        )

    if history_store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Analytics store not initialized",
        )

    await history_store.clear()
    logger.info("Analytics data cleared")
