"""
ResiliNet Triage - Analysis History Store

Stores analysis events for the live-stats view and operator visibility.
This is service observability, not incident persistence: the dashboard
writes incidents to its own document store.

Privacy Notes:
    - Description snippets are only stored if STORE_ANALYTICS_TEXT_SNIPPETS=True
    - In-memory store is bounded to prevent memory issues
    - All data is ephemeral (lost on restart)
"""

from __future__ import annotations

import logging
from abc import abstractmethod
from collections import defaultdict
from datetime import datetime, timedelta
from threading import Lock
from typing import Dict, List, Protocol, runtime_checkable

from app.config import Settings
from app.core.types import AnalysisAnalytics, AnalysisEvent

logger = logging.getLogger(__name__)


# =============================================================================
# Protocol
# =============================================================================

@runtime_checkable
class AnalysisHistoryStore(Protocol):
    """
    Protocol for analysis history storage.

    Implementations must be thread-safe and handle bounded storage.
    """

    @abstractmethod
    async def record_event(self, event: AnalysisEvent) -> None:
        """Record an analysis event."""
        ...

    @abstractmethod
    async def get_recent_events(self, limit: int = 100) -> List[AnalysisEvent]:
        """Get the most recent events, newest first."""
        ...

    @abstractmethod
    async def get_aggregate_stats(self) -> AnalysisAnalytics:
        """Get aggregated analytics across all stored events."""
        ...

    @abstractmethod
    async def clear(self) -> None:
        """Clear all stored events."""
        ...


# =============================================================================
# In-Memory Implementation
# =============================================================================

class InMemoryAnalysisHistoryStore:
    """
    In-memory implementation of AnalysisHistoryStore.

    Keeps at most `max_events` events; the oldest are dropped first.
    """

    def __init__(
        self,
        max_events: int = 10000,
        store_text_snippets: bool = False,
        max_snippets: int = 5,
    ):
        self._max_events = max_events
        self._store_text = store_text_snippets
        self._max_snippets = max_snippets

        self._lock = Lock()
        self._events: List[AnalysisEvent] = []

        logger.info(
            "InMemoryAnalysisHistoryStore initialized: max_events=%d, store_text=%s",
            max_events, store_text_snippets
        )

    async def record_event(self, event: AnalysisEvent) -> None:
        """Record an analysis event."""
        if not self._store_text:
            event.text_snippet = None

        with self._lock:
            self._events.append(event)

            if len(self._events) > self._max_events:
                excess = len(self._events) - self._max_events
                self._events = self._events[excess:]
                logger.debug("Trimmed %d old events from history store", excess)

    async def get_recent_events(self, limit: int = 100) -> List[AnalysisEvent]:
        with self._lock:
            return list(reversed(self._events[-limit:]))

    async def get_aggregate_stats(self) -> AnalysisAnalytics:
        with self._lock:
            if not self._events:
                return AnalysisAnalytics()

            now = datetime.utcnow()
            one_hour_ago = now - timedelta(hours=1)
            one_day_ago = now - timedelta(hours=24)

            urgency_counts: Dict[str, int] = defaultdict(int)
            category_counts: Dict[str, int] = defaultdict(int)

            total_confidence = 0.0
            total_processing_time = 0.0
            processing_time_count = 0
            fallback_count = 0
            events_last_hour = 0
            events_last_24h = 0
            snippets: List[str] = []

            for event in self._events:
                urgency_counts[event.urgency] += 1
                category_counts[event.category] += 1
                total_confidence += event.confidence

                if event.used_fallback:
                    fallback_count += 1
                if event.processing_time_ms:
                    total_processing_time += event.processing_time_ms
                    processing_time_count += 1

                if event.timestamp >= one_hour_ago:
                    events_last_hour += 1
                if event.timestamp >= one_day_ago:
                    events_last_24h += 1

                if event.text_snippet and len(snippets) < self._max_snippets:
                    snippets.append(event.text_snippet)

            total_events = len(self._events)

            return AnalysisAnalytics(
                total_events=total_events,
                events_last_hour=events_last_hour,
                events_last_24h=events_last_24h,
                urgency_counts=dict(urgency_counts),
                urgency_percentages={
                    k: (v / total_events) * 100 for k, v in urgency_counts.items()
                },
                category_counts=dict(category_counts),
                avg_confidence=total_confidence / total_events,
                fallback_count=fallback_count,
                avg_processing_time_ms=(
                    total_processing_time / processing_time_count
                    if processing_time_count > 0 else 0
                ),
                example_snippets=snippets,
            )

    async def clear(self) -> None:
        with self._lock:
            self._events.clear()
            logger.info("Analysis history store cleared")


# =============================================================================
# No-Op Implementation (when analytics disabled)
# =============================================================================

class NoOpAnalysisHistoryStore:
    """
    No-op implementation when analytics is disabled.
    """

    async def record_event(self, event: AnalysisEvent) -> None:
        pass

    async def get_recent_events(self, limit: int = 100) -> List[AnalysisEvent]:
        return []

    async def get_aggregate_stats(self) -> AnalysisAnalytics:
        return AnalysisAnalytics()

    async def clear(self) -> None:
        pass


# =============================================================================
# Factory Function
# =============================================================================

def create_history_store(settings: Settings) -> AnalysisHistoryStore:
    """
    Create an analysis history store based on settings.

    Args:
        settings: Application settings

    Returns:
        Configured AnalysisHistoryStore instance
    """
    if not settings.enable_analytics:
        logger.info("Analytics disabled, using no-op history store")
        return NoOpAnalysisHistoryStore()

    return InMemoryAnalysisHistoryStore(
        max_events=settings.analytics_max_events,
        store_text_snippets=settings.store_analytics_text_snippets,
    )
