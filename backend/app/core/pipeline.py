"""
ResiliNet Triage - Analysis Pipeline Orchestrator

Central orchestration layer for incident analysis. The REST endpoint calls
into this and nothing else.

Architecture:
    1. VALIDATION STAGE: Reject descriptions shorter than the configured minimum
    2. CLASSIFICATION STAGE: ClassifierGateway asks the generative model
       (falls back to a fixed record on collaborator failure)
    3. NORMALIZATION STAGE: Severity override rules
    4. SCORING STAGE: Heuristic confidence with a bounded random term
    5. OUTPUT STAGE: Record analytics event, run hooks, return AnalysisResult

Design Principles:
    - Stateless: Each request's data is local to that request
    - Async-first: The model call is the only suspension point
    - Observable: Structured logging and metrics per request
    - Privacy-aware: Descriptions are not logged when anonymize_logs is on

Usage:
    from app.core.pipeline import AnalysisPipeline
    from app.services.classifier import ClassifierGateway
    from app.services.llm_client import DummyGenerativeClient

    pipeline = AnalysisPipeline(
        classifier=ClassifierGateway(DummyGenerativeClient()),
        settings=get_settings(),
    )

    result = await pipeline.analyze("Gas leak reported downtown")
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, List, Optional

from app.config import Settings
from app.core.confidence import RandomSource, SystemRandomSource, calculate_confidence
from app.core.exceptions import InvalidDescriptionError
from app.core.severity import applied_overrides, normalize_severity
from app.core.types import AnalysisEvent, AnalysisResult, Urgency
from app.services.classifier import ClassifierGateway

if TYPE_CHECKING:
    from app.core.history_store import AnalysisHistoryStore

logger = logging.getLogger(__name__)


# =============================================================================
# Pipeline Metrics (for observability)
# =============================================================================

@dataclass
class PipelineMetrics:
    """Metrics for a single pipeline execution."""
    request_id: str
    classify_ms: Optional[float] = None
    total_ms: Optional[float] = None
    used_fallback: bool = False
    overrides: List[str] = field(default_factory=list)
    success: bool = True
    error_stage: Optional[str] = None
    error_message: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "request_id": self.request_id,
            "classify_ms": round(self.classify_ms, 2) if self.classify_ms else None,
            "total_ms": round(self.total_ms, 2) if self.total_ms else None,
            "used_fallback": self.used_fallback,
            "overrides": list(self.overrides),
            "success": self.success,
            "error_stage": self.error_stage,
        }


PipelineHook = Callable[[str, AnalysisResult], Any]
"""Hook called with (description, scored result) after each analysis."""


# =============================================================================
# Validation
# =============================================================================

def validate_description(description: Any, min_length: int = 5) -> str:
    """
    Return the description if it is a string whose trimmed length is at
    least `min_length`.

    Raises:
        InvalidDescriptionError: Missing, not a string, or too short
    """
    if not isinstance(description, str) or len(description.strip()) < min_length:
        raise InvalidDescriptionError(
            "Invalid description",
            details={"min_length": min_length},
        )
    return description


# =============================================================================
# Analysis Pipeline
# =============================================================================

class AnalysisPipeline:
    """
    Orchestrates classification, normalization, and scoring.

    Attributes:
        classifier: Gateway to the generative model
        settings: Application configuration
        random_source: Randomness for the confidence scorer
        history_store: Optional analytics store
    """

    def __init__(
        self,
        classifier: ClassifierGateway,
        settings: Settings,
        random_source: Optional[RandomSource] = None,
        history_store: Optional["AnalysisHistoryStore"] = None,
    ):
        self._classifier = classifier
        self._settings = settings
        self._random = random_source or SystemRandomSource()
        self._history_store = history_store

        self._post_hooks: List[PipelineHook] = []
        self._metrics_callback: Optional[Callable[[PipelineMetrics], None]] = None

        logger.info(
            "AnalysisPipeline initialized: model=%s, analytics=%s",
            classifier.model_id,
            "enabled" if history_store else "disabled",
        )

    @property
    def classifier(self) -> ClassifierGateway:
        return self._classifier

    @property
    def history_store(self) -> Optional["AnalysisHistoryStore"]:
        return self._history_store

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    async def analyze(self, description: Any) -> AnalysisResult:
        """
        Run a description through the full pipeline.

        Returns:
            Normalized AnalysisResult with confidence set

        Raises:
            InvalidDescriptionError: Description missing or too short
            Exception: Any unexpected failure (logged, then re-raised)
        """
        description = validate_description(
            description, self._settings.min_description_length
        )

        request_id = self._generate_request_id()
        start_time = time.time()
        metrics = PipelineMetrics(request_id=request_id)

        self._log_input(request_id, description)

        try:
            outcome = await self._classifier.classify_with_outcome(description)
            metrics.classify_ms = (time.time() - start_time) * 1000
            metrics.used_fallback = outcome.used_fallback

            metrics.overrides = applied_overrides(outcome.result)
            normalized = normalize_severity(outcome.result)

            confidence = calculate_confidence(normalized, self._random)
            result = normalized.with_confidence(confidence)

            metrics.total_ms = (time.time() - start_time) * 1000

            await self._execute_hooks(description, result, metrics)
            self._log_output(request_id, result, metrics)

            return result

        except Exception as e:
            metrics.success = False
            metrics.error_stage = "analysis"
            metrics.error_message = str(e)
            metrics.total_ms = (time.time() - start_time) * 1000

            logger.error(
                "Pipeline error [%s]: %s",
                request_id,
                str(e),
                exc_info=True,
            )
            raise
        finally:
            self._emit_metrics(metrics)

    # -------------------------------------------------------------------------
    # Hooks and Observability
    # -------------------------------------------------------------------------

    def register_hook(self, hook: PipelineHook) -> None:
        """
        Register a post-processing hook.

        Hooks receive (description, result) after every successful analysis.
        Sync and async callables are both accepted. Hook failures are logged
        and never affect the response.
        """
        self._post_hooks.append(hook)
        logger.info("Registered pipeline hook: %s", getattr(hook, "__name__", str(hook)))

    def set_metrics_callback(self, callback: Callable[[PipelineMetrics], None]) -> None:
        """Called after every pipeline execution (success or failure)."""
        self._metrics_callback = callback

    async def _execute_hooks(
        self,
        description: str,
        result: AnalysisResult,
        metrics: PipelineMetrics,
    ) -> None:
        if self._history_store and self._settings.enable_analytics:
            try:
                event = AnalysisEvent.from_analysis(
                    result,
                    description=description,
                    used_fallback=metrics.used_fallback,
                    processing_time_ms=metrics.total_ms,
                    store_text=self._settings.store_analytics_text_snippets,
                )
                await self._history_store.record_event(event)
            except Exception as e:
                logger.warning("Failed to record event to history store: %s", e)

        for hook in self._post_hooks:
            try:
                hook_result = hook(description, result)
                if hasattr(hook_result, "__await__"):
                    await hook_result
            except Exception as e:
                logger.error(
                    "Hook execution failed [%s]: %s",
                    getattr(hook, "__name__", "unknown"),
                    str(e),
                )

    def _emit_metrics(self, metrics: PipelineMetrics) -> None:
        if self._metrics_callback:
            try:
                self._metrics_callback(metrics)
            except Exception as e:
                logger.warning("Metrics emission failed: %s", e)

    # -------------------------------------------------------------------------
    # Logging (Privacy-Aware)
    # -------------------------------------------------------------------------

    def _log_input(self, request_id: str, description: str) -> None:
        if self._settings.anonymize_logs:
            logger.info("[%s] Analyzing description: chars=%d", request_id, len(description))
        else:
            preview = description[:50] + "..." if len(description) > 50 else description
            logger.info("[%s] Analyzing description: preview='%s'", request_id, preview)

    def _log_output(
        self,
        request_id: str,
        result: AnalysisResult,
        metrics: PipelineMetrics,
    ) -> None:
        logger.info(
            "[%s] Result: urgency=%s, category=%s, confidence=%.2f, fallback=%s, total_ms=%.1f",
            request_id,
            result.urgency,
            result.category,
            result.confidence or 0.0,
            metrics.used_fallback,
            metrics.total_ms or 0,
        )

        if metrics.overrides:
            logger.info(
                "[%s] Severity overrides applied: %s",
                request_id,
                ", ".join(metrics.overrides),
            )

        if result.urgency == Urgency.CRITICAL.value:
            logger.warning(
                "[%s] CRITICAL incident: category=%s, resources=%d",
                request_id,
                result.category,
                len(result.resources),
            )

    def _generate_request_id(self) -> str:
        return f"req_{uuid.uuid4().hex[:12]}"

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def startup(self) -> None:
        logger.info("Pipeline startup: classifier=%s", self._classifier.model_id)

    async def shutdown(self) -> None:
        logger.info("Pipeline shutdown: closing classifier client...")
        await self._classifier.aclose()
        logger.info("Pipeline shutdown complete")


# =============================================================================
# Factory Function
# =============================================================================

def create_pipeline(
    settings: Settings,
    history_store: Optional["AnalysisHistoryStore"] = None,
    random_source: Optional[RandomSource] = None,
) -> AnalysisPipeline:
    """
    Factory function to create a configured AnalysisPipeline.

    Selects the generative model client from `classifier_backend`
    ("gemini" | "dummy") and builds the history store when analytics
    is enabled.

    Raises:
        ConfigurationError: Unknown classifier backend
    """
    from app.core.history_store import create_history_store
    from app.services.llm_client import create_llm_client

    if history_store is None and settings.enable_analytics:
        history_store = create_history_store(settings)

    client = create_llm_client(settings)
    classifier = ClassifierGateway(
        client,
        timeout_seconds=settings.classifier_timeout_seconds,
    )

    logger.info(
        "Pipeline configured: classifier=%s, timeout=%.1fs, analytics=%s",
        type(client).__name__,
        settings.classifier_timeout_seconds,
        type(history_store).__name__ if history_store else "disabled",
    )

    return AnalysisPipeline(
        classifier=classifier,
        settings=settings,
        random_source=random_source,
        history_store=history_store,
    )
