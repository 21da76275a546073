"""
ResiliNet Triage - Test Configuration and Fixtures

Shared fixtures for all test modules.
"""

import asyncio
import json
import os
import sys
from datetime import datetime
from typing import Generator, Optional

import pytest
from fastapi.testclient import TestClient

# Ensure backend package is importable
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.config import Settings
from app.core.confidence import FixedRandomSource
from app.core.history_store import InMemoryAnalysisHistoryStore
from app.core.pipeline import AnalysisPipeline
from app.core.types import AnalysisEvent
from app.services.classifier import ClassifierGateway


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")


# =============================================================================
# Stub Model Client
# =============================================================================

class StubModelClient:
    """
    Scripted stand-in for the generative model.

    Returns `reply`, raises `error`, or sleeps `delay` seconds first.
    Records every prompt it receives.
    """

    def __init__(
        self,
        reply: Optional[str] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ):
        self.reply = reply
        self.error = error
        self.delay = delay
        self.prompts: list[str] = []
        self.closed = False

    @property
    def model_id(self) -> str:
        return "stub-model"

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply or ""

    async def aclose(self) -> None:
        self.closed = True


def json_reply(**fields) -> str:
    """Model reply wrapped in a ```json fence, the way Gemini usually answers."""
    return "```json\n" + json.dumps(fields) + "\n```"


GAS_LEAK_REPLY = json_reply(
    urgency="Critical",
    category="Fire",
    summary="Gas leak reported",
    resources=["Fire Dept"],
)


# =============================================================================
# Settings Fixtures
# =============================================================================

@pytest.fixture
def test_settings() -> Settings:
    """
    Create test settings with safe defaults.

    Analytics enabled, but text snippets disabled for privacy.
    """
    return Settings(
        app_env="testing",
        app_debug=True,
        app_log_level="WARNING",  # Reduce noise in tests
        classifier_backend="dummy",
        gemini_api_key=None,
        classifier_timeout_seconds=1.0,
        enable_analytics=True,
        store_analytics_text_snippets=False,
        analytics_max_events=100,
        anonymize_logs=True,
    )


@pytest.fixture
def test_settings_analytics_disabled() -> Settings:
    """Settings with analytics disabled."""
    return Settings(
        app_env="testing",
        app_debug=True,
        app_log_level="WARNING",
        classifier_backend="dummy",
        enable_analytics=False,
    )


# =============================================================================
# Service Fixtures
# =============================================================================

@pytest.fixture
def stub_client() -> StubModelClient:
    """Stub model answering the gas-leak example."""
    return StubModelClient(reply=GAS_LEAK_REPLY)


@pytest.fixture
def zero_random() -> FixedRandomSource:
    """Pins the scorer's random term to zero."""
    return FixedRandomSource(0.0)


@pytest.fixture
def history_store() -> InMemoryAnalysisHistoryStore:
    """Create a fresh in-memory history store."""
    return InMemoryAnalysisHistoryStore(max_events=100, store_text_snippets=False)


@pytest.fixture
def history_store_with_snippets() -> InMemoryAnalysisHistoryStore:
    """Create a history store that keeps description snippets."""
    return InMemoryAnalysisHistoryStore(max_events=100, store_text_snippets=True)


# =============================================================================
# Pipeline Fixtures
# =============================================================================

@pytest.fixture
def pipeline(
    test_settings: Settings,
    stub_client: StubModelClient,
    zero_random: FixedRandomSource,
    history_store: InMemoryAnalysisHistoryStore,
) -> AnalysisPipeline:
    """Pipeline wired to the stub model with randomness pinned to zero."""
    return AnalysisPipeline(
        classifier=ClassifierGateway(stub_client, timeout_seconds=1.0),
        settings=test_settings,
        random_source=zero_random,
        history_store=history_store,
    )


# =============================================================================
# Sample Data Fixtures
# =============================================================================

@pytest.fixture
def sample_events() -> list[AnalysisEvent]:
    """Create sample analysis events for testing."""
    base_time = datetime.utcnow()
    return [
        AnalysisEvent(
            timestamp=base_time,
            urgency="Critical",
            category="Fire",
            confidence=0.95,
            resource_count=1,
            processing_time_ms=120.0,
        ),
        AnalysisEvent(
            timestamp=base_time,
            urgency="High",
            category="Medical",
            confidence=0.8,
            resource_count=2,
            processing_time_ms=80.0,
        ),
        AnalysisEvent(
            timestamp=base_time,
            urgency="Medium",
            category="Other",
            confidence=0.35,
            resource_count=0,
            used_fallback=True,
            processing_time_ms=40.0,
        ),
    ]


@pytest.fixture
def short_descriptions() -> list[str]:
    """Descriptions under five characters once trimmed."""
    return ["", "   ", "help", "  fire  ", "\n\tsos\n"]


# =============================================================================
# FastAPI App Fixtures
# =============================================================================

def _make_client(settings: Settings, pipeline: AnalysisPipeline) -> Generator[TestClient, None, None]:
    from main import create_app

    app = create_app(settings=settings, pipeline=pipeline)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def client(test_settings: Settings, pipeline: AnalysisPipeline) -> Generator[TestClient, None, None]:
    """Test client whose pipeline uses the gas-leak stub model."""
    yield from _make_client(test_settings, pipeline)


@pytest.fixture
def failing_client(
    test_settings: Settings,
    zero_random: FixedRandomSource,
    history_store: InMemoryAnalysisHistoryStore,
) -> Generator[TestClient, None, None]:
    """Test client whose model always raises a network error."""
    from app.core.exceptions import ModelRequestError

    pipeline = AnalysisPipeline(
        classifier=ClassifierGateway(
            StubModelClient(error=ModelRequestError("connection refused")),
            timeout_seconds=1.0,
        ),
        settings=test_settings,
        random_source=zero_random,
        history_store=history_store,
    )
    yield from _make_client(test_settings, pipeline)


@pytest.fixture
def client_analytics_disabled(
    test_settings_analytics_disabled: Settings,
    stub_client: StubModelClient,
    zero_random: FixedRandomSource,
) -> Generator[TestClient, None, None]:
    """Test client with analytics disabled."""
    pipeline = AnalysisPipeline(
        classifier=ClassifierGateway(stub_client),
        settings=test_settings_analytics_disabled,
        random_source=zero_random,
        history_store=None,
    )
    yield from _make_client(test_settings_analytics_disabled, pipeline)
