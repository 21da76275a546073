"""
ResiliNet Triage - Services Package

Contains service interfaces and implementations for:
- Generative model clients (Gemini, dummy)
- The classifier gateway that turns descriptions into candidate analyses

Design Pattern:
    Each service defines a Protocol (interface) and one or more implementations.
    The pipeline is configured with concrete implementations at startup,
    enabling dependency injection and easy testing/swapping of components.
"""

from .llm_client import (
    GenerativeModelClient,
    GeminiClient,
    DummyGenerativeClient,
    create_llm_client,
)
from .classifier import (
    ClassifierGateway,
    ClassificationOutcome,
    build_prompt,
    parse_reply,
    strip_code_fences,
)

__all__ = [
    # Model clients
    "GenerativeModelClient",
    "GeminiClient",
    "DummyGenerativeClient",
    "create_llm_client",
    # Classifier
    "ClassifierGateway",
    "ClassificationOutcome",
    "build_prompt",
    "parse_reply",
    "strip_code_fences",
]
