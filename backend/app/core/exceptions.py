"""
ResiliNet Triage - Exception Hierarchy

Structured exceptions for consistent error handling across the system.
All exceptions include error codes for API responses.
"""

from typing import Optional


class ResiliNetError(Exception):
    """Base exception for all ResiliNet errors."""

    code: str = "UNKNOWN_ERROR"
    status_code: int = 500

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# =============================================================================
# Pipeline Errors
# =============================================================================

class PipelineError(ResiliNetError):
    """Error during analysis pipeline processing."""
    code = "PIPELINE_ERROR"
    status_code = 500


# =============================================================================
# Classifier (Collaborator) Errors
# =============================================================================

class ClassifierError(ResiliNetError):
    """The generative model could not produce a usable classification."""
    code = "CLASSIFIER_ERROR"
    status_code = 502


class ModelRequestError(ClassifierError):
    """Network or service error while calling the generative model."""
    code = "MODEL_REQUEST_FAILED"


class ModelTimeoutError(ClassifierError):
    """The generative model did not answer within the configured timeout."""
    code = "MODEL_TIMEOUT"
    status_code = 504


class ModelReplyParseError(ClassifierError):
    """The model reply was not JSON of the expected shape."""
    code = "MODEL_REPLY_UNPARSEABLE"


class ModelNotConfiguredError(ClassifierError):
    """No credential is configured for the generative model."""
    code = "MODEL_NOT_CONFIGURED"
    status_code = 503


# =============================================================================
# Validation Errors
# =============================================================================

class ValidationError(ResiliNetError):
    """Input validation error."""
    code = "VALIDATION_ERROR"
    status_code = 400


class InvalidDescriptionError(ValidationError):
    """Incident description missing or too short."""
    code = "INVALID_DESCRIPTION"


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(ResiliNetError):
    """Configuration error."""
    code = "CONFIGURATION_ERROR"
    status_code = 500
