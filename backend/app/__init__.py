"""
ResiliNet Triage - Backend Application Package

This package contains the core backend logic:
- API routes for incident analysis and analytics
- Analysis pipeline orchestration
- Severity normalization and confidence scoring
- Generative model clients and the classifier gateway
"""

__version__ = "0.1.0"
