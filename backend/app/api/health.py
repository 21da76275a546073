"""
ResiliNet Triage - Health Check Endpoints

System health monitoring endpoints for load balancers, monitoring,
and operational visibility.
"""

from datetime import datetime

from fastapi import APIRouter, Request

from app.config import Settings

from .schemas import HealthResponse

router = APIRouter(prefix="/api/system", tags=["system"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """
    Overall system health check.

    The service reports "degraded" when the Gemini backend has no API key:
    requests still succeed, but every analysis is the manual-review fallback.
    """
    settings: Settings = request.app.state.settings
    pipeline = request.app.state.pipeline

    checks = {
        "pipeline": {"status": "healthy", "message": "Pipeline operational"},
        "analytics": {"status": "healthy" if settings.enable_analytics else "disabled"},
    }

    backend = settings.classifier_backend.lower()
    if backend == "gemini" and not settings.gemini_api_key:
        checks["classifier"] = {
            "status": "degraded",
            "backend": backend,
            "message": "GEMINI_API_KEY not configured; all analyses fall back",
        }
    else:
        checks["classifier"] = {
            "status": "healthy",
            "backend": backend,
            "model": pipeline.classifier.model_id,
        }

    all_healthy = all(
        c.get("status") in ("healthy", "disabled")
        for c in checks.values()
    )

    return HealthResponse(
        status="healthy" if all_healthy else "degraded",
        timestamp=datetime.utcnow(),
        environment=settings.app_env,
        checks=checks,
    )


@router.get("/ready")
async def readiness_check(request: Request) -> dict:
    """
    Readiness probe for container orchestration.

    Ready once the lifespan handler has built the pipeline.
    """
    ready = getattr(request.app.state, "pipeline", None) is not None
    return {
        "ready": ready,
        "timestamp": datetime.utcnow().isoformat() + "Z",
    }


@router.get("/live")
async def liveness_check() -> dict:
    """Liveness probe: the process is up and serving requests."""
    return {
        "alive": True,
        "timestamp": datetime.utcnow().isoformat() + "Z",
    }


@router.get("/config")
async def config_info(request: Request) -> dict:
    """
    Non-sensitive configuration information.

    Excludes the model API key.
    """
    settings: Settings = request.app.state.settings
    return {
        "environment": settings.app_env,
        "debug": settings.app_debug,
        "log_level": settings.app_log_level,
        "classifier": {
            "backend": settings.classifier_backend,
            "model": settings.gemini_model,
            "timeout_seconds": settings.classifier_timeout_seconds,
            "api_key_configured": bool(settings.gemini_api_key),
        },
        "validation": {
            "min_description_length": settings.min_description_length,
        },
        "features": {
            "analytics_enabled": settings.enable_analytics,
        },
        "privacy": {
            "anonymize_logs": settings.anonymize_logs,
            "store_analytics_text_snippets": settings.store_analytics_text_snippets,
        },
        "confidence_scale": "0-1",
        "timestamp": datetime.utcnow().isoformat() + "Z",
    }
