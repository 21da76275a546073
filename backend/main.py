"""
ResiliNet Triage - Backend Entrypoint

FastAPI application factory and server configuration.
Run with: uvicorn main:app --reload   (from the backend/ directory)
"""

from contextlib import asynccontextmanager
import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app import __version__
from app.config import Settings, get_settings
from app.api import health, routes
from app.core.logging import LogContext, new_correlation_id, setup_structured_logging
from app.core.pipeline import AnalysisPipeline, create_pipeline

logger = logging.getLogger(__name__)

ANALYZE_PATH = "/api/analyze"


def create_app(
    settings: Optional[Settings] = None,
    pipeline: Optional[AnalysisPipeline] = None,
) -> FastAPI:
    """
    Application factory.

    Args:
        settings: Settings to use (default: cached environment settings)
        pipeline: Prebuilt pipeline, e.g. one wired to a stub model client
    """
    settings = settings or get_settings()

    setup_structured_logging(
        level=settings.app_log_level,
        json_format=settings.log_json or settings.is_production,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Startup:
            - Build the analysis pipeline (or use the injected one)
        Shutdown:
            - Close the model client
        """
        logger.info("🚀 ResiliNet Triage starting in %s mode", settings.app_env)

        app.state.pipeline = pipeline or create_pipeline(settings)
        app.state.settings = settings

        await app.state.pipeline.startup()

        logger.info("✅ Pipeline initialized and ready")
        logger.info(
            "   Classifier: backend=%s, model=%s, timeout=%.1fs",
            settings.classifier_backend,
            settings.gemini_model,
            settings.classifier_timeout_seconds,
        )
        logger.info(
            "   Analytics: enabled=%s, store_snippets=%s, max_events=%d",
            settings.enable_analytics,
            settings.store_analytics_text_snippets,
            settings.analytics_max_events,
        )

        yield

        logger.info("👋 ResiliNet Triage shutting down")
        await app.state.pipeline.shutdown()
        logger.info("✅ Shutdown complete")

    app = FastAPI(
        title="ResiliNet Triage",
        description="AI triage API for disaster incident reports",
        version=__version__,
        docs_url="/docs" if settings.app_debug else None,
        redoc_url="/redoc" if settings.app_debug else None,
        lifespan=lifespan,
    )

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Correlation ID ---
    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next):
        correlation_id = request.headers.get("X-Request-ID") or new_correlation_id()
        with LogContext(correlation_id=correlation_id):
            response = await call_next(request)
        response.headers["X-Request-ID"] = correlation_id
        return response

    # --- Malformed analyze bodies are invalid descriptions, not 422s ---
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        if request.url.path == ANALYZE_PATH:
            return JSONResponse(status_code=400, content=routes.INVALID_DESCRIPTION_BODY)
        return await request_validation_exception_handler(request, exc)

    # --- Routes ---
    app.include_router(routes.router, prefix="/api")
    app.include_router(health.router)

    @app.get("/")
    async def root():
        """Root health check."""
        return {
            "service": "ResiliNet Triage",
            "status": "operational",
            "version": __version__,
        }

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    _settings = get_settings()
    uvicorn.run(app, host=_settings.backend_host, port=_settings.backend_port)
