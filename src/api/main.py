"""
FastAPI main application.

REST API for triggering unit validation runs and reading their progress and
results. Runs themselves are executed by ``modules.validation.engine``.
"""

import time
from typing import Callable, Dict, Type

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from modules.validation.core.exceptions import (
    ConfigurationError,
    NoRequirementsError,
    RequirementNotFoundError,
    ValidationPipelineException,
    ValidationRequestNotFoundError,
)
from shared.utils.config import settings as app_settings
from shared.utils.logger import setup_logger
from src.api.config import get_api_settings
from src.api.v1.router import api_router
from src.database.connection import close_engine

logger = setup_logger(__name__)

settings = get_api_settings()

# Pipeline errors that escape an endpoint, by most specific class first
PIPELINE_ERROR_STATUS: Dict[Type[ValidationPipelineException], int] = {
    ValidationRequestNotFoundError: status.HTTP_404_NOT_FOUND,
    RequirementNotFoundError: status.HTTP_404_NOT_FOUND,
    NoRequirementsError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for_pipeline_error(exc: ValidationPipelineException) -> int:
    for error_type, status_code in PIPELINE_ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def create_application() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title=settings.API_TITLE,
        description=settings.API_DESCRIPTION,
        version=settings.API_VERSION,
        docs_url="/docs" if settings.ENABLE_DOCS else None,
        redoc_url="/redoc" if settings.ENABLE_DOCS else None,
        openapi_url="/openapi.json" if settings.ENABLE_DOCS else None,
    )

    if settings.ENABLE_CORS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.CORS_ORIGINS,
            allow_credentials=True,
            allow_methods=settings.CORS_METHODS,
            allow_headers=settings.CORS_HEADERS,
        )

    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next: Callable):
        started = time.perf_counter()
        response = await call_next(request)
        response.headers["X-Process-Time"] = f"{time.perf_counter() - started:.4f}"
        return response

    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    @app.get("/health", tags=["health"])
    async def health_check():
        """Liveness plus the configured provider selection (no credentials checked)."""
        return {
            "status": "healthy",
            "version": settings.API_VERSION,
            "environment": settings.ENVIRONMENT,
            "ai_provider": app_settings.AI_PROVIDER,
            "orchestration_mode": app_settings.ORCHESTRATION_MODE,
        }

    @app.exception_handler(ValidationPipelineException)
    async def pipeline_exception_handler(_request: Request, exc: ValidationPipelineException):
        status_code = status_for_pipeline_error(exc)
        logger.warning(f"{type(exc).__name__} -> HTTP {status_code}: {exc}")
        return JSONResponse(
            status_code=status_code,
            content={"error": type(exc).__name__, "detail": str(exc)},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(_request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An internal server error occurred",
                "detail": str(exc) if app_settings.DEBUG else None,
            },
        )

    @app.on_event("startup")
    async def startup_event():
        logger.info(f"Starting {settings.API_TITLE} v{settings.API_VERSION} ({settings.ENVIRONMENT})")
        logger.info(
            f"Provider: {app_settings.AI_PROVIDER or 'catalogue default'}, "
            f"storage backend: {app_settings.STORAGE_BACKEND}"
        )

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info(f"Shutting down {settings.API_TITLE}")
        await close_engine()

    return app


app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.api.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=app_settings.DEBUG,
        log_level=app_settings.LOG_LEVEL.lower(),
    )
