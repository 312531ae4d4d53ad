from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from shodhsahayak.api.dependencies import get_storage
from shodhsahayak.api.routes.proposals import router as proposals_router
from shodhsahayak.api.routes.scrape import router as scrape_router
from shodhsahayak.api.routes.system import router as system_router
from shodhsahayak.core.config import Settings, get_settings
from shodhsahayak.core.exceptions import ScrapeInProgressError, StorageError, ValidationError
from shodhsahayak.core.logging import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(application: FastAPI):
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    storage = application.dependency_overrides.get(get_storage, get_storage)()
    try:
        await storage.initialize()
    except StorageError:
        logger.error("Database setup failed; service will continue but queries may fail", exc_info=True)

    yield


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    response = JSONResponse(
        status_code=429,
        content={"success": False, "error": "Too many requests, please try again later."},
    )
    return request.app.state.limiter._inject_headers(response, request.state.view_rate_limit)


def configure_rate_limit(application: FastAPI, settings: Settings) -> None:
    """Per-client request budget over the whole API, keyed by remote address."""
    application.state.limiter = Limiter(
        key_func=get_remote_address,
        application_limits=[settings.RATE_LIMIT],
        headers_enabled=True,
        enabled=settings.RATE_LIMIT_ENABLED,
    )
    application.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    application.add_middleware(SlowAPIMiddleware)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance."""
    application = FastAPI(
        title="Research Proposals API",
        version="1.0",
        lifespan=app_lifespan,
    )

    settings = settings or get_settings()
    configure_rate_limit(application, settings)
    allowed_origins = [str(origin).rstrip("/") for origin in settings.CORS_ORIGINS] or ["*"]
    application.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials="*" not in allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.include_router(proposals_router)
    application.include_router(scrape_router)
    application.include_router(system_router)

    @application.exception_handler(StorageError)
    async def storage_exception_handler(request: Request, exc: StorageError) -> JSONResponse:
        logger.error("Store unavailable at %s: %s", request.url.path, exc, extra={"path": request.url.path})
        return JSONResponse(
            status_code=503,
            content={
                "success": False,
                "error": "Database temporarily unavailable",
                "details": "Please try again in a few moments",
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        )

    @application.exception_handler(ValidationError)
    async def validation_exception_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"success": False, "error": str(exc)})

    @application.exception_handler(ScrapeInProgressError)
    async def in_progress_exception_handler(request: Request, exc: ScrapeInProgressError) -> JSONResponse:
        return JSONResponse(status_code=409, content={"success": False, "error": str(exc)})

    @application.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logging.error("Unhandled exception at %s", request.url.path, exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "An internal system error occurred. Please check server logs.",
            },
        )

    @application.get("/")
    def read_root() -> dict[str, str]:
        return {"status": "System Operational", "message": "Research Proposals API is Running"}

    return application


app = create_app()
