"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app import __version__
from app.config import Settings, get_settings
from app.exceptions import UnknownPipelineError
from app.logging import configure_logging
from app.middleware import BodySizeLimitMiddleware, RateLimitMiddleware, SlidingWindowLimiter
from app.routes import router
from app.services.completion_service import CompletionService

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Application factory.

    Passing ``settings`` pins them for every dependency, which is how tests
    swap in their own configuration.
    """

    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Create application resources during startup and clean up on shutdown."""

        async with httpx.AsyncClient() as client:
            app.state.http_client = client
            if settings.verify_upstream_on_startup:
                await CompletionService(client, settings).ping()
            yield
            del app.state.http_client

    app = FastAPI(
        title="Klachtbrief Assistent",
        version=__version__,
        lifespan=lifespan,
    )
    app.dependency_overrides[get_settings] = lambda: settings

    # Starlette runs the last added middleware first.
    app.add_middleware(
        RateLimitMiddleware,
        limiter=SlidingWindowLimiter(
            max_requests=settings.rate_limit_max_requests,
            window_seconds=settings.rate_limit_window_seconds,
        ),
    )
    app.add_middleware(
        BodySizeLimitMiddleware,
        max_body_bytes=settings.max_body_bytes,
        max_upload_bytes=settings.max_upload_bytes,
        upload_path="/api/upload-file",
    )
    origins = settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error", extra={"path": request.url.path})
        error = UnknownPipelineError()
        return JSONResponse(
            {"success": False, "error": error.message}, status_code=error.status_code
        )

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/version")
    async def version(settings: Settings = Depends(get_settings)) -> dict[str, str]:
        return {"version": __version__, "environment": settings.environment}

    app.include_router(router)

    logger.info(
        "Application configured",
        extra={
            "environment": settings.environment,
            "chat_model": settings.chat_model,
            "max_text_length": settings.max_text_length,
        },
    )
    return app


def run() -> None:
    """Console script: serve the application with uvicorn."""

    settings = get_settings()
    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.port, log_config=None)


app = create_app()
