"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware

from exam_relay.api.analysis import router as analysis_router
from exam_relay.api.errors import error_response, register_error_handlers
from exam_relay.app_logging import configure_logging
from exam_relay.config import parse_cors_origins
from exam_relay.containers import AppContainer, build_container


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    settings = container.settings
    configure_logging(settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "Exam relay starting",
            extra={"state_mode": settings.state_mode, "model": settings.gemini_model},
        )
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.middleware("http")
    async def limit_body_size(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        declared = request.headers.get("content-length")
        too_large = (
            declared is not None
            and declared.isdigit()
            and int(declared) > settings.max_body_bytes
        )
        if too_large:
            logger.info("Rejected oversized request", extra={"bytes": int(declared)})
            return error_response(
                status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "Request body is too large."
            )
        return await call_next(request)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=parse_cors_origins(settings.cors_allow_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(
        app,
        retry_after_seconds=settings.retry_delay_seconds,
        debug=settings.environment == "local",
    )
    app.include_router(analysis_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app


def create_default_app() -> FastAPI:
    """Build the app from environment settings.

    Serve with ``uvicorn exam_relay.api.app:create_default_app --factory``.
    """
    return create_app(build_container())
