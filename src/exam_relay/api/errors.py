"""Mapping of pipeline errors to HTTP responses."""

import logging
import math

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from exam_relay.domain.errors import (
    InvalidRequest,
    RelayError,
    StateStoreError,
    Unauthenticated,
    UpstreamFailure,
    UpstreamOverloaded,
)

logger = logging.getLogger(__name__)

UPSTREAM_FAILURE_MESSAGE = "Failed to communicate with the analysis service."
INTERNAL_ERROR_MESSAGE = "Internal server error."


def error_response(
    status_code: int,
    message: str,
    headers: dict[str, str] | None = None,
    **extra: object,
) -> JSONResponse:
    """Return a JSON error body of the form {"error": ...}."""
    return JSONResponse(
        status_code=status_code,
        content={"error": message, **extra},
        headers=headers,
    )


def register_error_handlers(
    app: FastAPI, *, retry_after_seconds: float, debug: bool
) -> None:
    """Install handlers translating pipeline errors into responses.

    Upstream diagnostics are only appended to error bodies when ``debug``
    is set, which the app factory enables for the local environment.
    """
    retry_after = str(max(1, math.ceil(retry_after_seconds)))

    @app.exception_handler(Unauthenticated)
    async def unauthenticated(_request: Request, _exc: Unauthenticated) -> JSONResponse:
        return error_response(status.HTTP_401_UNAUTHORIZED, "Unauthorized")

    @app.exception_handler(InvalidRequest)
    async def invalid_request(_request: Request, exc: InvalidRequest) -> JSONResponse:
        return error_response(status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(RequestValidationError)
    async def invalid_parameters(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        fields = sorted(
            {
                str(error["loc"][-1])
                for error in exc.errors()
                if error.get("loc")
            }
        )
        message = "Invalid request parameters"
        if fields:
            message = f"{message}: {', '.join(fields)}"
        return error_response(status.HTTP_400_BAD_REQUEST, f"{message}.")

    @app.exception_handler(UpstreamOverloaded)
    async def upstream_overloaded(
        _request: Request, exc: UpstreamOverloaded
    ) -> JSONResponse:
        return error_response(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            str(exc),
            headers={"Retry-After": retry_after},
            retryable=True,
            **_session_fields(exc),
        )

    @app.exception_handler(UpstreamFailure)
    async def upstream_failure(_request: Request, exc: UpstreamFailure) -> JSONResponse:
        message = UPSTREAM_FAILURE_MESSAGE
        detail = str(exc).strip()
        if debug and detail:
            message = f"{message} (debug: {detail})"
        return error_response(
            status.HTTP_502_BAD_GATEWAY, message, **_session_fields(exc)
        )

    @app.exception_handler(StateStoreError)
    async def state_store_error(
        _request: Request, exc: StateStoreError
    ) -> JSONResponse:
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "Unhandled error",
            extra={"path": request.url.path, "error_type": type(exc).__name__},
        )
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE
        )


def _session_fields(exc: RelayError) -> dict[str, object]:
    if exc.session_id is None:
        return {}
    return {"sessionId": exc.session_id}
