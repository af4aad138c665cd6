"""FastAPI dependencies shared by the API routes."""

from fastapi import Depends, Header, Request

from exam_relay.containers import AppContainer
from exam_relay.domain.identity import CallerIdentity


def get_container(request: Request) -> AppContainer:
    return request.app.state.container


def require_caller(
    authorization: str | None = Header(default=None),
    container: AppContainer = Depends(get_container),
) -> CallerIdentity:
    """Verify the bearer token before any other work happens."""
    return container.identity_verifier.verify(authorization)
