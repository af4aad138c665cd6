"""Bearer-token verification against the identity provider."""

import logging
from dataclasses import dataclass
from typing import Protocol

from exam_relay.domain.errors import Unauthenticated
from exam_relay.domain.identity import CallerIdentity

logger = logging.getLogger(__name__)

_BEARER_PREFIX = "Bearer "


class IdentityProvider(Protocol):
    """Interface for exchanging a bearer token for a verified identity."""

    def verify_token(self, token: str) -> CallerIdentity | None:
        """Return the identity for a valid token, or None if rejected."""


@dataclass
class IdentityVerifier:
    """Resolves the caller from an Authorization header."""

    provider: IdentityProvider

    def verify(self, authorization: str | None) -> CallerIdentity:
        """Return the verified caller or raise Unauthenticated."""
        token = extract_bearer_token(authorization)
        if token is None:
            logger.info("Rejected request without a usable bearer token")
            raise Unauthenticated("Unauthorized")
        identity = self.provider.verify_token(token)
        if identity is None:
            logger.info("Rejected request with an invalid bearer token")
            raise Unauthenticated("Unauthorized")
        return identity


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the token from a `Bearer <token>` header value."""
    if not authorization or not authorization.startswith(_BEARER_PREFIX):
        return None
    token = authorization[len(_BEARER_PREFIX) :].strip()
    return token or None
