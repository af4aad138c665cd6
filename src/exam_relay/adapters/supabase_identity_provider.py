"""Supabase Auth identity provider."""

import logging
from dataclasses import dataclass

from supabase import Client

from exam_relay.domain.identity import CallerIdentity
from exam_relay.services.identity import IdentityProvider

logger = logging.getLogger(__name__)


@dataclass
class SupabaseIdentityProvider(IdentityProvider):
    """Verifies access tokens issued by Supabase Auth."""

    client: Client

    def verify_token(self, token: str) -> CallerIdentity | None:
        """Return the token's user, or None when Supabase rejects it."""
        try:
            response = self.client.auth.get_user(token)
        except Exception as exc:
            logger.info(
                "Identity provider rejected token",
                extra={"reason": type(exc).__name__},
            )
            return None
        user = response.user if response else None
        if user is None:
            return None
        return CallerIdentity(
            subject=str(user.id),
            claims={
                "email": user.email,
                "role": user.role,
                "app_metadata": dict(user.app_metadata or {}),
            },
        )
