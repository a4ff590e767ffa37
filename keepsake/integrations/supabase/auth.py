"""
Bearer token verification against Supabase Auth.
"""

from dataclasses import dataclass

import httpx

from keepsake.core.config import settings
from keepsake.core.errors import AuthenticationError, CollaboratorError
from keepsake.core.logging import get_logger
from keepsake.integrations.retry import TransientHTTPError, raise_for_transient, with_retry

logger = get_logger(__name__)


@dataclass(frozen=True)
class AuthenticatedIdentity:
    """Identity asserted by the auth provider for one request."""

    user_id: str
    email: str
    email_verified: bool


class SupabaseAuthClient:
    """Resolves an access token to the account it was issued for."""

    def __init__(
        self,
        base_url: str | None = None,
        anon_key: str | None = None,
        http_client: httpx.Client | None = None,
    ):
        self.base_url = (base_url or settings.supabase_url).rstrip("/")
        self.anon_key = anon_key or settings.supabase_key
        self.http = http_client or httpx.Client(timeout=10.0)

    def get_identity(self, access_token: str) -> AuthenticatedIdentity:
        """
        Verify a token.

        Raises:
            AuthenticationError: Token missing, expired or rejected
            CollaboratorError: Auth service unavailable
        """
        if not access_token:
            raise AuthenticationError()
        try:
            payload = self._fetch_user(access_token)
        except (TransientHTTPError, httpx.HTTPError) as e:
            logger.error(f"Auth service unavailable: {e}")
            raise CollaboratorError("Authentication service unavailable") from e

        email = payload.get("email")
        if not payload.get("id") or not email:
            raise AuthenticationError("Invalid authentication token")
        return AuthenticatedIdentity(
            user_id=payload["id"],
            email=email,
            email_verified=bool(payload.get("email_confirmed_at")),
        )

    def close(self) -> None:
        self.http.close()

    @with_retry
    def _fetch_user(self, access_token: str) -> dict:
        response = self.http.get(
            f"{self.base_url}/auth/v1/user",
            headers={"apikey": self.anon_key, "Authorization": f"Bearer {access_token}"},
        )
        if response.status_code in (401, 403):
            raise AuthenticationError("Invalid authentication token")
        raise_for_transient(response)
        response.raise_for_status()
        return response.json()
