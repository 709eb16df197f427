"""Identity provider backed by Supabase Auth."""

from supabase import Client

from app.core.errors import UnauthenticatedError
from app.core.logging import get_logger
from app.db.supabase_client import get_supabase

logger = get_logger(__name__)


class SupabaseIdentityProvider:
    """Verifies bearer tokens with Supabase Auth and returns the caller id."""

    def __init__(self, client: Client | None = None):
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase()
        return self._client

    def verify(self, token: str) -> str:
        """
        Validate the JWT signature and expiry via Supabase.

        Raises:
            UnauthenticatedError: If the token is missing, invalid or expired
        """
        if not token:
            raise UnauthenticatedError("Unauthorized")

        try:
            auth_response = self.client.auth.get_user(token)
        except Exception as e:
            logger.warning(f"Auth error: {e}")
            raise UnauthenticatedError("Unauthorized") from e

        if not auth_response or not auth_response.user:
            raise UnauthenticatedError("Unauthorized")

        return str(auth_response.user.id)
