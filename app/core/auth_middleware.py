"""Authentication dependencies for FastAPI."""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.collaborators import Collaborators
from app.core.errors import UnauthenticatedError
from app.core.logging import get_logger
from app.services.collaborator_factory import get_collaborators

logger = get_logger(__name__)

# HTTP Bearer scheme for Authorization header
security = HTTPBearer(auto_error=False)


class AuthContext:
    """Context object containing the authenticated caller."""

    def __init__(self, caller_id: str, token: str):
        self.caller_id = caller_id
        self.token = token


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    collaborators: Collaborators = Depends(get_collaborators),
) -> Optional[AuthContext]:
    """
    Resolve the caller from the bearer token.

    Returns None if no valid auth is present.
    """
    if not credentials or not credentials.credentials:
        return None

    token = credentials.credentials
    try:
        caller_id = collaborators.identity.verify(token)
    except UnauthenticatedError:
        return None

    return AuthContext(caller_id=caller_id, token=token)


async def require_auth(
    auth: Optional[AuthContext] = Depends(get_current_user),
) -> AuthContext:
    """Require authentication. Raises 401 if not authenticated."""
    if not auth:
        raise UnauthenticatedError("Unauthorized")
    return auth
