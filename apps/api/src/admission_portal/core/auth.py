"""
Authentication Dependencies

FastAPI dependencies that resolve the session token on a request into the
authenticated user. Tokens are accepted from the Authorization header
(`Bearer <token>`) or from the session cookie.

Authorization (roles and ownership) is decided by the access policy in the
service layer, not here.
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from redis.asyncio import Redis

from admission_portal.core.config import settings
from admission_portal.core.exceptions import (
    AuthenticationError,
    PortalError,
    handle_portal_error,
)
from admission_portal.core.sessions import get_redis, load_session

logger = logging.getLogger(__name__)

# Security scheme for OpenAPI documentation
security = HTTPBearer(
    auto_error=False,
    description="Session token issued by /api/auth/login",
)


@dataclass(frozen=True)
class CurrentUser:
    """
    The authenticated caller of a request.

    Attributes:
        id: User's unique identifier
        username: Login handle (an email address)
        role: 'student' or 'admin'
    """

    id: UUID
    username: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def __str__(self) -> str:
        return f"CurrentUser(id={self.id}, role={self.role})"


def get_session_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str | None:
    """Extract the session token from the Bearer header or the session cookie."""
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.session_cookie_name)


async def get_current_user(
    token: str | None = Depends(get_session_token),
    redis: Redis | None = Depends(get_redis),
) -> CurrentUser:
    """
    Resolve the request's session into a CurrentUser.

    Raises:
        HTTPException 401: If no token is supplied or the session is unknown/expired
        HTTPException 503: If the session store is unavailable
    """
    try:
        if not token:
            raise AuthenticationError()

        session = await load_session(redis, token)
        if session is None:
            logger.info("Rejected unknown or expired session token")
            raise AuthenticationError("Your session has expired. Please log in again.")

    except PortalError as e:
        handle_portal_error(e)

    return CurrentUser(id=session.user_id, username=session.username, role=session.role)


__all__ = [
    "CurrentUser",
    "get_current_user",
    "get_session_token",
]
