"""
Authentication router.

Endpoints:
- POST /auth/register - Create a student account and sign in (rate limited)
- POST /auth/login - Sign in (rate limited)
- POST /auth/logout - End the current session
- GET /auth/user - The signed-in account

The session token is returned in the body and set as an HTTP-only cookie;
either can be used on later requests.
"""

import logging

from fastapi import APIRouter, Depends, Response, status
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from admission_portal.core.auth import CurrentUser, get_current_user, get_session_token
from admission_portal.core.config import settings
from admission_portal.core.database import get_db
from admission_portal.core.exceptions import (
    AuthenticationError,
    PortalError,
    handle_portal_error,
    internal_server_error,
)
from admission_portal.core.rate_limit import RateLimiter
from admission_portal.core.sessions import get_redis
from admission_portal.modules.auth import service
from admission_portal.modules.auth.schemas import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UserResponse,
)
from admission_portal.modules.users.models import User
from admission_portal.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

router = APIRouter()

# (limit, window seconds) per client IP
RATE_LIMIT_LOGIN = (10, 60)
RATE_LIMIT_REGISTER = (5, 60 * 60)


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_ttl_seconds,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def _auth_response(user: User, token: str) -> AuthResponse:
    return AuthResponse(user=UserResponse.model_validate(user), token=token)


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(RateLimiter("register", *RATE_LIMIT_REGISTER))],
    responses={
        400: {"description": "Invalid username or password"},
        409: {"description": "Username already registered"},
        429: {"description": "Too many attempts"},
    },
)
async def register(
    data: RegisterRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
) -> AuthResponse:
    """Create a student account and sign it in."""
    try:
        user, token = await service.register(db, redis, data.username, data.password)
        _set_session_cookie(response, token)
        return _auth_response(user, token)

    except PortalError as e:
        handle_portal_error(e)
    except Exception as e:
        logger.exception(f"Error registering user: {e}")
        raise internal_server_error() from e


@router.post(
    "/login",
    response_model=AuthResponse,
    dependencies=[Depends(RateLimiter("login", *RATE_LIMIT_LOGIN))],
    responses={
        401: {"description": "Invalid username or password"},
        429: {"description": "Too many attempts"},
    },
)
async def login(
    credentials: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
) -> AuthResponse:
    """
    Authenticate and open a session.

    Raises:
        HTTPException 401: Invalid credentials
        HTTPException 503: Session store unavailable
    """
    try:
        user, token = await service.login(db, redis, credentials.username, credentials.password)
        _set_session_cookie(response, token)
        return _auth_response(user, token)

    except PortalError as e:
        handle_portal_error(e)
    except Exception as e:
        logger.exception(f"Error during login: {e}")
        raise internal_server_error() from e


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    user: CurrentUser = Depends(get_current_user),
    token: str | None = Depends(get_session_token),
    redis: Redis | None = Depends(get_redis),
) -> Response:
    """End the current session and clear the cookie."""
    try:
        if token:
            await service.logout(redis, token)
    except PortalError as e:
        handle_portal_error(e)

    logger.info(f"User logged out: {user.id}")
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(settings.session_cookie_name)
    return response


@router.get("/user", response_model=UserResponse)
async def get_user(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> UserResponse:
    """Return the signed-in account."""
    account = await UserRepository.get_by_id(db, user.id)
    if account is None:
        # Session outlived the account
        handle_portal_error(AuthenticationError())
    return UserResponse.model_validate(account)
