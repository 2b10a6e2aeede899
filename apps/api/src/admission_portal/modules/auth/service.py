"""
Authentication Service

Registration, login and logout against the Redis session store.
Self-registration always creates a student; admins are created by the
seeding script.
"""

import logging

from redis.asyncio import Redis
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from admission_portal.core.exceptions import ConflictError, InvalidCredentialsError
from admission_portal.core.security import hash_password, verify_password
from admission_portal.core.sessions import SessionData, create_session, delete_session
from admission_portal.modules.users.models import User, UserRole
from admission_portal.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)


class UsernameTakenError(ConflictError):
    """Raised when registering a username that already exists."""

    def __init__(self):
        super().__init__(
            message="An account with this username already exists.",
            error_code="USERNAME_TAKEN",
        )


async def _start_session(redis: Redis | None, user: User) -> str:
    return await create_session(
        redis,
        SessionData(user_id=user.id, username=user.username, role=user.role.value),
    )


async def register(
    db: AsyncSession,
    redis: Redis | None,
    username: str,
    password: str,
) -> tuple[User, str]:
    """
    Create a student account and sign it in.

    Returns:
        (user, session token)

    Raises:
        UsernameTakenError: If the username is already registered
        SessionStoreUnavailableError: If the session store is down
    """
    if await UserRepository.username_exists(db, username):
        raise UsernameTakenError()

    try:
        user = await UserRepository.create(
            db,
            username=username,
            password_hash=hash_password(password),
            role=UserRole.STUDENT,
        )
    except IntegrityError as e:
        await db.rollback()
        raise UsernameTakenError() from e

    token = await _start_session(redis, user)
    logger.info(f"User registered: {user.id}")
    return user, token


async def login(
    db: AsyncSession,
    redis: Redis | None,
    username: str,
    password: str,
) -> tuple[User, str]:
    """
    Verify credentials and open a session.

    Raises:
        InvalidCredentialsError: Unknown username or wrong password (not distinguished)
        SessionStoreUnavailableError: If the session store is down
    """
    user = await UserRepository.get_by_username(db, username)

    if user is None or not verify_password(password, user.password_hash):
        logger.warning("Failed login attempt")
        raise InvalidCredentialsError()

    token = await _start_session(redis, user)
    logger.info(f"User logged in: {user.id} (role: {user.role.value})")
    return user, token


async def logout(redis: Redis | None, token: str) -> None:
    """End a session."""
    await delete_session(redis, token)
    logger.info("Session ended")
