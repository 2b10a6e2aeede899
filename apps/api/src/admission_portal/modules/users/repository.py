"""
User Repository

Database operations for portal accounts.
"""

import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from admission_portal.modules.users.models import User, UserRole

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for user database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        username: str,
        password_hash: str,
        role: UserRole = UserRole.STUDENT,
    ) -> User:
        """
        Create a new user record.

        Args:
            db: Database session
            username: Login handle (unique, stored lower-cased)
            password_hash: Hashed password
            role: User's role

        Returns:
            Created User instance

        Raises:
            IntegrityError: If the username is already taken
        """
        user = User(username=username.lower(), password_hash=password_hash, role=role)

        db.add(user)
        await db.commit()
        await db.refresh(user)

        logger.info(f"Created user: {user.id} ({user.role.value})")
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: UUID) -> User | None:
        return await db.get(User, user_id)

    @staticmethod
    async def get_by_username(db: AsyncSession, username: str) -> User | None:
        """Get a user by username (case-insensitive)."""
        result = await db.execute(select(User).where(func.lower(User.username) == username.lower()))
        return result.scalar_one_or_none()

    @staticmethod
    async def username_exists(db: AsyncSession, username: str) -> bool:
        user = await UserRepository.get_by_username(db, username)
        return user is not None
