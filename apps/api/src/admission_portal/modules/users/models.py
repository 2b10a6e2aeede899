"""
User Models

Database model for portal accounts.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from admission_portal.core.database import Base


class UserRole(str, enum.Enum):
    """User roles in the system."""

    STUDENT = "student"
    ADMIN = "admin"


class User(Base):
    """
    A portal account.

    The username is the login handle and is always an email address, which is
    also where notifications are delivered. The role is fixed at creation:
    self-registration always yields a student, admins are seeded.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    username: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)

    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=UserRole.STUDENT,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username}, role={self.role.value})>"

    @property
    def display_name(self) -> str:
        """Name used in greetings: the local part of the username."""
        return self.username.split("@", 1)[0]
