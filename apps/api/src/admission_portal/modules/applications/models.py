"""
Application Models

Database model for admission applications. One application per user; the
form itself is stored as a single JSON payload validated by form_schema.
"""

import enum
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Enum, ForeignKey, Index, func
from sqlalchemy.dialects.postgresql import JSON, UUID
from sqlalchemy.orm import Mapped, mapped_column

from admission_portal.core.database import Base


class ApplicationStatus(str, enum.Enum):
    """Status of an admission application."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"


class Application(Base):
    """
    Admission application.

    Created implicitly on the applicant's first save as a draft. The form data
    is overwritten wholesale on every save; status only changes through an
    explicit status update.
    """

    __tablename__ = "applications"

    # Primary key
    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Owner (one application per user)
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )

    # Status tracking
    status: Mapped[ApplicationStatus] = mapped_column(
        Enum(
            ApplicationStatus,
            name="application_status",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=ApplicationStatus.DRAFT,
    )

    # Normalized form payload (camelCase keys)
    form_data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Draft reminder tracking
    reminder_sent_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Audit timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    # Last applicant or admin activity; written explicitly by the repository
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_applications_status", "status"),
        Index("ix_applications_updated_at", "updated_at"),
    )

    def __repr__(self) -> str:
        return f"<Application(id={self.id}, user_id={self.user_id}, status={self.status.value})>"
