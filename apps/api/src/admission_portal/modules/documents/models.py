"""
Document Models

Metadata for supporting documents attached to an application. Files
themselves live in external storage; only the name and storage path are kept.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Index, String, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from admission_portal.core.database import Base


class DocumentType(str, enum.Enum):
    """Kinds of supporting document. Values match the form's checklist keys."""

    NATIONAL_ID = "nationalId"
    KCSE_RESULTS = "kcseResults"
    KCPE_RESULTS = "kcpeResults"
    PASSPORT_PHOTO = "passportPhoto"


class Document(Base):
    """
    An uploaded supporting document.

    At most one document per (application, type): a new upload of the same
    type replaces the previous one.
    """

    __tablename__ = "documents"

    # Primary key
    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    application_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
    )

    document_type: Mapped[DocumentType] = mapped_column(
        Enum(
            DocumentType,
            name="document_type",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
    )

    # Storage metadata
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    storage_path: Mapped[str] = mapped_column(String(500), nullable=False)

    # Verification
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    verified_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("application_id", "document_type", name="uq_documents_application_type"),
        Index("ix_documents_application_id", "application_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Document(id={self.id}, application_id={self.application_id}, "
            f"type={self.document_type.value}, verified={self.verified})>"
        )
