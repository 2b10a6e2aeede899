"""
Documents Repository

Database operations for document metadata.
"""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Document, DocumentType


async def replace(
    db: AsyncSession,
    application_id: UUID,
    document_type: DocumentType,
    file_name: str,
    storage_path: str,
) -> Document:
    """
    Store a document, replacing any previous one of the same type.

    The delete and the insert are committed together, so readers never see
    zero or two documents of one type for an application.
    """
    await db.execute(
        delete(Document).where(
            Document.application_id == application_id,
            Document.document_type == document_type,
        )
    )

    new_document = Document(
        application_id=application_id,
        document_type=document_type,
        file_name=file_name,
        storage_path=storage_path,
        verified=False,
        uploaded_at=datetime.now(UTC),
    )

    db.add(new_document)
    await db.commit()
    await db.refresh(new_document)

    return new_document


async def get_by_id(db: AsyncSession, id: UUID) -> Document | None:
    """Get document by ID."""
    return await db.get(Document, id)


async def list_by_application(db: AsyncSession, application_id: UUID) -> list[Document]:
    """All documents of an application, oldest upload first."""
    result = await db.execute(
        select(Document)
        .where(Document.application_id == application_id)
        .order_by(Document.uploaded_at.asc())
    )
    return list(result.scalars().all())


async def mark_verified(db: AsyncSession, document: Document, verified_by: UUID) -> Document:
    """Mark a document as verified by an admin."""
    document.verified = True
    document.verified_at = datetime.now(UTC)
    document.verified_by = verified_by

    await db.commit()
    await db.refresh(document)

    return document
