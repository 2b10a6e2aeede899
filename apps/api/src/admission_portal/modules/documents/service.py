"""
Documents Service Layer

Business logic for supporting documents:
- Upload (owner or admin): replaces any previous document of the same type
- Listing (owner or admin), oldest upload first
- Verification (admin only), idempotent
"""

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from admission_portal.core.auth import CurrentUser
from admission_portal.core.exceptions import NotFoundError, ValidationError
from admission_portal.modules.access.policy import Action, policy
from admission_portal.modules.applications import repository as applications_repository
from admission_portal.modules.applications.models import Application
from admission_portal.modules.documents import repository
from admission_portal.modules.documents.models import Document, DocumentType

logger = logging.getLogger(__name__)


def parse_document_type(value: str) -> DocumentType:
    """
    Raises:
        ValidationError: If the value is not a known document type
    """
    try:
        return DocumentType(value)
    except ValueError:
        allowed = ", ".join(t.value for t in DocumentType)
        raise ValidationError.for_field("documentType", f"must be one of: {allowed}") from None


async def _authorized_application(
    db: AsyncSession,
    requester: CurrentUser,
    action: Action,
    application_id: UUID,
) -> Application:
    """Authorize an owner-or-admin action and return the target application."""
    own_application = await policy.authorize(db, requester, action, application_id)
    if own_application is not None:
        return own_application

    application = await applications_repository.get_by_id(db, application_id)
    if application is None:
        raise NotFoundError("Application", application_id)
    return application


async def upload_document(
    db: AsyncSession,
    requester: CurrentUser,
    application_id: UUID,
    document_type: str,
    file_name: str,
    storage_path: str,
) -> Document:
    """
    Record an uploaded document for an application.

    Raises:
        AuthorizationError: If the requester is neither admin nor owner
        NotFoundError: If the application does not exist
        ValidationError: If the document type is unknown
    """
    application = await _authorized_application(
        db, requester, Action.UPLOAD_DOCUMENT, application_id
    )
    doc_type = parse_document_type(document_type)

    target_id = application.id
    replace_kwargs = {
        "application_id": target_id,
        "document_type": doc_type,
        "file_name": file_name,
        "storage_path": storage_path,
    }
    try:
        document = await repository.replace(db, **replace_kwargs)
    except IntegrityError:
        # A concurrent upload of the same type committed first; replace it
        await db.rollback()
        logger.info(
            f"Concurrent {doc_type.value} upload on application {target_id}, retrying"
        )
        document = await repository.replace(db, **replace_kwargs)

    logger.info(
        f"Document {document.id} ({doc_type.value}) uploaded to application "
        f"{target_id} by user {requester.id}"
    )
    return document


async def list_documents(
    db: AsyncSession,
    requester: CurrentUser,
    application_id: UUID,
) -> list[Document]:
    """
    List an application's documents.

    Raises:
        AuthorizationError: If the requester is neither admin nor owner
        NotFoundError: If the application does not exist
    """
    application = await _authorized_application(
        db, requester, Action.LIST_DOCUMENTS, application_id
    )
    return await repository.list_by_application(db, application.id)


async def verify_document(
    db: AsyncSession,
    requester: CurrentUser,
    document_id: UUID,
) -> Document:
    """
    Mark a document verified. Verifying an already verified document returns
    it unchanged.

    Raises:
        AuthorizationError: If the requester is not an admin
        NotFoundError: If the document does not exist
    """
    await policy.authorize(db, requester, Action.VERIFY_DOCUMENT)

    document = await repository.get_by_id(db, document_id)
    if document is None:
        raise NotFoundError("Document", document_id)

    if document.verified:
        return document

    document = await repository.mark_verified(db, document, verified_by=requester.id)
    logger.info(f"Document {document.id} verified by admin {requester.id}")
    return document
