"""
Documents Router

Endpoints:
- POST /documents - Record an upload (owner or admin)
- GET /documents/{application_id} - List an application's documents (owner or admin)
- PATCH /documents/{document_id}/verify - Verify a document (admin)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from admission_portal.core.auth import CurrentUser, get_current_user
from admission_portal.core.database import get_db
from admission_portal.core.exceptions import (
    PortalError,
    handle_portal_error,
    internal_server_error,
)
from admission_portal.modules.documents import service
from admission_portal.modules.documents.schemas import DocumentResponse, DocumentUploadRequest

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload Document",
    responses={
        400: {"description": "Invalid body or unknown document type"},
        401: {"description": "Not signed in"},
        403: {"description": "Neither the owner nor an admin"},
        404: {"description": "Application not found"},
    },
)
async def upload_document(
    data: DocumentUploadRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> DocumentResponse:
    """Record a document upload. Replaces any earlier document of the same type."""
    try:
        document = await service.upload_document(
            db,
            user,
            application_id=data.application_id,
            document_type=data.document_type,
            file_name=data.file_name,
            storage_path=data.storage_path,
        )
        return DocumentResponse.model_validate(document)

    except PortalError as e:
        handle_portal_error(e)
    except Exception as e:
        logger.exception(f"Error uploading document for application {data.application_id}: {e}")
        raise internal_server_error() from e


@router.get(
    "/{application_id}",
    response_model=list[DocumentResponse],
    summary="List Documents",
    responses={
        401: {"description": "Not signed in"},
        403: {"description": "Neither the owner nor an admin"},
        404: {"description": "Application not found"},
    },
)
async def list_documents(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> list[DocumentResponse]:
    try:
        documents = await service.list_documents(db, user, application_id)
        return [DocumentResponse.model_validate(document) for document in documents]

    except PortalError as e:
        handle_portal_error(e)
    except Exception as e:
        logger.exception(f"Error listing documents for application {application_id}: {e}")
        raise internal_server_error() from e


@router.patch(
    "/{document_id}/verify",
    response_model=DocumentResponse,
    summary="Verify Document",
    responses={
        401: {"description": "Not signed in"},
        403: {"description": "Admin access required"},
        404: {"description": "Document not found"},
    },
)
async def verify_document(
    document_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> DocumentResponse:
    """Mark a document verified. Repeating the call is harmless."""
    try:
        document = await service.verify_document(db, user, document_id)
        return DocumentResponse.model_validate(document)

    except PortalError as e:
        handle_portal_error(e)
    except Exception as e:
        logger.exception(f"Error verifying document {document_id}: {e}")
        raise internal_server_error() from e
