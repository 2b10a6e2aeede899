"""
Documents Schemas
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from admission_portal.modules.documents.models import DocumentType


class DocumentUploadRequest(BaseModel):
    """
    Body of POST /documents.

    documentType is checked against the known types after authorization.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    application_id: UUID
    document_type: str = Field(..., min_length=1, max_length=50)
    file_name: str = Field(..., min_length=1, max_length=255)
    storage_path: str = Field(..., min_length=1, max_length=500)


class DocumentResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: UUID
    application_id: UUID
    document_type: DocumentType
    file_name: str
    storage_path: str
    verified: bool
    verified_at: datetime | None = None
    uploaded_at: datetime
