"""
Applications Schemas

Pydantic schemas for request validation and response serialization.
JSON bodies use camelCase keys.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from admission_portal.modules.applications.models import ApplicationStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApplicationSaveRequest(CamelModel):
    """
    Body of POST /applications.

    formData is validated by the form schema in the service layer so that
    every violated field is reported at once.
    """

    form_data: Any = None


class StatusUpdateRequest(CamelModel):
    """Body of PATCH /applications/{id}/status. Checked against the enum after authorization."""

    status: str


class ApplicationResponse(CamelModel):
    """An application as returned to clients."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: UUID
    user_id: UUID
    status: ApplicationStatus
    form_data: dict[str, Any]
    created_at: datetime
    updated_at: datetime
    submitted_at: datetime | None = None


class StatusCountsResponse(CamelModel):
    """Dashboard counts per status."""

    total: int
    draft: int
    submitted: int
    under_review: int
    approved: int
    rejected: int

    @classmethod
    def from_counts(cls, counts: dict[ApplicationStatus, int]) -> "StatusCountsResponse":
        return cls(
            total=sum(counts.values()),
            **{status.value: counts.get(status, 0) for status in ApplicationStatus},
        )
