"""
Applications Router

Endpoints:
- POST /applications - Save the caller's form (creates a draft on first save)
- GET /applications/user - The caller's application (204 when none)
- PATCH /applications/{id}/status - Change status (owner or admin)
- GET /applications - Admin list with status filter and search
- GET /applications/stats - Admin per-status counts

All endpoints require a session. Authorization is decided by the access
policy inside the service layer.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from admission_portal.core.auth import CurrentUser, get_current_user
from admission_portal.core.database import get_db
from admission_portal.core.exceptions import (
    PortalError,
    handle_portal_error,
    internal_server_error,
)
from admission_portal.modules.applications import service
from admission_portal.modules.applications.schemas import (
    ApplicationResponse,
    ApplicationSaveRequest,
    StatusCountsResponse,
    StatusUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=ApplicationResponse,
    status_code=status.HTTP_200_OK,
    summary="Save Application Form",
    responses={
        201: {"description": "Draft application created", "model": ApplicationResponse},
        200: {"description": "Existing application updated"},
        400: {"description": "Form data missing or invalid (every violated field listed)"},
        401: {"description": "Not signed in"},
    },
)
async def save_application(
    data: ApplicationSaveRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ApplicationResponse:
    """
    Save the caller's application form.

    The first save creates a draft (201). Later saves overwrite the form data
    and keep the current status (200).
    """
    try:
        application, created = await service.create_or_update_draft(db, user, data.form_data)
        if created:
            response.status_code = status.HTTP_201_CREATED
        return ApplicationResponse.model_validate(application)

    except PortalError as e:
        handle_portal_error(e)
    except Exception as e:
        logger.exception(f"Error saving application for user {user.id}: {e}")
        raise internal_server_error() from e


@router.get(
    "/user",
    response_model=ApplicationResponse,
    summary="Get My Application",
    responses={
        204: {"description": "The caller has not saved an application yet"},
        401: {"description": "Not signed in"},
    },
)
async def get_my_application(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """Return the caller's application, or 204 No Content when there is none."""
    try:
        application = await service.get_application_for_user(db, user.id)
        if application is None:
            return Response(status_code=status.HTTP_204_NO_CONTENT)
        return ApplicationResponse.model_validate(application)

    except PortalError as e:
        handle_portal_error(e)
    except Exception as e:
        logger.exception(f"Error loading application for user {user.id}: {e}")
        raise internal_server_error() from e


@router.patch(
    "/{application_id}/status",
    response_model=ApplicationResponse,
    summary="Update Application Status",
    responses={
        400: {"description": "Unknown status value"},
        401: {"description": "Not signed in"},
        403: {"description": "Neither the owner nor an admin"},
        404: {"description": "Application not found"},
        409: {"description": "Transition not allowed (strict mode)"},
    },
)
async def update_application_status(
    application_id: UUID,
    data: StatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ApplicationResponse:
    """
    Change an application's status.

    Owners use this to submit their own application; admins use it to review.
    """
    try:
        application = await service.set_status(db, user, application_id, data.status)
        return ApplicationResponse.model_validate(application)

    except PortalError as e:
        handle_portal_error(e)
    except Exception as e:
        logger.exception(f"Error updating status of application {application_id}: {e}")
        raise internal_server_error() from e


@router.get(
    "",
    response_model=list[ApplicationResponse],
    summary="List Applications",
    responses={
        400: {"description": "Unknown status filter"},
        401: {"description": "Not signed in"},
        403: {"description": "Admin access required"},
    },
)
async def list_applications(
    status_filter: str | None = Query(None, alias="status", description="Exact status match"),
    search: str | None = Query(
        None, max_length=200, description="Matches applicant full name or national ID"
    ),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> list[ApplicationResponse]:
    """List all applications, most recently updated first. Admin only."""
    try:
        applications = await service.list_applications(
            db, user, status=status_filter, search=search
        )

        logger.info(
            f"Admin {user.id} listed applications "
            f"(status={status_filter}, search={'yes' if search else 'no'}): {len(applications)}"
        )
        return [ApplicationResponse.model_validate(application) for application in applications]

    except PortalError as e:
        handle_portal_error(e)
    except Exception as e:
        logger.exception(f"Error listing applications: {e}")
        raise internal_server_error() from e


@router.get(
    "/stats",
    response_model=StatusCountsResponse,
    summary="Get Application Statistics",
    responses={
        401: {"description": "Not signed in"},
        403: {"description": "Admin access required"},
    },
)
async def get_application_stats(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> StatusCountsResponse:
    """Per-status application counts for the admin dashboard."""
    try:
        counts = await service.get_status_counts(db, user)
        return StatusCountsResponse.from_counts(counts)

    except PortalError as e:
        handle_portal_error(e)
    except Exception as e:
        logger.exception(f"Error getting application stats: {e}")
        raise internal_server_error() from e
