"""
Applications Service Layer

Business logic for the admission application lifecycle.

This module implements:
1. Draft saving:
   - Validate the whole form (every violation reported at once)
   - Create the user's single application as a draft, or overwrite the
     existing one's form data without touching its status
   - A concurrent first save that loses the insert race updates the winner

2. Status changes:
   - Authorization first (admin, or owner of the target application)
   - Unknown application -> not found; unknown status -> validation error
   - Optional strict transition table (STRICT_STATUS_TRANSITIONS)
   - Best-effort email to the applicant when someone else changes the status

3. Admin queries:
   - Listing with status filter and free-text search
   - Per-status dashboard counts
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from admission_portal.core.auth import CurrentUser
from admission_portal.core.config import settings
from admission_portal.core.email import send_application_status_changed
from admission_portal.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from admission_portal.modules.access.policy import Action, policy
from admission_portal.modules.applications import repository
from admission_portal.modules.applications.filters import apply_search
from admission_portal.modules.applications.form_schema import validate_form_data
from admission_portal.modules.applications.helpers import (
    get_greeting_name,
    get_notification_email,
)
from admission_portal.modules.applications.models import Application, ApplicationStatus
from admission_portal.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

STATUS_VALUES = [status.value for status in ApplicationStatus]


def parse_status(value: str, field: str = "status") -> ApplicationStatus:
    """
    Convert a raw status string into an ApplicationStatus.

    Raises:
        ValidationError: If the value is not one of the five statuses
    """
    try:
        return ApplicationStatus(value)
    except ValueError:
        raise ValidationError.for_field(
            field, f"must be one of: {', '.join(STATUS_VALUES)}"
        ) from None


# ============================================
# Applicant operations
# ============================================


async def create_or_update_draft(
    db: AsyncSession,
    requester: CurrentUser,
    form_data: Any,
) -> tuple[Application, bool]:
    """
    Save the requester's application form.

    Args:
        db: Database session
        requester: The signed-in user
        form_data: Raw form payload from the request body

    Returns:
        (application, created) where created is True when a new draft was made

    Raises:
        ValidationError: If formData is missing
        FormValidationError: If the form fails validation
    """
    if form_data is None:
        raise ValidationError.for_field("formData", "is required")

    payload = validate_form_data(form_data).to_payload()

    existing = await repository.get_by_user_id(db, requester.id)
    if existing is not None:
        application = await repository.update_form_data(db, existing, payload)
        logger.info(f"Application {application.id} form saved by user {requester.id}")
        return application, False

    try:
        application = await repository.create(db, requester.id, payload)
    except IntegrityError:
        # Another request created the application first; save into that one
        await db.rollback()
        existing = await repository.get_by_user_id(db, requester.id)
        if existing is None:
            raise
        application = await repository.update_form_data(db, existing, payload)
        logger.info(f"Application {application.id} form saved by user {requester.id} (after race)")
        return application, False

    logger.info(f"Draft application {application.id} created for user {requester.id}")
    return application, True


async def get_application_for_user(db: AsyncSession, user_id: UUID) -> Application | None:
    """Return the user's application, or None when they have never saved one."""
    return await repository.get_by_user_id(db, user_id)


# ============================================
# Status changes
# ============================================


async def _notify_status_changed(db: AsyncSession, application: Application) -> None:
    """Email the applicant about a status change. Failures are logged, never raised."""
    try:
        user = await UserRepository.get_by_id(db, application.user_id)
        if user is None:
            logger.warning(f"No owner found for application {application.id}; email skipped")
            return

        email_sent = await send_application_status_changed(
            to_email=get_notification_email(user),
            applicant_name=get_greeting_name(application, user),
            status=application.status.value,
        )
        if not email_sent:
            logger.error(f"Failed to send status email for application {application.id}")
    except Exception as e:
        logger.error(f"Exception sending status email for application {application.id}: {e}")


async def set_status(
    db: AsyncSession,
    requester: CurrentUser,
    application_id: UUID,
    new_status: str,
) -> Application:
    """
    Change an application's status.

    Order of checks: authorization, existence, status value, then (strict
    mode only) the transition table.

    Raises:
        AuthorizationError: If the requester is neither admin nor owner, or
            (strict mode) an applicant sets a reviewer-only status
        NotFoundError: If the application does not exist
        ValidationError: If new_status is not a known status
        InvalidStatusTransitionError: If strict mode rejects the transition
    """
    own_application = await policy.authorize(
        db, requester, Action.SET_APPLICATION_STATUS, application_id
    )

    application = own_application or await repository.get_by_id(db, application_id)
    if application is None:
        raise NotFoundError("Application", application_id)

    status = parse_status(new_status)

    if settings.strict_status_transitions:
        if not requester.is_admin and status not in repository.APPLICANT_SETTABLE_STATUSES:
            logger.warning(
                f"User {requester.id} tried to set reviewer-only status {status.value} "
                f"on application {application.id}"
            )
            raise AuthorizationError("Only an administrator can set this status.")
        repository.check_transition(application.status, status)

    previous_status = application.status
    application = await repository.update_status(db, application, status)

    logger.info(
        f"Application {application.id} status {previous_status.value} -> {status.value} "
        f"by user {requester.id}"
    )

    if previous_status != status and requester.id != application.user_id:
        await _notify_status_changed(db, application)

    return application


# ============================================
# Admin queries
# ============================================


async def list_applications(
    db: AsyncSession,
    requester: CurrentUser,
    status: str | None = None,
    search: str | None = None,
) -> list[Application]:
    """
    List all applications for the admin dashboard.

    Most recently updated first. `status` narrows by exact match; `search`
    matches the applicant's full name or national ID (case-insensitive).

    Raises:
        AuthorizationError: If the requester is not an admin
        ValidationError: If status is not a known status
    """
    await policy.authorize(db, requester, Action.LIST_APPLICATIONS)

    status_filter = parse_status(status) if status else None
    applications = await repository.list_applications(db, status=status_filter)

    return apply_search(applications, search)


async def get_status_counts(
    db: AsyncSession,
    requester: CurrentUser,
) -> dict[ApplicationStatus, int]:
    """
    Count applications per status.

    Raises:
        AuthorizationError: If the requester is not an admin
    """
    await policy.authorize(db, requester, Action.VIEW_STATISTICS)
    return await repository.count_by_status(db)
