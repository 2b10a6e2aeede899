"""
Applications Repository

Database operations for admission applications. Only data access lives here;
authorization and validation belong to the service layer.

Timestamps are written explicitly in UTC so that updated_at moves on every
save even when the form payload is unchanged.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from admission_portal.core.exceptions import ConflictError

from .models import Application, ApplicationStatus


async def create(db: AsyncSession, user_id: UUID, form_data: dict[str, Any]) -> Application:
    """
    Create a new draft application for a user.

    Raises:
        IntegrityError: If the user already has an application
    """
    new_application = Application(
        user_id=user_id,
        status=ApplicationStatus.DRAFT,
        form_data=form_data,
    )

    db.add(new_application)
    await db.commit()
    await db.refresh(new_application)

    return new_application


async def get_by_id(db: AsyncSession, id: UUID) -> Application | None:
    """Get application by ID."""
    return await db.get(Application, id)


async def get_by_user_id(db: AsyncSession, user_id: UUID) -> Application | None:
    """Get the single application owned by a user."""
    result = await db.execute(select(Application).where(Application.user_id == user_id))
    return result.scalar_one_or_none()


async def update_form_data(
    db: AsyncSession, application: Application, form_data: dict[str, Any]
) -> Application:
    """
    Overwrite an application's form data. Status is left unchanged.

    A fresh save also re-arms the draft reminder.
    """
    application.form_data = form_data
    application.updated_at = datetime.now(UTC)
    application.reminder_sent_at = None

    await db.commit()
    await db.refresh(application)

    return application


# Allowed transitions when strict mode is enabled.
# In the default (flexible) mode any authorized status change is accepted.
ALLOWED_STATUS_TRANSITIONS: dict[ApplicationStatus, set[ApplicationStatus]] = {
    ApplicationStatus.DRAFT: {
        ApplicationStatus.SUBMITTED,
    },
    ApplicationStatus.SUBMITTED: {
        ApplicationStatus.UNDER_REVIEW,
        ApplicationStatus.DRAFT,  # Returned to the applicant for changes
        ApplicationStatus.APPROVED,
        ApplicationStatus.REJECTED,
    },
    ApplicationStatus.UNDER_REVIEW: {
        ApplicationStatus.APPROVED,
        ApplicationStatus.REJECTED,
        ApplicationStatus.SUBMITTED,  # Review reopened
    },
    # Terminal
    ApplicationStatus.APPROVED: set(),
    # Rejected applicants may revise and resubmit
    ApplicationStatus.REJECTED: {
        ApplicationStatus.DRAFT,
    },
}

# Statuses an applicant may set on their own application in strict mode
APPLICANT_SETTABLE_STATUSES: frozenset[ApplicationStatus] = frozenset(
    {ApplicationStatus.DRAFT, ApplicationStatus.SUBMITTED}
)


class InvalidStatusTransitionError(ConflictError):
    """Raised when a status change is not allowed by the transition table."""

    def __init__(self, current_status: ApplicationStatus, new_status: ApplicationStatus):
        self.current_status = current_status
        self.new_status = new_status
        valid_transitions = ALLOWED_STATUS_TRANSITIONS.get(current_status, set())
        super().__init__(
            message=(
                f"Invalid status transition: {current_status.value} -> {new_status.value}. "
                f"Valid transitions: {sorted(s.value for s in valid_transitions)}"
            ),
            error_code="INVALID_STATUS_TRANSITION",
        )


def check_transition(current_status: ApplicationStatus, new_status: ApplicationStatus) -> None:
    """
    Validate a status change against ALLOWED_STATUS_TRANSITIONS.

    Re-setting the current status is always allowed.

    Raises:
        InvalidStatusTransitionError: If the transition is not allowed
    """
    valid_transitions = ALLOWED_STATUS_TRANSITIONS.get(current_status, set())
    if new_status != current_status and new_status not in valid_transitions:
        raise InvalidStatusTransitionError(current_status, new_status)


async def update_status(
    db: AsyncSession,
    application: Application,
    status: ApplicationStatus,
) -> Application:
    """
    Set an application's status.

    Always writes updated_at; writes submitted_at only when the new status is
    SUBMITTED. Transition rules are checked by the caller.
    """
    now = datetime.now(UTC)

    application.status = status
    application.updated_at = now
    if status == ApplicationStatus.SUBMITTED:
        application.submitted_at = now

    await db.commit()
    await db.refresh(application)

    return application


async def list_applications(
    db: AsyncSession, status: ApplicationStatus | None = None
) -> list[Application]:
    """List applications, most recently updated first, optionally by status."""
    query = select(Application)
    if status is not None:
        query = query.where(Application.status == status)
    query = query.order_by(Application.updated_at.desc())

    result = await db.execute(query)
    return list(result.scalars().all())


async def count_by_status(db: AsyncSession) -> dict[ApplicationStatus, int]:
    """Count applications per status. Every status is present in the result."""
    result = await db.execute(
        select(Application.status, func.count(Application.id)).group_by(Application.status)
    )
    counts = {status: 0 for status in ApplicationStatus}
    for status, count in result.all():
        counts[status] = count
    return counts


# ============================================
# Background Job Repository Methods
# ============================================


async def get_drafts_needing_reminder(
    db: AsyncSession, updated_before: datetime
) -> list[Application]:
    """
    Get drafts that should receive a reminder email.

    Finds applications that:
    1. Are still in DRAFT status
    2. Were last saved before the given datetime
    3. Have NOT yet received a reminder since that save

    Running the job repeatedly yields the same set until reminders are marked.
    """
    result = await db.execute(
        select(Application).where(
            Application.status == ApplicationStatus.DRAFT,
            Application.updated_at < updated_before,
            Application.reminder_sent_at.is_(None),
        )
    )
    return list(result.scalars().all())


async def mark_reminder_sent(
    db: AsyncSession,
    application_id: UUID,
    sent_at: datetime | None = None,
) -> Application | None:
    """
    Record that a draft reminder was sent.

    updated_at is preserved so the reminder does not count as activity.

    Returns:
        The updated application, or None if not found
    """
    application = await get_by_id(db, application_id)

    if not application:
        return None

    application.reminder_sent_at = sent_at or datetime.now(UTC)

    await db.commit()
    await db.refresh(application)

    return application
