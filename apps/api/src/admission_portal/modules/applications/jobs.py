"""
Applications Background Jobs

Scheduled task: remind applicants whose application has sat in draft for
DRAFT_REMINDER_AFTER_DAYS without being submitted.

- Idempotent: each draft is marked via reminder_sent_at; saving the form
  again clears the mark so a later lapse earns a fresh reminder.
- Each draft is processed in its own database session; one failure does not
  stop the run.
- Runs hourly; can also be triggered manually through the scheduler.
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from apscheduler.triggers.interval import IntervalTrigger

from admission_portal.core.config import settings
from admission_portal.core.database import async_session_maker
from admission_portal.core.email import send_draft_reminder
from admission_portal.core.scheduler import register_job
from admission_portal.modules.applications import repository
from admission_portal.modules.applications.helpers import (
    get_greeting_name,
    get_notification_email,
)
from admission_portal.modules.applications.models import Application
from admission_portal.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

JOB_ID_SEND_DRAFT_REMINDERS = "applications_send_draft_reminders"


async def _process_draft_reminder(application: Application, executed_at: datetime) -> dict[str, Any]:
    """
    Send one draft reminder and mark it sent.

    Returns:
        Dict with processing result
    """
    async with async_session_maker() as db:
        user = await UserRepository.get_by_id(db, application.user_id)
        if user is None:
            logger.warning(f"No owner found for draft {application.id}, skipping reminder")
            return {
                "application_id": str(application.id),
                "status": "skipped",
                "reason": "owner_not_found",
            }

        days_idle = max((executed_at - application.updated_at).days, 1)

        email_sent = await send_draft_reminder(
            to_email=get_notification_email(user),
            applicant_name=get_greeting_name(application, user),
            days_idle=days_idle,
        )

        if not email_sent:
            # Marked anyway so a broken mail provider does not cause hourly retries
            logger.error(f"Failed to send draft reminder for application {application.id}")

        await repository.mark_reminder_sent(db, application.id, sent_at=executed_at)

        logger.info(f"Processed draft reminder for application {application.id}")

        return {
            "application_id": str(application.id),
            "status": "sent" if email_sent else "marked_sent_email_failed",
        }


async def send_draft_reminders() -> dict[str, Any]:
    """
    Email applicants whose drafts have been idle past the threshold.

    Returns:
        Dict with job execution summary:
        - executed_at: When the job ran
        - reminders: Per-application results
        - total_processed: Drafts handled
        - total_errors: Drafts that failed
    """
    executed_at = datetime.now(UTC)
    threshold = executed_at - timedelta(days=settings.draft_reminder_after_days)

    logger.info(
        f"Starting draft reminder job. Looking for drafts idle since {threshold.isoformat()}"
    )

    results: dict[str, Any] = {
        "executed_at": executed_at.isoformat(),
        "reminders": [],
        "total_processed": 0,
        "total_errors": 0,
    }

    async with async_session_maker() as db:
        drafts = await repository.get_drafts_needing_reminder(db, updated_before=threshold)

    logger.info(f"Found {len(drafts)} drafts needing a reminder")

    for application in drafts:
        try:
            result = await _process_draft_reminder(application, executed_at)
            results["reminders"].append(result)
            results["total_processed"] += 1
        except Exception as e:
            logger.error(
                f"Error processing draft reminder for application {application.id}: {e}",
                exc_info=True,
            )
            results["reminders"].append(
                {
                    "application_id": str(application.id),
                    "status": "error",
                    "error": str(e),
                }
            )
            results["total_errors"] += 1

    logger.info(
        f"Draft reminder job completed. "
        f"Processed: {results['total_processed']}, Errors: {results['total_errors']}"
    )

    return results


def register_application_jobs() -> None:
    """
    Register application background jobs with the scheduler.

    Call during startup, before the scheduler is started.
    """
    register_job(
        job_id=JOB_ID_SEND_DRAFT_REMINDERS,
        func=send_draft_reminders,
        trigger=IntervalTrigger(hours=1),
    )
    logger.info(f"Registered job: {JOB_ID_SEND_DRAFT_REMINDERS} (interval: 1 hour)")
