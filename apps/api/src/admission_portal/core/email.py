"""
Email Service using Resend

Sends applicant notifications for the admission workflow. When no Resend API
key is configured the message is logged instead of sent.
"""

import asyncio
import logging
from html import escape

import resend

from admission_portal.core.config import settings

logger = logging.getLogger(__name__)

resend.api_key = settings.resend_api_key

_STATUS_HEADLINES = {
    "draft": "Your application has been returned to draft",
    "submitted": "We have received your application",
    "under_review": "Your application is under review",
    "approved": "Congratulations, your application has been approved",
    "rejected": "An update on your application",
}

_STATUS_MESSAGES = {
    "draft": "Your application is editable again. Please review it and submit when ready.",
    "submitted": "Your application has been submitted and is waiting for the admissions office.",
    "under_review": "The admissions office has started reviewing your application.",
    "approved": "We are pleased to offer you admission. Log in to the portal for next steps.",
    "rejected": "After careful review we are unable to offer you admission at this time.",
}

_LAYOUT = """
    <!DOCTYPE html>
    <html>
    <head>
        <style>
            body {{ font-family: system-ui, -apple-system, sans-serif; line-height: 1.6; color: #1f2937; }}
            .container {{ max-width: 600px; margin: 0 auto; padding: 40px 20px; }}
            .header {{ color: #1a365d; margin-bottom: 24px; }}
            .button {{ display: inline-block; background-color: #1a365d; color: white; padding: 14px 28px; text-decoration: none; border-radius: 8px; margin: 24px 0; }}
            .footer {{ margin-top: 40px; padding-top: 20px; border-top: 1px solid #e5e7eb; color: #6b7280; font-size: 14px; }}
        </style>
    </head>
    <body>
        <div class="container">
            <h1 class="header">{headline}</h1>
            {body}
            <a href="{link}" class="button">Open the Admission Portal</a>
            <div class="footer">
                <p>This is an automated message from the university admissions office.</p>
            </div>
        </div>
    </body>
    </html>
"""


async def send_email(
    to_email: str,
    subject: str,
    html_content: str,
) -> bool:
    """
    Send an email using Resend.

    Args:
        to_email: Recipient email address
        subject: Email subject line
        html_content: HTML content of the email

    Returns:
        True if email was sent (or logged) successfully
    """
    if not resend.api_key:
        logger.warning("RESEND_API_KEY not set - logging email instead of sending")
        logger.info(f"EMAIL TO: {to_email} | SUBJECT: {subject}")
        return True

    try:
        params: resend.Emails.SendParams = {
            "from": settings.email_from,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }

        # Resend's client is synchronous
        email = await asyncio.to_thread(resend.Emails.send, params)
        logger.info(f"Email sent successfully to {to_email}, id: {email['id']}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False


async def send_application_status_changed(
    to_email: str,
    applicant_name: str,
    status: str,
) -> bool:
    """Notify an applicant that their application status changed."""
    headline = _STATUS_HEADLINES.get(status, "Your application status has changed")
    message = _STATUS_MESSAGES.get(status, f"Your application is now '{escape(status)}'.")
    body = f"<p>Hello {escape(applicant_name)},</p><p>{message}</p>"

    return await send_email(
        to_email=to_email,
        subject=headline,
        html_content=_LAYOUT.format(
            headline=headline,
            body=body,
            link=f"{settings.frontend_url}/dashboard",
        ),
    )


async def send_draft_reminder(
    to_email: str,
    applicant_name: str,
    days_idle: int,
) -> bool:
    """Remind an applicant that their draft application has not been submitted."""
    headline = "Your application is not yet submitted"
    body = (
        f"<p>Hello {escape(applicant_name)},</p>"
        f"<p>Your admission application has been saved as a draft for {days_idle} days "
        "but has not been submitted. Complete the remaining sections and submit it so "
        "the admissions office can review it.</p>"
    )

    return await send_email(
        to_email=to_email,
        subject=headline,
        html_content=_LAYOUT.format(
            headline=headline,
            body=body,
            link=f"{settings.frontend_url}/application",
        ),
    )
