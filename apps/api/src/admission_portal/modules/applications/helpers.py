"""
Applications Shared Helpers

Read-side helpers over the stored form payload, shared by service.py,
filters.py and jobs.py. Stored payloads are read with .get() so a row saved
under an older form shape never breaks a listing.
"""

from typing import Any

from admission_portal.modules.applications.models import Application
from admission_portal.modules.users.models import User


def _personal_info(application: Application) -> dict[str, Any]:
    form_data = application.form_data or {}
    return form_data.get("personalInfo") or {}


def get_applicant_full_name(application: Application) -> str:
    """
    Derived full name: first, middle and last name joined by single spaces.

    Blank parts are skipped, so an applicant with no middle name gets
    "First Last".
    """
    personal = _personal_info(application)
    parts = (personal.get("firstName"), personal.get("middleName"), personal.get("lastName"))
    return " ".join(str(part).strip() for part in parts if part and str(part).strip())


def get_national_id(application: Application) -> str:
    """National ID or birth certificate number from the form, or empty string."""
    return str(_personal_info(application).get("nationalIdOrBirthCertNo") or "")


def get_notification_email(user: User) -> str:
    """
    Where to send notifications for an applicant.

    The account username, which is always an email address.
    """
    return user.username


def get_greeting_name(application: Application, user: User) -> str:
    """Name used in emails: the form's full name, else the account's display name."""
    return get_applicant_full_name(application) or user.display_name
