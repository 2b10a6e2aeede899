"""
Admin list filtering.

Status narrowing happens in SQL (repository.list_applications). The free-text
search runs over the fetched rows because the searchable fields live inside
the JSON form payload.
"""

from admission_portal.modules.applications.helpers import (
    get_applicant_full_name,
    get_national_id,
)
from admission_portal.modules.applications.models import Application


def normalize_search(search: str | None) -> str | None:
    """Lower-case and trim a search term; blank terms mean no search."""
    if search is None:
        return None
    term = search.strip().lower()
    return term or None


def matches_search(application: Application, term: str) -> bool:
    """
    Case-insensitive substring match over the derived full name or the
    national ID. `term` must already be normalized.
    """
    if term in get_applicant_full_name(application).lower():
        return True
    return term in get_national_id(application).lower()


def apply_search(applications: list[Application], search: str | None) -> list[Application]:
    """Keep only applications matching the search term, preserving order."""
    term = normalize_search(search)
    if term is None:
        return applications
    return [application for application in applications if matches_search(application, term)]
