"""
Applications Module

Handles the admission application lifecycle:
1. Draft saving with whole-form validation (one application per user)
2. Status changes by the owner (submit) or an admin (review)
3. Admin listing with status filter and search, plus per-status counts
4. Background job reminding applicants about idle drafts

API Endpoints (see router.py):
- POST /applications
- GET /applications/user
- PATCH /applications/{id}/status
- GET /applications
- GET /applications/stats
"""

from .jobs import register_application_jobs
from .models import Application, ApplicationStatus

__all__ = ["Application", "ApplicationStatus", "register_application_jobs"]
