"""
Access Policy

One place that decides whether a signed-in user may perform an action.
Every service operation calls AccessPolicy.authorize before touching data.

    Admin-only:        LIST_APPLICATIONS, VIEW_STATISTICS, VERIFY_DOCUMENT
    Owner or admin:    SET_APPLICATION_STATUS, UPLOAD_DOCUMENT, LIST_DOCUMENTS

Ownership means the requester's own (single) application is the target.
"""

import enum
import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from admission_portal.core.auth import CurrentUser
from admission_portal.core.exceptions import AuthenticationError, AuthorizationError
from admission_portal.modules.applications import repository as applications_repository
from admission_portal.modules.applications.models import Application

logger = logging.getLogger(__name__)


class Action(str, enum.Enum):
    """Actions guarded by the access policy."""

    LIST_APPLICATIONS = "list_applications"
    VIEW_STATISTICS = "view_statistics"
    VERIFY_DOCUMENT = "verify_document"
    SET_APPLICATION_STATUS = "set_application_status"
    UPLOAD_DOCUMENT = "upload_document"
    LIST_DOCUMENTS = "list_documents"


ADMIN_ONLY_ACTIONS: frozenset[Action] = frozenset(
    {Action.LIST_APPLICATIONS, Action.VIEW_STATISTICS, Action.VERIFY_DOCUMENT}
)

OWNER_OR_ADMIN_ACTIONS: frozenset[Action] = frozenset(
    {Action.SET_APPLICATION_STATUS, Action.UPLOAD_DOCUMENT, Action.LIST_DOCUMENTS}
)


class AccessPolicy:
    """Role and ownership rules for portal actions."""

    async def authorize(
        self,
        db: AsyncSession,
        requester: CurrentUser | None,
        action: Action,
        application_id: UUID | None = None,
    ) -> Application | None:
        """
        Check that `requester` may perform `action`.

        Args:
            db: Database session
            requester: The signed-in user (None when unauthenticated)
            action: The action being attempted
            application_id: Target application for owner-or-admin actions

        Returns:
            The requester's own application when access was granted through
            ownership, otherwise None (admins are not looked up).

        Raises:
            AuthenticationError: If there is no requester
            AuthorizationError: If the requester lacks the role or ownership
        """
        if requester is None:
            raise AuthenticationError()

        if requester.is_admin:
            return None

        if action in ADMIN_ONLY_ACTIONS:
            logger.warning(f"Denied {action.value} to non-admin user {requester.id}")
            raise AuthorizationError("Admin access required.")

        if action in OWNER_OR_ADMIN_ACTIONS and application_id is not None:
            own_application = await applications_repository.get_by_user_id(db, requester.id)
            if own_application is not None and own_application.id == application_id:
                return own_application

        logger.warning(
            f"Denied {action.value} on application {application_id} to user {requester.id}"
        )
        raise AuthorizationError()


policy = AccessPolicy()
