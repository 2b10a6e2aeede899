"""
Tests for the applications service layer.

The repository module is patched per test; the access policy runs for real
against a patched ownership lookup (policy_repo fixture).
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from admission_portal.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from admission_portal.modules.applications import repository as real_repository
from admission_portal.modules.applications.form_schema import FormValidationError
from admission_portal.modules.applications.models import ApplicationStatus
from admission_portal.modules.applications.repository import InvalidStatusTransitionError
from admission_portal.modules.applications.service import (
    create_or_update_draft,
    get_application_for_user,
    get_status_counts,
    list_applications,
    set_status,
)

SERVICE = "admission_portal.modules.applications.service"


@pytest.fixture
def mock_repo():
    """Patch the service's repository; status updates use the real implementation."""
    with patch(f"{SERVICE}.repository") as repo:
        repo.update_status = real_repository.update_status
        repo.APPLICANT_SETTABLE_STATUSES = real_repository.APPLICANT_SETTABLE_STATUSES
        repo.check_transition = real_repository.check_transition
        yield repo


@pytest.fixture
def mock_email():
    with (
        patch(f"{SERVICE}.send_application_status_changed", new_callable=AsyncMock) as send,
        patch(f"{SERVICE}.UserRepository") as users,
    ):
        send.return_value = True
        users.get_by_id = AsyncMock(return_value=None)
        yield send, users


@pytest.fixture
def strict_mode():
    with patch(f"{SERVICE}.settings") as mock_settings:
        mock_settings.strict_status_transitions = True
        yield mock_settings


class TestCreateOrUpdateDraft:
    @pytest.mark.asyncio
    async def test_first_save_creates_draft(self, mock_db, student, form_payload, make_application):
        created_app = make_application(student.id)

        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_user_id = AsyncMock(return_value=None)
            mock_repo.create = AsyncMock(return_value=created_app)

            application, created = await create_or_update_draft(mock_db, student, form_payload)

        assert created is True
        assert application is created_app
        mock_repo.create.assert_awaited_once_with(mock_db, student.id, form_payload)

    @pytest.mark.asyncio
    async def test_later_save_overwrites_and_keeps_status(
        self, mock_db, student, form_payload, make_application
    ):
        existing = make_application(student.id, status=ApplicationStatus.SUBMITTED, form_data={})

        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_user_id = AsyncMock(return_value=existing)
            mock_repo.update_form_data = real_repository.update_form_data
            mock_repo.create = AsyncMock()

            application, created = await create_or_update_draft(mock_db, student, form_payload)

        assert created is False
        assert application is existing
        assert application.status == ApplicationStatus.SUBMITTED
        assert application.form_data == form_payload
        mock_repo.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_saved_payload_is_normalized(self, mock_db, student, form_payload, make_application):
        del form_payload["medicalInfo"]

        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_user_id = AsyncMock(return_value=None)
            mock_repo.create = AsyncMock(return_value=make_application(student.id))

            await create_or_update_draft(mock_db, student, form_payload)

        saved = mock_repo.create.await_args.args[2]
        assert saved["medicalInfo"]["everAdmitted"] is False

    @pytest.mark.asyncio
    async def test_missing_form_data(self, mock_db, student):
        with patch(f"{SERVICE}.repository") as mock_repo:
            with pytest.raises(ValidationError) as exc_info:
                await create_or_update_draft(mock_db, student, None)

        assert exc_info.value.fields == ["formData"]
        mock_repo.get_by_user_id.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_form_writes_nothing(self, mock_db, student, form_payload):
        form_payload["acceptance"]["acceptOffer"] = False

        with patch(f"{SERVICE}.repository") as mock_repo:
            with pytest.raises(FormValidationError) as exc_info:
                await create_or_update_draft(mock_db, student, form_payload)

        assert exc_info.value.fields == ["acceptance.acceptOffer"]
        mock_repo.create.assert_not_called()
        mock_repo.update_form_data.assert_not_called()

    @pytest.mark.asyncio
    async def test_lost_insert_race_updates_winner(
        self, mock_db, student, form_payload, make_application
    ):
        winner = make_application(student.id, form_data={})

        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_user_id = AsyncMock(side_effect=[None, winner])
            mock_repo.create = AsyncMock(side_effect=IntegrityError("insert", {}, Exception()))
            mock_repo.update_form_data = AsyncMock(return_value=winner)

            application, created = await create_or_update_draft(mock_db, student, form_payload)

        assert created is False
        assert application is winner
        mock_db.rollback.assert_awaited_once()
        mock_repo.update_form_data.assert_awaited_once_with(mock_db, winner, form_payload)


class TestGetApplicationForUser:
    @pytest.mark.asyncio
    async def test_none_when_never_saved(self, mock_db, student):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_user_id = AsyncMock(return_value=None)

            assert await get_application_for_user(mock_db, student.id) is None

    @pytest.mark.asyncio
    async def test_returns_users_application(self, mock_db, student, make_application):
        existing = make_application(student.id)

        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_user_id = AsyncMock(return_value=existing)

            assert await get_application_for_user(mock_db, student.id) is existing


class TestSetStatus:
    @pytest.mark.asyncio
    async def test_owner_submits_own_application(
        self, mock_db, student, make_application, policy_repo, mock_repo, mock_email
    ):
        own = make_application(student.id)
        policy_repo.get_by_user_id.return_value = own

        application = await set_status(mock_db, student, own.id, "submitted")

        assert application.status == ApplicationStatus.SUBMITTED
        assert application.submitted_at is not None
        # Owner-initiated changes do not email the owner
        mock_email[0].assert_not_awaited()

    @pytest.mark.parametrize("new_status", [status.value for status in ApplicationStatus])
    @pytest.mark.asyncio
    async def test_non_owner_is_refused_for_every_status(
        self,
        mock_db,
        student,
        other_student,
        make_application,
        policy_repo,
        mock_repo,
        new_status,
    ):
        target = make_application(other_student.id)
        own = make_application(student.id)
        policy_repo.get_by_user_id.return_value = own
        mock_repo.get_by_id = AsyncMock(return_value=target)

        with pytest.raises(AuthorizationError):
            await set_status(mock_db, student, target.id, new_status)

        assert target.status == ApplicationStatus.DRAFT
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_student_without_application_is_refused(
        self, mock_db, student, policy_repo, mock_repo
    ):
        with pytest.raises(AuthorizationError):
            await set_status(mock_db, student, uuid4(), "submitted")

        mock_repo.get_by_id.assert_not_called()

    @pytest.mark.asyncio
    async def test_authorization_precedes_status_validation(
        self, mock_db, student, policy_repo, mock_repo
    ):
        with pytest.raises(AuthorizationError):
            await set_status(mock_db, student, uuid4(), "not-a-status")

    @pytest.mark.asyncio
    async def test_admin_unknown_application(self, mock_db, admin, mock_repo):
        mock_repo.get_by_id = AsyncMock(return_value=None)

        with pytest.raises(NotFoundError) as exc_info:
            await set_status(mock_db, admin, uuid4(), "approved")

        assert exc_info.value.error_code == "APPLICATION_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_unknown_status_value(self, mock_db, admin, student, make_application, mock_repo):
        target = make_application(student.id)
        mock_repo.get_by_id = AsyncMock(return_value=target)

        with pytest.raises(ValidationError) as exc_info:
            await set_status(mock_db, admin, target.id, "archived")

        assert exc_info.value.fields == ["status"]
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_admin_may_move_anywhere_in_flexible_mode(
        self, mock_db, admin, student, make_application, mock_repo, mock_email
    ):
        target = make_application(student.id, status=ApplicationStatus.APPROVED)
        mock_repo.get_by_id = AsyncMock(return_value=target)

        application = await set_status(mock_db, admin, target.id, "draft")

        assert application.status == ApplicationStatus.DRAFT
        assert application.submitted_at is None

    @pytest.mark.asyncio
    async def test_admin_change_emails_owner(
        self, mock_db, admin, student, make_application, make_user, mock_repo, mock_email
    ):
        send, users = mock_email
        users.get_by_id.return_value = make_user(student)
        target = make_application(student.id, status=ApplicationStatus.SUBMITTED)
        mock_repo.get_by_id = AsyncMock(return_value=target)

        await set_status(mock_db, admin, target.id, "approved")

        send.assert_awaited_once_with(
            to_email=student.username,
            applicant_name="Wanjiru Akinyi Otieno",
            status="approved",
        )

    @pytest.mark.asyncio
    async def test_email_failure_does_not_fail_request(
        self, mock_db, admin, student, make_application, make_user, mock_repo, mock_email
    ):
        send, users = mock_email
        users.get_by_id.return_value = make_user(student)
        send.side_effect = RuntimeError("provider down")
        target = make_application(student.id, status=ApplicationStatus.SUBMITTED)
        mock_repo.get_by_id = AsyncMock(return_value=target)

        application = await set_status(mock_db, admin, target.id, "rejected")

        assert application.status == ApplicationStatus.REJECTED


class TestSetStatusStrictMode:
    @pytest.mark.asyncio
    async def test_disallowed_transition(
        self, mock_db, admin, student, make_application, mock_repo, strict_mode
    ):
        target = make_application(student.id, status=ApplicationStatus.APPROVED)
        mock_repo.get_by_id = AsyncMock(return_value=target)

        with pytest.raises(InvalidStatusTransitionError):
            await set_status(mock_db, admin, target.id, "draft")

        assert target.status == ApplicationStatus.APPROVED

    @pytest.mark.asyncio
    async def test_allowed_transition(
        self, mock_db, admin, student, make_application, mock_repo, mock_email, strict_mode
    ):
        target = make_application(student.id, status=ApplicationStatus.SUBMITTED)
        mock_repo.get_by_id = AsyncMock(return_value=target)

        application = await set_status(mock_db, admin, target.id, "under_review")

        assert application.status == ApplicationStatus.UNDER_REVIEW

    @pytest.mark.asyncio
    async def test_owner_cannot_approve_own_application(
        self, mock_db, student, make_application, policy_repo, mock_repo, strict_mode
    ):
        own = make_application(student.id, status=ApplicationStatus.SUBMITTED)
        policy_repo.get_by_user_id.return_value = own

        with pytest.raises(AuthorizationError):
            await set_status(mock_db, student, own.id, "approved")

    @pytest.mark.asyncio
    async def test_owner_can_submit(
        self, mock_db, student, make_application, policy_repo, mock_repo, strict_mode
    ):
        own = make_application(student.id)
        policy_repo.get_by_user_id.return_value = own

        application = await set_status(mock_db, student, own.id, "submitted")

        assert application.status == ApplicationStatus.SUBMITTED


class TestListApplications:
    @pytest.mark.asyncio
    async def test_students_are_refused(self, mock_db, student, mock_repo):
        with pytest.raises(AuthorizationError):
            await list_applications(mock_db, student)

        mock_repo.list_applications.assert_not_called()

    @pytest.mark.asyncio
    async def test_status_filter_passed_to_repository(
        self, mock_db, admin, student, make_application, mock_repo
    ):
        rows = [make_application(student.id, status=ApplicationStatus.SUBMITTED)]
        mock_repo.list_applications = AsyncMock(return_value=rows)

        result = await list_applications(mock_db, admin, status="submitted")

        assert result == rows
        mock_repo.list_applications.assert_awaited_once_with(
            mock_db, status=ApplicationStatus.SUBMITTED
        )

    @pytest.mark.asyncio
    async def test_search_combines_with_status(
        self, mock_db, admin, make_application, form_payload, mock_repo
    ):
        match = make_application(uuid4(), status=ApplicationStatus.SUBMITTED)
        other_form = {**form_payload, "personalInfo": {"firstName": "Brian", "lastName": "Kamau"}}
        other = make_application(uuid4(), status=ApplicationStatus.SUBMITTED, form_data=other_form)
        mock_repo.list_applications = AsyncMock(return_value=[match, other])

        result = await list_applications(mock_db, admin, status="submitted", search="otieno")

        assert result == [match]

    @pytest.mark.asyncio
    async def test_unknown_status_filter(self, mock_db, admin, mock_repo):
        with pytest.raises(ValidationError):
            await list_applications(mock_db, admin, status="pending")


class TestGetStatusCounts:
    @pytest.mark.asyncio
    async def test_admin_gets_counts(self, mock_db, admin, mock_repo):
        counts = {status: 0 for status in ApplicationStatus}
        counts[ApplicationStatus.DRAFT] = 2
        mock_repo.count_by_status = AsyncMock(return_value=counts)

        assert await get_status_counts(mock_db, admin) == counts

    @pytest.mark.asyncio
    async def test_students_are_refused(self, mock_db, student, mock_repo):
        with pytest.raises(AuthorizationError):
            await get_status_counts(mock_db, student)


class TestSubmittedAtOnlyOnSubmit:
    @pytest.mark.asyncio
    async def test_review_after_submit_keeps_submission_time(
        self, mock_db, admin, student, make_application, mock_repo, mock_email
    ):
        submitted_at = datetime(2026, 1, 5, tzinfo=UTC)
        target = make_application(
            student.id, status=ApplicationStatus.SUBMITTED, submitted_at=submitted_at
        )
        mock_repo.get_by_id = AsyncMock(return_value=target)

        application = await set_status(mock_db, admin, target.id, "under_review")

        assert application.submitted_at == submitted_at
        assert application.updated_at > submitted_at
