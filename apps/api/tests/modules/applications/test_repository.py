"""
Unit tests for the applications repository layer.

Covers the strict-mode transition table and the timestamp rules applied on
save and on status change.
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from admission_portal.modules.applications import repository
from admission_portal.modules.applications.models import ApplicationStatus
from admission_portal.modules.applications.repository import (
    ALLOWED_STATUS_TRANSITIONS,
    APPLICANT_SETTABLE_STATUSES,
    InvalidStatusTransitionError,
    check_transition,
)


class TestStatusTransitions:
    """Tests for the strict-mode transition table."""

    def test_all_statuses_are_in_transition_map(self):
        for status in ApplicationStatus:
            assert status in ALLOWED_STATUS_TRANSITIONS

    def test_draft_can_only_be_submitted(self):
        assert ALLOWED_STATUS_TRANSITIONS[ApplicationStatus.DRAFT] == {ApplicationStatus.SUBMITTED}

    def test_submitted_transitions(self):
        valid = ALLOWED_STATUS_TRANSITIONS[ApplicationStatus.SUBMITTED]
        assert valid == {
            ApplicationStatus.UNDER_REVIEW,
            ApplicationStatus.DRAFT,
            ApplicationStatus.APPROVED,
            ApplicationStatus.REJECTED,
        }

    def test_under_review_transitions(self):
        valid = ALLOWED_STATUS_TRANSITIONS[ApplicationStatus.UNDER_REVIEW]
        assert ApplicationStatus.APPROVED in valid
        assert ApplicationStatus.REJECTED in valid
        assert ApplicationStatus.SUBMITTED in valid
        assert ApplicationStatus.DRAFT not in valid

    def test_approved_is_terminal(self):
        assert ALLOWED_STATUS_TRANSITIONS[ApplicationStatus.APPROVED] == set()

    def test_rejected_can_return_to_draft(self):
        assert ALLOWED_STATUS_TRANSITIONS[ApplicationStatus.REJECTED] == {ApplicationStatus.DRAFT}

    def test_applicants_may_only_set_draft_or_submitted(self):
        assert APPLICANT_SETTABLE_STATUSES == {ApplicationStatus.DRAFT, ApplicationStatus.SUBMITTED}

    def test_check_transition_allows_listed_move(self):
        check_transition(ApplicationStatus.SUBMITTED, ApplicationStatus.UNDER_REVIEW)

    def test_check_transition_allows_same_status(self):
        check_transition(ApplicationStatus.APPROVED, ApplicationStatus.APPROVED)

    def test_check_transition_rejects_unlisted_move(self):
        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            check_transition(ApplicationStatus.DRAFT, ApplicationStatus.APPROVED)

        assert exc_info.value.current_status == ApplicationStatus.DRAFT
        assert exc_info.value.new_status == ApplicationStatus.APPROVED


class TestInvalidStatusTransitionError:
    def test_is_a_409_conflict(self):
        error = InvalidStatusTransitionError(ApplicationStatus.APPROVED, ApplicationStatus.DRAFT)
        assert error.status_code == 409
        assert error.error_code == "INVALID_STATUS_TRANSITION"

    def test_message_lists_statuses_and_valid_transitions(self):
        error = InvalidStatusTransitionError(ApplicationStatus.DRAFT, ApplicationStatus.APPROVED)
        message = str(error)
        assert "draft -> approved" in message
        assert "Valid transitions" in message
        assert "submitted" in message


class TestUpdateStatus:
    """Timestamps written on status change."""

    @pytest.mark.asyncio
    async def test_submitted_writes_submitted_at(self, mock_db, make_application):
        application = make_application(uuid4())
        before = datetime.now(UTC)

        result = await repository.update_status(mock_db, application, ApplicationStatus.SUBMITTED)

        assert result.status == ApplicationStatus.SUBMITTED
        assert result.submitted_at is not None
        assert result.submitted_at >= before
        assert result.updated_at == result.submitted_at
        mock_db.commit.assert_awaited_once()

    @pytest.mark.parametrize(
        "status",
        [
            ApplicationStatus.DRAFT,
            ApplicationStatus.UNDER_REVIEW,
            ApplicationStatus.APPROVED,
            ApplicationStatus.REJECTED,
        ],
    )
    @pytest.mark.asyncio
    async def test_other_statuses_leave_submitted_at(self, mock_db, make_application, status):
        application = make_application(uuid4(), status=ApplicationStatus.SUBMITTED)
        old_updated_at = application.updated_at - timedelta(hours=1)
        application.updated_at = old_updated_at

        result = await repository.update_status(mock_db, application, status)

        assert result.status == status
        assert result.submitted_at is None
        assert result.updated_at > old_updated_at


class TestUpdateFormData:
    @pytest.mark.asyncio
    async def test_overwrites_form_and_keeps_status(self, mock_db, make_application):
        application = make_application(
            uuid4(),
            status=ApplicationStatus.UNDER_REVIEW,
            reminder_sent_at=datetime.now(UTC),
            updated_at=datetime.now(UTC) - timedelta(days=3),
        )
        new_form = {"personalInfo": {"firstName": "Changed"}}

        result = await repository.update_form_data(mock_db, application, new_form)

        assert result.form_data == new_form
        assert result.status == ApplicationStatus.UNDER_REVIEW
        assert result.reminder_sent_at is None
        assert result.updated_at > datetime.now(UTC) - timedelta(minutes=1)
        mock_db.commit.assert_awaited_once()


class TestCreate:
    @pytest.mark.asyncio
    async def test_create_makes_a_draft(self, mock_db, form_payload):
        user_id = uuid4()

        application = await repository.create(mock_db, user_id, form_payload)

        assert application.user_id == user_id
        assert application.status == ApplicationStatus.DRAFT
        assert application.form_data == form_payload
        mock_db.add.assert_called_once_with(application)
        mock_db.commit.assert_awaited_once()


class TestCountByStatus:
    @pytest.mark.asyncio
    async def test_every_status_present(self, mock_db):
        result = MagicMock()
        result.all.return_value = [
            (ApplicationStatus.SUBMITTED, 4),
            (ApplicationStatus.APPROVED, 1),
        ]
        mock_db.execute.return_value = result

        counts = await repository.count_by_status(mock_db)

        assert counts == {
            ApplicationStatus.DRAFT: 0,
            ApplicationStatus.SUBMITTED: 4,
            ApplicationStatus.UNDER_REVIEW: 0,
            ApplicationStatus.APPROVED: 1,
            ApplicationStatus.REJECTED: 0,
        }


class TestMarkReminderSent:
    @pytest.mark.asyncio
    async def test_marks_and_keeps_updated_at(self, mock_db, make_application):
        last_activity = datetime.now(UTC) - timedelta(days=10)
        application = make_application(uuid4(), updated_at=last_activity)
        mock_db.get.return_value = application
        sent_at = datetime.now(UTC)

        result = await repository.mark_reminder_sent(mock_db, application.id, sent_at=sent_at)

        assert result.reminder_sent_at == sent_at
        assert result.updated_at == last_activity

    @pytest.mark.asyncio
    async def test_missing_application_returns_none(self, mock_db):
        mock_db.get.return_value = None

        assert await repository.mark_reminder_sent(mock_db, uuid4()) is None
        mock_db.commit.assert_not_awaited()
