"""
Shared fixtures.

No live database or Redis: the database session is an AsyncMock and router
tests override the FastAPI dependencies.
"""

import copy
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient

from admission_portal.core.auth import CurrentUser, get_current_user
from admission_portal.core.database import get_db
from admission_portal.core.rate_limit import reset_memory_store
from admission_portal.core.sessions import get_redis
from admission_portal.main import app
from admission_portal.modules.applications.models import Application, ApplicationStatus
from admission_portal.modules.documents.models import Document, DocumentType
from admission_portal.modules.users.models import User, UserRole

VALID_FORM_PAYLOAD = {
    "personalInfo": {
        "firstName": "Wanjiru",
        "middleName": "Akinyi",
        "lastName": "Otieno",
        "nationalIdOrBirthCertNo": "31234567",
        "hudumaNo": None,
        "nhifNo": None,
        "dateOfBirth": "2005-03-14",
        "gender": "female",
        "religion": "Christian",
        "nationality": "Kenyan",
        "maritalStatus": "single",
        "physicalImpairment": False,
        "impairmentDetails": None,
    },
    "contactInfo": {
        "postalAddress": "P.O. Box 1234",
        "postalCode": "00100",
        "town": "Nairobi",
        "mobilePhone": "+254712345678",
        "email": "wanjiru.otieno@example.com",
        "county": "Nairobi",
    },
    "familyInfo": {
        "fatherName": "James Otieno",
        "fatherOccupation": "Teacher",
        "fatherAlive": True,
        "motherName": "Grace Otieno",
        "motherOccupation": "Nurse",
        "motherAlive": True,
        "numberOfSiblings": 3,
        "spouseName": None,
        "spouseOccupation": None,
        "spousePhone": None,
    },
    "residenceInfo": {
        "placeOfBirth": "Kisumu",
        "permanentResidence": "Kilimani",
        "nearestTown": "Nairobi",
        "location": "Kilimani",
        "subCounty": "Dagoretti North",
        "constituency": "Dagoretti North",
        "nearestPoliceStation": "Kilimani Police Station",
    },
    "educationInfo": {
        "kcseSchool": "Alliance Girls High School",
        "kcseIndex": "12345678001",
        "kcseYear": "2022",
        "kcseResults": "A-",
        "kcpeSchool": "Kilimani Primary School",
        "kcpeIndex": "12345678002",
        "kcpeYear": "2018",
        "kcpeResults": "412",
        "otherQualifications": None,
    },
    "medicalInfo": {
        "everAdmitted": False,
        "admissionDetails": None,
        "tbHistory": False,
        "tbDetails": None,
        "fitHistory": False,
        "fitDetails": None,
        "heartDiseaseHistory": False,
        "heartDiseaseDetails": None,
        "digestiveDiseaseHistory": False,
        "digestiveDiseaseDetails": None,
        "allergiesHistory": True,
        "allergiesDetails": "Penicillin",
    },
    "documentsChecklist": {
        "nationalId": True,
        "kcseResults": True,
        "kcpeResults": True,
        "passportPhoto": False,
    },
    "acceptance": {
        "acceptOffer": True,
        "imageReleaseConsent": False,
    },
}


@pytest.fixture(autouse=True)
def _clear_rate_limits():
    """Rate limit windows must not leak between tests."""
    reset_memory_store()
    yield
    reset_memory_store()


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.refresh = AsyncMock()
    db.rollback = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def form_payload():
    """A complete, valid form payload (deep copy, safe to mutate)."""
    return copy.deepcopy(VALID_FORM_PAYLOAD)


@pytest.fixture
def student():
    return CurrentUser(id=uuid4(), username="wanjiru@example.com", role="student")


@pytest.fixture
def other_student():
    return CurrentUser(id=uuid4(), username="kamau@example.com", role="student")


@pytest.fixture
def admin():
    return CurrentUser(id=uuid4(), username="registrar@example.edu", role="admin")


@pytest.fixture
def make_user():
    """Build a User row for a CurrentUser."""

    def _make(current: CurrentUser) -> User:
        return User(
            id=current.id,
            username=current.username,
            password_hash="not-a-real-hash",
            role=UserRole(current.role),
            created_at=datetime.now(UTC) - timedelta(days=30),
        )

    return _make


@pytest.fixture
def make_application(form_payload):
    """Build an Application row without a database."""

    def _make(
        user_id,
        status: ApplicationStatus = ApplicationStatus.DRAFT,
        form_data: dict | None = None,
        updated_at: datetime | None = None,
        **fields,
    ) -> Application:
        now = datetime.now(UTC)
        return Application(
            id=fields.pop("id", uuid4()),
            user_id=user_id,
            status=status,
            form_data=form_data if form_data is not None else copy.deepcopy(form_payload),
            created_at=fields.pop("created_at", now - timedelta(days=1)),
            updated_at=updated_at or now,
            submitted_at=fields.pop("submitted_at", None),
            reminder_sent_at=fields.pop("reminder_sent_at", None),
        )

    return _make


@pytest.fixture
def make_document():
    """Build a Document row without a database."""

    def _make(
        application_id,
        document_type: DocumentType = DocumentType.NATIONAL_ID,
        verified: bool = False,
        **fields,
    ) -> Document:
        return Document(
            id=fields.pop("id", uuid4()),
            application_id=application_id,
            document_type=document_type,
            file_name=fields.pop("file_name", "national_id.pdf"),
            storage_path=fields.pop("storage_path", f"uploads/{application_id}/national_id.pdf"),
            verified=verified,
            verified_at=fields.pop("verified_at", None),
            verified_by=fields.pop("verified_by", None),
            uploaded_at=fields.pop("uploaded_at", datetime.now(UTC)),
        )

    return _make


@pytest.fixture
def policy_repo():
    """
    Patch the application lookup used by the access policy for ownership.

    By default nobody owns anything; tests set get_by_user_id.
    """
    with patch("admission_portal.modules.access.policy.applications_repository") as repo:
        repo.get_by_user_id = AsyncMock(return_value=None)
        yield repo


@pytest.fixture
def client_for(mock_db):
    """
    Build an httpx client for the app acting as the given user.

    Pass None to leave authentication to the real session dependency.
    """

    async def _override_db():
        yield mock_db

    async def _override_redis():
        return None

    def _make(user: CurrentUser | None) -> AsyncClient:
        app.dependency_overrides[get_db] = _override_db
        app.dependency_overrides[get_redis] = _override_redis
        if user is None:
            app.dependency_overrides.pop(get_current_user, None)
        else:
            app.dependency_overrides[get_current_user] = lambda: user
        return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")

    yield _make
    app.dependency_overrides.clear()
