"""
Fixtures for bursary application tests.
"""

from datetime import UTC, date, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from bursary.core.session import Principal, Session
from bursary.modules.applications.drafts import DocumentAttachment, Draft, DraftStore
from bursary.modules.applications.gateway import DataGateway
from bursary.modules.applications.models import (
    Application,
    ApplicationStatus,
    ApplicationType,
    DocumentType,
    Gender,
)

COMPLETE_FIELDS = {
    # Step 1
    "full_name": "Wanjiku Kamau",
    "email": "wanjiku@example.com",
    "phone": "+254712345678",
    "national_id": "32456789",
    "date_of_birth": "2004-03-15",
    "gender": "female",
    # Step 2
    "county": "Nairobi",
    "sub_county": "Westlands",
    "division": "Parklands",
    "location": "Highridge",
    "sub_location": "Kitisuru",
    "village": "Loresho",
    # Step 3
    "school_name": "Central High School",
    "school_level": "Secondary",
    "class_year": "grade11",
    # Step 4
    "application_type": "education",
    "household_size": 5,
    "monthly_income": "12000",
    "requested_amount": "35000",
    "reason_for_application": "My parents cannot cover this term's fees.",
}


@pytest.fixture
def complete_fields():
    """Field values completing steps 1-4."""
    return dict(COMPLETE_FIELDS)


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def mock_gateway():
    """Gateway double whose async operations are AsyncMocks."""
    return AsyncMock(spec=DataGateway)


@pytest.fixture
def draft_store():
    """Draft store backed by process memory."""
    return DraftStore(None, ttl_seconds=3600)


@pytest.fixture
def pdf_attachment():
    return DocumentAttachment(
        filename="national-id.pdf",
        content_type="application/pdf",
        content=b"%PDF-1.4 id",
    )


@pytest.fixture
def png_attachment():
    return DocumentAttachment(
        filename="Fees.PNG",
        content_type="image/png",
        content=b"\x89PNG fees",
    )


@pytest.fixture
def empty_draft():
    return Draft()


@pytest.fixture
def complete_draft(complete_fields, pdf_attachment, png_attachment):
    """Draft with every step filled in and both mandatory documents, at step 5."""
    return Draft(
        current_step=5,
        fields=complete_fields,
        documents={
            DocumentType.ID_DOCUMENT: pdf_attachment,
            DocumentType.SCHOOL_FEES_STRUCTURE: png_attachment,
        },
    )


@pytest.fixture
def principal():
    return Principal(id=uuid4(), email="wanjiku@example.com", full_name="Wanjiku Kamau")


@pytest.fixture
def admin_principal():
    return Principal(id=uuid4(), email="admin@example.com", full_name="Review Officer")


@pytest.fixture
def anonymous_session():
    return Session(admin_lookup=AsyncMock(return_value=False))


@pytest.fixture
def applicant_session(principal):
    session = Session(admin_lookup=AsyncMock(return_value=False))
    session.principal = principal
    return session


@pytest.fixture
def admin_session(admin_principal):
    session = Session(admin_lookup=AsyncMock(return_value=True))
    session.principal = admin_principal
    session.is_admin = True
    return session


@pytest.fixture
def make_application():
    """Factory for application models with every column populated."""

    def _make(**overrides):
        app = MagicMock(spec=Application)
        app.id = uuid4()
        app.user_id = uuid4()
        app.application_type = ApplicationType.EDUCATION
        app.status = ApplicationStatus.PENDING
        app.full_name = "Wanjiku Kamau"
        app.date_of_birth = date(2004, 3, 15)
        app.gender = Gender.FEMALE
        app.phone = "+254712345678"
        app.email = "wanjiku@example.com"
        app.national_id = "32456789"
        app.county = "Nairobi"
        app.sub_county = "Westlands"
        app.division = "Parklands"
        app.location = "Highridge"
        app.sub_location = "Kitisuru"
        app.village = "Loresho"
        app.school_name = "Central High School"
        app.school_level = "Secondary"
        app.class_year = "grade11"
        app.household_size = 5
        app.monthly_income = Decimal("12000")
        app.requested_amount = Decimal("35000")
        app.reason_for_application = "Fees arrears"
        app.id_document_url = "http://localhost:8000/uploads/x/id_document-1.pdf"
        app.school_fees_structure_url = "http://localhost:8000/uploads/x/school_fees_structure-1.png"
        app.income_certificate_url = None
        app.birth_certificate_url = None
        app.admin_comments = None
        app.reviewed_by = None
        app.reviewed_at = None
        app.created_at = datetime(2024, 5, 2, 9, 30, tzinfo=UTC)
        app.updated_at = datetime(2024, 5, 2, 9, 30, tzinfo=UTC)
        for name, value in overrides.items():
            setattr(app, name, value)
        return app

    return _make
