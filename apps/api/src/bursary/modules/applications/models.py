"""
Bursary Application Models

A submitted health or education bursary application. Rows are created
once by the submission workflow; afterwards only the review columns
change, and only through an administrator.
"""

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, Enum, Index, Integer, Numeric, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from bursary.core.database import Base


class ApplicationType(str, enum.Enum):
    """Kind of bursary requested."""

    HEALTH = "health"
    EDUCATION = "education"


class ApplicationStatus(str, enum.Enum):
    """Review status of an application."""

    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"


class Gender(str, enum.Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class DocumentType(str, enum.Enum):
    """Supporting documents, in upload order."""

    ID_DOCUMENT = "id_document"
    SCHOOL_FEES_STRUCTURE = "school_fees_structure"
    INCOME_CERTIFICATE = "income_certificate"
    BIRTH_CERTIFICATE = "birth_certificate"


# Fixed upload order used by the submission workflow
DOCUMENT_ORDER: tuple[DocumentType, ...] = (
    DocumentType.ID_DOCUMENT,
    DocumentType.SCHOOL_FEES_STRUCTURE,
    DocumentType.INCOME_CERTIFICATE,
    DocumentType.BIRTH_CERTIFICATE,
)

REQUIRED_DOCUMENTS: tuple[DocumentType, ...] = (
    DocumentType.ID_DOCUMENT,
    DocumentType.SCHOOL_FEES_STRUCTURE,
)

DOCUMENT_LABELS: dict[DocumentType, str] = {
    DocumentType.ID_DOCUMENT: "ID document",
    DocumentType.SCHOOL_FEES_STRUCTURE: "school fees structure",
    DocumentType.INCOME_CERTIFICATE: "income certificate",
    DocumentType.BIRTH_CERTIFICATE: "birth certificate",
}


class Application(Base):
    """
    Bursary application.

    Visible to its owner and to administrators only. ``status`` is always
    inserted as pending; review columns stay null until the first
    status change.
    """

    __tablename__ = "applications"

    # Primary key (rendered to applicants as the reference id)
    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Owner principal
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)

    application_type: Mapped[ApplicationType] = mapped_column(
        Enum(ApplicationType, name="application_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    status: Mapped[ApplicationStatus] = mapped_column(
        Enum(ApplicationStatus, name="application_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ApplicationStatus.PENDING,
    )

    # Applicant profile
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)
    gender: Mapped[Gender] = mapped_column(
        Enum(Gender, name="gender", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    phone: Mapped[str] = mapped_column(String(30), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    national_id: Mapped[str] = mapped_column(String(50), nullable=False)

    # Location
    county: Mapped[str] = mapped_column(String(100), nullable=False)
    sub_county: Mapped[str] = mapped_column(String(100), nullable=False)
    division: Mapped[str] = mapped_column(String(100), nullable=False)
    location: Mapped[str] = mapped_column(String(100), nullable=False)
    sub_location: Mapped[str] = mapped_column(String(100), nullable=False)
    village: Mapped[str] = mapped_column(String(100), nullable=False)

    # School
    school_name: Mapped[str] = mapped_column(String(200), nullable=False)
    school_level: Mapped[str] = mapped_column(String(50), nullable=False)
    class_year: Mapped[str] = mapped_column(String(50), nullable=False)

    # Means testing
    household_size: Mapped[int] = mapped_column(Integer, nullable=False)
    monthly_income: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    requested_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    reason_for_application: Mapped[str] = mapped_column(Text, nullable=False)

    # Supporting documents (public URLs)
    id_document_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    school_fees_structure_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    income_certificate_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    birth_certificate_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Review metadata
    admin_comments: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Audit timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_applications_user_id", "user_id"),
        Index("ix_applications_status", "status"),
        Index("ix_applications_type_created", "application_type", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Application(id={self.id}, type={self.application_type}, status={self.status})>"
