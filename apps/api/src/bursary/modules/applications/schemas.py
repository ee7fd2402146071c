"""
Bursary Applications Schemas

Pydantic schemas for the wizard, submission, status lookup and the admin
dashboard.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

# Re-use enums from models
from bursary.modules.applications.models import (
    ApplicationStatus,
    ApplicationType,
    DocumentType,
    Gender,
)


# ============================================
# Persistence payload
# ============================================


class ApplicationCreate(BaseModel):
    """Validated insert payload built from a complete draft."""

    user_id: UUID
    application_type: ApplicationType
    status: ApplicationStatus = ApplicationStatus.PENDING

    # Personal info
    full_name: str = Field(..., min_length=1, max_length=200)
    date_of_birth: date
    gender: Gender
    phone: str = Field(..., min_length=1, max_length=30)
    email: EmailStr
    national_id: str = Field(..., min_length=1, max_length=50)

    # Location
    county: str = Field(..., min_length=1, max_length=100)
    sub_county: str = Field(..., min_length=1, max_length=100)
    division: str = Field(..., min_length=1, max_length=100)
    location: str = Field(..., min_length=1, max_length=100)
    sub_location: str = Field(..., min_length=1, max_length=100)
    village: str = Field(..., min_length=1, max_length=100)

    # School
    school_name: str = Field(..., min_length=1, max_length=200)
    school_level: str = Field(..., min_length=1, max_length=50)
    class_year: str = Field(..., min_length=1, max_length=50)

    # Application details
    household_size: int = Field(..., ge=1)
    monthly_income: Decimal | None = Field(None, ge=0)
    requested_amount: Decimal | None = Field(None, ge=0)
    reason_for_application: str = Field(..., min_length=1)

    # Documents
    id_document_url: str | None = None
    school_fees_structure_url: str | None = None
    income_certificate_url: str | None = None
    birth_certificate_url: str | None = None


class ApplicationResponse(BaseModel):
    """Full application record as seen by its owner or an admin."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    application_type: ApplicationType
    status: ApplicationStatus
    full_name: str
    date_of_birth: date
    gender: Gender
    phone: str
    email: str
    national_id: str
    county: str
    sub_county: str
    division: str
    location: str
    sub_location: str
    village: str
    school_name: str
    school_level: str
    class_year: str
    household_size: int
    monthly_income: Decimal | None = None
    requested_amount: Decimal | None = None
    reason_for_application: str
    id_document_url: str | None = None
    school_fees_structure_url: str | None = None
    income_certificate_url: str | None = None
    birth_certificate_url: str | None = None
    admin_comments: str | None = None
    reviewed_by: UUID | None = None
    reviewed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class ApplicationFilters(BaseModel):
    """Optional narrowing of the admin application list."""

    application_type: ApplicationType | None = None
    status: ApplicationStatus | None = None
    school_name: str | None = Field(None, max_length=200, description="Case-insensitive substring")


class ApplicationListResponse(BaseModel):
    """Unpaginated list of applications, newest first."""

    applications: list[ApplicationResponse]
    total: int = Field(..., ge=0)


# ============================================
# Wizard drafts
# ============================================


class DraftDocument(BaseModel):
    """Metadata of a file attached to a draft (bytes are never echoed)."""

    document_type: DocumentType
    filename: str
    content_type: str
    size: int


class DraftResponse(BaseModel):
    """Current wizard state for a draft."""

    id: UUID
    current_step: int = Field(..., ge=1, le=5)
    fields: dict[str, Any]
    documents: list[DraftDocument]
    step_valid: bool
    missing_fields: list[str]
    awaiting_auth: bool = False
    submitted_application_id: UUID | None = None


class DraftFieldsUpdate(BaseModel):
    """Request body for PATCH /applications/drafts/{id}/fields."""

    fields: dict[str, Any] = Field(..., min_length=1)


class SubmissionResponse(BaseModel):
    """Result of submitting a draft."""

    reference_id: str
    already_submitted: bool = False
    application: ApplicationResponse | None = None
    message: str = "Application submitted successfully. Keep your reference ID to track it."


# ============================================
# Status lookup
# ============================================


class StatusMilestone(BaseModel):
    """One step in an application's status history."""

    name: str
    reached_at: datetime | None = None


class ApplicationStatusView(BaseModel):
    """Derived status information shown to the applicant."""

    reference_id: str
    application_type: ApplicationType
    school_name: str
    status: ApplicationStatus
    status_label: str
    status_description: str
    progress: int = Field(..., ge=0, le=100)
    submitted_at: datetime
    admin_comments: str | None = None
    history: list[StatusMilestone]


class ApplicationStatusListResponse(BaseModel):
    applications: list[ApplicationStatusView]
    total: int = Field(..., ge=0)


# ============================================
# Location reference data
# ============================================


class CountyListResponse(BaseModel):
    counties: list[str]


class SubCountyListResponse(BaseModel):
    county: str
    sub_counties: list[str]


# ============================================
# Admin Dashboard Schemas
# ============================================


class SetStatusRequest(BaseModel):
    """Request body for PATCH /admin/applications/{id}/status."""

    status: ApplicationStatus
    admin_comments: str | None = Field(
        None,
        max_length=2000,
        description="Reviewer comments shown to the applicant",
        json_schema_extra={"example": "Fee structure verified with the school."},
    )


class DashboardStats(BaseModel):
    """Aggregated counts shown on the admin dashboard."""

    total: int = Field(..., ge=0)
    pending: int = Field(..., ge=0)
    under_review: int = Field(..., ge=0)
    approved: int = Field(..., ge=0)
    rejected: int = Field(..., ge=0)
    health: int = Field(..., ge=0)
    education: int = Field(..., ge=0)
    approval_rate: float = Field(
        ...,
        ge=0,
        le=100,
        description="Approved applications as a percentage of all applications",
    )


class SetStatusResponse(BaseModel):
    """Updated application plus refreshed dashboard statistics."""

    application: ApplicationResponse
    stats: DashboardStats | None = None


class CountBucket(BaseModel):
    label: str
    count: int = Field(..., ge=0)


class MonthlyBucket(BaseModel):
    month: str = Field(..., description="Calendar month as YYYY-MM")
    education: int = Field(..., ge=0)
    health: int = Field(..., ge=0)
    total: int = Field(..., ge=0)


class ReportResponse(BaseModel):
    """Admin reports: distributions and trends over all applications."""

    total: int = Field(..., ge=0)
    approval_rate: float = Field(..., ge=0, le=100)
    status_distribution: list[CountBucket]
    type_distribution: list[CountBucket]
    monthly_trend: list[MonthlyBucket]
    top_counties: list[CountBucket]
    school_levels: list[CountBucket]
