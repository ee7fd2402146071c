"""
Bursary Applications Module

Applicant wizard and submission, status lookup, and admin review of
health and education bursary applications.
"""

from bursary.modules.applications.models import (
    Application,
    ApplicationStatus,
    ApplicationType,
    DocumentType,
    Gender,
)

__all__ = [
    "Application",
    "ApplicationStatus",
    "ApplicationType",
    "DocumentType",
    "Gender",
]
