"""
Application Wizard

Five fixed steps over one draft:

    1. Personal Information
    2. Location
    3. School Information
    4. Application Details
    5. Documents

Steps are completed in order. ``advance()`` refuses to leave an incomplete
step; ``retreat()`` always succeeds. Validation of a step is a pure check
over the draft and never changes it.
"""

import logging
from collections.abc import Mapping
from typing import Any
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from bursary.core.config import settings
from bursary.core.exceptions import AlreadySubmittedError, ValidationError
from bursary.modules.applications.drafts import DocumentAttachment, Draft
from bursary.modules.applications.locations import is_known_county, is_valid_sub_county
from bursary.modules.applications.models import (
    DOCUMENT_LABELS,
    REQUIRED_DOCUMENTS,
    ApplicationStatus,
    DocumentType,
)
from bursary.modules.applications.schemas import ApplicationCreate

logger = logging.getLogger(__name__)

FIRST_STEP = 1
LAST_STEP = 5
DOCUMENTS_STEP = 5

STEP_NAMES: dict[int, str] = {
    1: "Personal Information",
    2: "Location",
    3: "School Information",
    4: "Application Details",
    5: "Documents",
}

# Mandatory fields per step (step 5 is documents, see REQUIRED_DOCUMENTS)
STEP_REQUIRED_FIELDS: dict[int, tuple[str, ...]] = {
    1: ("full_name", "email", "phone", "national_id", "date_of_birth", "gender"),
    2: ("county", "sub_county", "division", "location", "sub_location", "village"),
    3: ("school_name", "school_level", "class_year"),
    4: ("application_type", "household_size", "reason_for_application"),
}

OPTIONAL_FIELDS: dict[str, int] = {
    "monthly_income": 4,
    "requested_amount": 4,
}

# Every field the wizard accepts, mapped to the step it belongs to
FIELD_STEPS: dict[str, int] = {
    **{name: step for step, names in STEP_REQUIRED_FIELDS.items() for name in names},
    **OPTIONAL_FIELDS,
}

ALLOWED_EXTENSIONS = frozenset({"pdf", "jpg", "jpeg", "png"})


def is_empty(value: Any) -> bool:
    """None, empty and whitespace-only strings count as empty."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _clean(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class ApplicationWizard:
    """State machine over a single ``Draft``."""

    def __init__(self, draft: Draft):
        self.draft = draft

    @property
    def current_step(self) -> int:
        return self.draft.current_step

    def _ensure_editable(self) -> None:
        if self.draft.is_submitted:
            raise AlreadySubmittedError(self.draft.submitted_application_id)

    # ============================================
    # Mutations
    # ============================================

    def set_field(self, name: str, value: Any) -> None:
        """
        Assign a field value.

        Setting ``county`` clears ``sub_county``, whatever it held.

        Raises:
            ValidationError: Unknown field name
            AlreadySubmittedError: The draft was already submitted
        """
        self._ensure_editable()
        if name not in FIELD_STEPS:
            raise ValidationError(f"Unknown application field: {name}", missing=[name])

        self.draft.fields[name] = value
        if name == "county":
            self.draft.fields["sub_county"] = ""

    def set_fields(self, values: Mapping[str, Any]) -> None:
        """Assign several fields; ``county`` goes first so a new sub-county survives."""
        for name in sorted(values, key=lambda n: n != "county"):
            self.set_field(name, values[name])

    def attach_document(self, document_type: DocumentType, attachment: DocumentAttachment) -> None:
        """
        Attach (or replace) a document for the documents step.

        Raises:
            ValidationError: Unsupported file type, empty or oversized file
        """
        self._ensure_editable()
        label = DOCUMENT_LABELS[document_type]

        if attachment.extension not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                f"The {label} must be a PDF, JPG or PNG file.",
                step=DOCUMENTS_STEP,
                missing=[document_type.value],
            )
        if attachment.size == 0:
            raise ValidationError(
                f"The {label} file is empty.",
                step=DOCUMENTS_STEP,
                missing=[document_type.value],
            )
        if attachment.size > settings.max_upload_bytes:
            raise ValidationError(
                f"The {label} exceeds the {settings.max_upload_mb} MB limit.",
                step=DOCUMENTS_STEP,
                missing=[document_type.value],
            )

        self.draft.documents[document_type] = attachment

    def detach_document(self, document_type: DocumentType) -> None:
        self._ensure_editable()
        self.draft.documents.pop(document_type, None)

    # ============================================
    # Validation
    # ============================================

    def missing_fields(self, step: int) -> list[str]:
        """Names that keep ``step`` from being complete."""
        if step == DOCUMENTS_STEP:
            return [doc.value for doc in REQUIRED_DOCUMENTS if doc not in self.draft.documents]
        return [
            name
            for name in STEP_REQUIRED_FIELDS.get(step, ())
            if is_empty(self.draft.fields.get(name))
        ]

    def validate_step(self, step: int) -> bool:
        """True iff every mandatory field (or document) of ``step`` is present."""
        if step not in STEP_NAMES:
            raise ValueError(f"Unknown wizard step: {step}")
        return not self.missing_fields(step)

    def _incomplete_step_error(self, step: int) -> ValidationError:
        missing = self.missing_fields(step)
        if step == DOCUMENTS_STEP:
            labels = ", ".join(DOCUMENT_LABELS[DocumentType(name)] for name in missing)
            message = f"Please attach the required documents: {labels}."
        else:
            message = (
                f"Please complete {STEP_NAMES[step]} (step {step}). "
                f"Missing: {', '.join(missing)}."
            )
        return ValidationError(message, step=step, missing=missing)

    def validate_all(self) -> None:
        """
        Check every step in order.

        Raises:
            ValidationError: For the first incomplete step
        """
        for step in STEP_NAMES:
            if not self.validate_step(step):
                raise self._incomplete_step_error(step)

    # ============================================
    # Navigation
    # ============================================

    def advance(self) -> int:
        """
        Move to the next step.

        Raises:
            ValidationError: The current step is incomplete (state unchanged)
        """
        step = self.draft.current_step
        if not self.validate_step(step):
            raise self._incomplete_step_error(step)
        self.draft.current_step = min(step + 1, LAST_STEP)
        return self.draft.current_step

    def retreat(self) -> int:
        """Move back one step; never below the first."""
        self.draft.current_step = max(self.draft.current_step - 1, FIRST_STEP)
        return self.draft.current_step

    # ============================================
    # Payload
    # ============================================

    def build_payload(self, owner_id: UUID, document_urls: Mapping[DocumentType, str]) -> ApplicationCreate:
        """
        Assemble the insert payload from the draft and uploaded document URLs.

        Status is always pending, whatever the draft holds.

        Raises:
            ValidationError: A value has the wrong type or range, naming its step
        """
        data: dict[str, Any] = {name: _clean(self.draft.fields.get(name)) for name in FIELD_STEPS}
        for document_type, url in document_urls.items():
            data[f"{document_type.value}_url"] = url
        data["user_id"] = owner_id
        data["status"] = ApplicationStatus.PENDING

        try:
            payload = ApplicationCreate.model_validate(data)
        except PydanticValidationError as e:
            error = e.errors()[0]
            field = str(error["loc"][0]) if error["loc"] else "application"
            step = FIELD_STEPS.get(field, DOCUMENTS_STEP)
            logger.info(f"Draft {self.draft.id} rejected at step {step}: {field} {error['msg']}")
            raise ValidationError(
                f"Invalid value for {field.replace('_', ' ')} in {STEP_NAMES[step]}: {error['msg']}",
                step=step,
                missing=[field],
            ) from e

        if not is_known_county(payload.county):
            raise ValidationError(
                f"Unknown county: {payload.county}",
                step=2,
                missing=["county"],
            )
        if not is_valid_sub_county(payload.county, payload.sub_county):
            raise ValidationError(
                f"{payload.sub_county} is not a sub-county of {payload.county}.",
                step=2,
                missing=["sub_county"],
            )

        return payload
