"""
Portal Error Taxonomy

Workflow-level exceptions. Remote-call failures are converted into one of
these at the workflow boundary; routers turn them into HTTP responses.
Every error is scoped to a single user interaction.
"""

from collections.abc import Sequence
from uuid import UUID


class PortalError(Exception):
    """Base exception for portal workflow errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)

    def to_detail(self) -> dict:
        """Structured error body used in HTTP responses."""
        return {"error": self.error_code, "message": self.message}


class ValidationError(PortalError):
    """A required field or document is missing, or a value is invalid."""

    def __init__(
        self,
        message: str,
        step: int | None = None,
        missing: Sequence[str] = (),
    ):
        self.step = step
        self.missing = list(missing)
        super().__init__(message=message, error_code="VALIDATION_ERROR", status_code=422)

    def to_detail(self) -> dict:
        detail = super().to_detail()
        detail["step"] = self.step
        detail["missing"] = self.missing
        return detail


class AuthRequiredError(PortalError):
    """An operation needing a signed-in principal was attempted anonymously."""

    def __init__(self, message: str = "Please sign in to continue."):
        super().__init__(message=message, error_code="AUTH_REQUIRED", status_code=401)


class UploadFailureError(PortalError):
    """A document could not be stored; the submission was aborted."""

    def __init__(self, document_type: str, label: str, detail: str):
        self.document_type = document_type
        self.detail = detail
        super().__init__(
            message=f"Failed to upload {label}: {detail}",
            error_code="UPLOAD_FAILED",
            status_code=502,
        )

    def to_detail(self) -> dict:
        detail = super().to_detail()
        detail["document_type"] = self.document_type
        return detail


class PersistenceFailureError(PortalError):
    """The data store rejected or failed an insert/update/select."""

    def __init__(self, detail: str):
        super().__init__(message=detail, error_code="PERSISTENCE_FAILED", status_code=503)


class AccessDeniedError(PortalError):
    """A principal without admin privilege reached an admin-only operation."""

    def __init__(self, message: str = "Administrator access is required."):
        super().__init__(message=message, error_code="ACCESS_DENIED", status_code=403)


class NotFoundError(PortalError):
    """A reference id or record did not match anything the caller may see."""

    def __init__(self, message: str = "No application matches that reference ID."):
        super().__init__(message=message, error_code="NOT_FOUND", status_code=404)


class AlreadySubmittedError(PortalError):
    """The draft has already been turned into an application."""

    def __init__(self, application_id: UUID):
        self.application_id = application_id
        super().__init__(
            message=f"This draft was already submitted as application {application_id}.",
            error_code="ALREADY_SUBMITTED",
            status_code=409,
        )


class SubmissionInProgressError(PortalError):
    """Another request is already submitting the same draft."""

    def __init__(self):
        super().__init__(
            message="This application is already being submitted. Please wait a moment.",
            error_code="SUBMISSION_IN_PROGRESS",
            status_code=409,
        )


class DuplicateAccountError(PortalError):
    """Sign-up with an email that already has an account."""

    def __init__(self):
        super().__init__(
            message="An account with this email already exists.",
            error_code="DUPLICATE_ACCOUNT",
            status_code=409,
        )


class InvalidCredentialsError(PortalError):
    """Sign-in with an unknown email or wrong password."""

    def __init__(self):
        super().__init__(
            message="Invalid email or password.",
            error_code="INVALID_CREDENTIALS",
            status_code=401,
        )
